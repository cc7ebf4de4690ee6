"""Path utilities for consistent archive member naming."""

import os
from pathlib import Path, PurePath


def normalize_path(path: PurePath | str) -> str:
    """
    Convert host path separators to the forward slashes used in archives.
    
    Only the host's own separators are converted. On POSIX a backslash is an
    ordinary filename character and is kept, and Unicode is never re-normalized,
    so a name read back from an archive matches the file it was made from.
    
    Args:
        path: Path object or string to normalize
        
    Returns:
        Path string with forward slashes
        
    Examples:
        >>> normalize_path(Path("rc") / "alpha" / "file-b.txt")
        'rc/alpha/file-b.txt'
    """
    normalized = str(path)
    for separator in (os.sep, os.altsep):
        if separator and separator != '/':
            normalized = normalized.replace(separator, '/')
    return normalized


def join_member_name(*parts: str, directory: bool = False) -> str:
    """Join path segments into an archive member name.
    
    Empty segments and stray separators are dropped; every other character
    is kept as-is. Directory names get exactly one trailing slash.
    
    Args:
        *parts: Path segments, in order
        directory: Whether the name denotes a directory entry
        
    Returns:
        Forward-slash joined member name
    """
    segments = [
        segment
        for part in parts
        for segment in normalize_path(part).split('/')
        if segment
    ]
    name = '/'.join(segments)
    if directory:
        name += '/'
    return name


def is_within(root: Path, candidate: Path) -> bool:
    """Check whether ``candidate`` equals ``root`` or lies beneath it.
    
    Both paths are compared as given; callers pass resolved paths.
    """
    return candidate == root or candidate.is_relative_to(root)
