"""Shared fixtures for archiver tests."""

import io
import tarfile
import zipfile
from pathlib import Path
from typing import Dict

import pytest


# Relative path under rc/ -> size in bytes
RC_FILES = {
    "file-a.txt": 12,
    "alpha/file-b.txt": 15,
    "alpha/bravo/file-c.txt": 22,
    "alpha/charlie/file-d.txt": 24,
    "alpha/charlie/file-e.txt": 35,
}

RC_DIRECTORIES = {"rc/", "rc/alpha/", "rc/alpha/bravo/", "rc/alpha/charlie/"}


def content_for(relative_path: str, size: int) -> bytes:
    """Deterministic file content of an exact size."""
    return (relative_path.encode() * size)[:size]


def make_zip(path: Path, members: Dict[str, bytes]) -> Path:
    """Write a zip with members exactly as named (no sanitizing)."""
    with zipfile.ZipFile(path, 'w', zipfile.ZIP_DEFLATED) as zf:
        for name, data in members.items():
            zf.writestr(name, data)
    return path


def make_tar(path: Path, members: Dict[str, bytes]) -> Path:
    """Write a tar with regular-file members exactly as named."""
    with tarfile.open(path, 'w') as tf:
        for name, data in members.items():
            info = tarfile.TarInfo(name=name)
            info.size = len(data)
            tf.addfile(info, io.BytesIO(data))
    return path


@pytest.fixture
def rc_tree(tmp_path):
    """Create the rc/ source tree: 4 directories, 5 files of known sizes."""
    root = tmp_path / "source" / "rc"
    for relative_path, size in RC_FILES.items():
        file_path = root / relative_path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_bytes(content_for(relative_path, size))
    return root


@pytest.fixture
def out_dir(tmp_path):
    """Fresh extraction directory nested one level below tmp_path."""
    target = tmp_path / "work" / "out"
    target.mkdir(parents=True)
    return target


@pytest.fixture
def rc_files():
    """Relative file paths under rc/ mapped to their sizes."""
    return dict(RC_FILES)


@pytest.fixture
def rc_directories():
    """Directory entry names of the rc/ tree."""
    return set(RC_DIRECTORIES)


@pytest.fixture
def zip_factory():
    return make_zip


@pytest.fixture
def tar_factory():
    return make_tar
