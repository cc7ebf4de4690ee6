"""Command line interface: ``treepack create|list|extract``."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from treepack.common import ConfigLoader, ConfigurationError, setup_logging_from_config

from .config import TreepackConfig
from .errors import ArchiveError, NotFoundError
from .extractor import extract
from .models import ArchiveFormat, detect_format
from .reader import list_contents
from .writer import create_archive

APP_NAME = "treepack"

logger = logging.getLogger(__package__ or __name__)


def _resolve_format(archive: Path, requested: Optional[str]) -> ArchiveFormat:
    if requested:
        return ArchiveFormat.coerce(requested)
    return detect_format(archive)


def create_command(config: TreepackConfig, source: Path, archive: Path, fmt: Optional[str]) -> int:
    """Package ``source`` into ``archive``.

    A partially written archive is removed on failure.

    Returns:
        Exit code (0 for success)
    """
    try:
        archive_format = _resolve_format(archive, fmt)
    except ArchiveError as e:
        logger.error(f"Archive creation failed: {e}")
        return 1

    logger.info(f"Source: {source}")
    logger.info(f"Archive: {archive} ({archive_format.value})")

    try:
        create_archive(source, archive, archive_format, config.archive)
    except NotFoundError as e:
        # Raised before the archive file is opened
        logger.error(f"Archive creation failed: {e}")
        return 1
    except ArchiveError as e:
        logger.error(f"Archive creation failed: {e}")
        # Never remove the source itself
        if archive.is_file() and archive.resolve() != source.resolve():
            archive.unlink()
            logger.info(f"Removed incomplete archive {archive}")
        return 1

    return 0


def list_command(config: TreepackConfig, archive: Path, fmt: Optional[str]) -> int:
    """Print one summary line per archive entry to stdout.

    Returns:
        Exit code (0 for success)
    """
    try:
        archive_format = _resolve_format(archive, fmt)
        summaries = list_contents(archive, archive_format, config.archive)
    except ArchiveError as e:
        logger.error(f"Listing failed: {e}")
        return 1

    for summary in summaries:
        print(summary)
    return 0


def extract_command(config: TreepackConfig, archive: Path, out_dir: Path, fmt: Optional[str]) -> int:
    """Extract ``archive`` under ``out_dir``.

    Returns:
        Exit code (0 for success, 1 on failure or skipped entries)
    """
    try:
        archive_format = _resolve_format(archive, fmt)
        result = extract(archive, out_dir, archive_format, config.extraction, config.archive)
    except ArchiveError as e:
        logger.error(f"Extraction failed: {e}")
        return 1

    for name, reason in result.skipped.items():
        logger.error(f"Not extracted: {name}: {reason}")

    logger.info(f"Extracted {len(result.files)} file(s) to {result.out_dir}")
    return 1 if result.skipped else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Package files and directory trees into zip/tar archives, list and extract them"
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to a TOML config file"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Log level (overrides config)"
    )
    format_choices = [f.value for f in ArchiveFormat]
    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser("create", help="Create an archive from a file or directory")
    create.add_argument("source", type=Path, help="File or directory to archive")
    create.add_argument("archive", type=Path, help="Archive file to write")
    create.add_argument("--format", choices=format_choices, help="Archive format (default: from file name)")
    create.add_argument(
        "--no-tar-directories",
        action="store_true",
        help="Write file entries only into tar archives"
    )

    listing = subparsers.add_parser("list", help="List archive contents")
    listing.add_argument("archive", type=Path, help="Archive file to list")
    listing.add_argument("--format", choices=format_choices, help="Archive format (default: from file name)")

    unpack = subparsers.add_parser("extract", help="Extract an archive")
    unpack.add_argument("archive", type=Path, help="Archive file to extract")
    unpack.add_argument("out_dir", type=Path, help="Directory to extract into")
    unpack.add_argument("--format", choices=format_choices, help="Archive format (default: from file name)")
    unpack.add_argument(
        "--skip-unsafe",
        action="store_true",
        help="Skip entries that would escape the output directory instead of aborting"
    )

    return parser


def apply_overrides(config: TreepackConfig, args: argparse.Namespace) -> TreepackConfig:
    """Apply command line flags on top of the loaded configuration."""
    if args.log_level:
        config = config.model_copy(
            update={"logging": config.logging.model_copy(update={"level": args.log_level})}
        )
    if getattr(args, "no_tar_directories", False):
        config = config.model_copy(
            update={"archive": config.archive.model_copy(update={"tar_directory_entries": False})}
        )
    if getattr(args, "skip_unsafe", False):
        config = config.model_copy(
            update={"extraction": config.extraction.model_copy(update={"on_traversal": "skip"})}
        )
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the treepack command."""
    args = build_parser().parse_args(argv)

    loader = ConfigLoader(TreepackConfig, app_name=APP_NAME)
    try:
        config = loader.load(config_path=args.config)
    except ConfigurationError as e:
        logger.error(str(e))
        return 1

    config = apply_overrides(config, args)
    setup_logging_from_config(config.logging)

    if args.command == "create":
        return create_command(config, args.source, args.archive, args.format)
    if args.command == "list":
        return list_command(config, args.archive, args.format)
    return extract_command(config, args.archive, args.out_dir, args.format)


if __name__ == "__main__":
    sys.exit(main())
