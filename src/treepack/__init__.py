"""treepack - portable zip/tar packaging of files and directory trees."""

__version__ = "0.1.0"
