from .base import DirEntry, FileStat, FileSystemService
from .in_memory import InMemoryFileSystemService
from .local import LocalFileSystemService
from .walk import walk_files, walk_markdown_files

__all__ = [
    "DirEntry",
    "FileStat",
    "FileSystemService",
    "InMemoryFileSystemService",
    "LocalFileSystemService",
    "walk_files",
    "walk_markdown_files",
]
