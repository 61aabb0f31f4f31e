"""
Exceptions raised by doclinks.

Link resolution failures are not exceptions: they are reported as
``ErrorLog`` records. Everything here interrupts a single storage operation.
"""

from __future__ import annotations


class DoclinksError(Exception):
    """Base class for all doclinks errors."""


class StorageError(DoclinksError, OSError):
    """Raised by a FileSystemService operation.

    Attributes:
        path: The path the failing operation was given.
    """

    def __init__(self, message: str, path: str = "") -> None:
        self.path = path
        super().__init__(message)

    def __str__(self) -> str:
        return self.args[0] if self.args else ""


class FileNotFoundInStorageError(StorageError, FileNotFoundError):
    """A file operation (read, delete, copy) found no file at the path."""

    def __init__(self, path: str) -> None:
        super().__init__(f"File not found: {path}", path)


class PathNotFoundError(StorageError, FileNotFoundError):
    """Neither a file nor a directory exists at the path (move, remove)."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Path not found: {path}", path)


class NoSuchFileOrDirectoryError(StorageError, FileNotFoundError):
    """Raised by list/stat for an unknown path."""

    def __init__(self, path: str) -> None:
        super().__init__(f"no such file or directory '{path}'", path)


class DirectoryNotEmptyError(StorageError):
    """Non-recursive removal of a directory that still has children."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Directory not empty: {path}", path)


class ArchiveNotFoundError(StorageError, FileNotFoundError):
    """extract_archive was given a path with no archive behind it."""

    def __init__(self, path: str) -> None:
        super().__init__(f"ZIP file not found: {path}", path)


class UnsafeArchiveEntryError(StorageError):
    """An archive entry would be written outside the destination directory."""

    def __init__(self, entry: str, dest_dir: str) -> None:
        self.entry = entry
        super().__init__(
            f"Archive entry escapes destination {dest_dir}: {entry}", dest_dir
        )
