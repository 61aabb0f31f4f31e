from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class DirEntry:
    """A direct child returned by ``FileSystemService.list``.

    Mirrors the predicate surface of ``os.DirEntry`` so callers can treat
    entries from either backend the same way.
    """

    name: str
    path: str
    kind: str  # "file" | "dir"

    def is_file(self) -> bool:
        return self.kind == "file"

    def is_dir(self) -> bool:
        return self.kind == "dir"

    def is_symlink(self) -> bool:
        return False


@dataclass(frozen=True)
class FileStat:
    is_file: bool
    is_dir: bool


class FileSystemService(ABC):
    """Storage contract shared by the disk and in-memory backends.

    Paths may be absolute or relative to the instance working directory
    (``cwd``). All I/O is asynchronous; path arithmetic is not.
    """

    @property
    @abstractmethod
    def cwd(self) -> str: ...

    @property
    @abstractmethod
    def module_root(self) -> str: ...

    @abstractmethod
    def chdir(self, path: str) -> None: ...

    @abstractmethod
    def resolve(self, *paths: str) -> str: ...

    @abstractmethod
    async def read(self, path: str) -> str: ...

    @abstractmethod
    async def read_bytes(self, path: str) -> bytes: ...

    @abstractmethod
    async def write(self, path: str, content: str) -> None: ...

    @abstractmethod
    async def write_bytes(self, path: str, data: bytes) -> None: ...

    @abstractmethod
    async def exists(self, path: str) -> bool: ...

    @abstractmethod
    async def delete(self, path: str) -> None: ...

    @abstractmethod
    async def move(self, old_path: str, new_path: str) -> None: ...

    @abstractmethod
    async def copy(self, old_path: str, new_path: str) -> None: ...

    @abstractmethod
    async def mkdir(self, path: str, *, recursive: bool = False) -> None: ...

    @abstractmethod
    async def list(self, path: str) -> list[DirEntry]: ...

    @abstractmethod
    async def stat(self, path: str) -> FileStat: ...

    @abstractmethod
    async def remove(
        self, path: str, *, recursive: bool = False, force: bool = False
    ) -> None: ...

    @abstractmethod
    async def create_archive(self, sources: Iterable[str], archive_path: str) -> None: ...

    @abstractmethod
    async def extract_archive(self, archive_path: str, dest_dir: str) -> None: ...

    async def is_file(self, path: str) -> bool:
        if not await self.exists(path):
            return False
        return (await self.stat(path)).is_file

    async def is_dir(self, path: str) -> bool:
        if not await self.exists(path):
            return False
        return (await self.stat(path)).is_dir
