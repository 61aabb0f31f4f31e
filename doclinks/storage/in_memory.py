from __future__ import annotations

import logging
import posixpath
from typing import Iterable, Mapping, Optional, Union

from ..errors import (
    ArchiveNotFoundError,
    DirectoryNotEmptyError,
    FileNotFoundInStorageError,
    NoSuchFileOrDirectoryError,
    PathNotFoundError,
)
from .archive import build_zip, iter_zip, safe_entry_name
from .base import DirEntry, FileStat, FileSystemService

logger = logging.getLogger(__name__)


def _parents(path: str) -> Iterable[str]:
    """Yield every ancestor of ``path`` up to and including ``/``."""
    p = posixpath.dirname(path)
    while p:
        yield p
        nxt = posixpath.dirname(p)
        if nxt == p:
            break
        p = nxt


def _rebase(path: str, old_root: str, new_root: str) -> str:
    rel = posixpath.relpath(path, old_root)
    return new_root if rel == "." else posixpath.join(new_root, rel)


def _under(path: str, prefix_dir: str) -> bool:
    if prefix_dir == "/":
        return path.startswith("/")
    return path == prefix_dir or path.startswith(prefix_dir + "/")


class InMemoryFileSystemService(FileSystemService):
    """Dictionary-backed FileSystemService for tests and dry runs.

    Files map path -> bytes, directories are a set of paths. Every ancestor of
    a registered file or directory is itself registered.
    """

    def __init__(
        self,
        initial: Optional[Mapping[str, Union[str, bytes]]] = None,
        module_root: str = "/",
        working_directory: Optional[str] = None,
    ) -> None:
        self._files: dict[str, bytes] = {}
        self._dirs: set[str] = {"/"}
        self._module_root = posixpath.normpath(module_root)
        self._cwd = posixpath.normpath(working_directory or module_root)

        self._add_dir_chain(self._module_root)
        self._add_dir_chain(self._cwd)
        for path, content in (initial or {}).items():
            self._put_file(self.resolve(path), _to_bytes(content))

    # -- path state --------------------------------------------------------

    @property
    def cwd(self) -> str:
        return self._cwd

    @property
    def module_root(self) -> str:
        return self._module_root

    def chdir(self, path: str) -> None:
        self._cwd = self.resolve(path)
        self._add_dir_chain(self._cwd)

    def resolve(self, *paths: str) -> str:
        return posixpath.normpath(posixpath.join(self._cwd, *paths))

    # -- bookkeeping -------------------------------------------------------

    def _add_dir_chain(self, path: str) -> None:
        self._dirs.add(path)
        for parent in _parents(path):
            self._dirs.add(parent)

    def _put_file(self, path: str, data: bytes) -> None:
        self._files[path] = data
        for parent in _parents(path):
            self._dirs.add(parent)

    def _has_children(self, path: str) -> bool:
        return any(posixpath.dirname(f) == path for f in self._files) or any(
            d != path and posixpath.dirname(d) == path for d in self._dirs
        )

    def get_content(self, path: str) -> Optional[str]:
        """Synchronous peek for assertions; ``None`` when absent."""
        data = self._files.get(self.resolve(path))
        return None if data is None else data.decode("utf-8")

    def snapshot(self) -> dict[str, str]:
        return {p: d.decode("utf-8", errors="replace") for p, d in sorted(self._files.items())}

    # -- contract ----------------------------------------------------------

    async def read(self, path: str) -> str:
        return (await self.read_bytes(path)).decode("utf-8")

    async def read_bytes(self, path: str) -> bytes:
        resolved = self.resolve(path)
        if resolved not in self._files:
            raise FileNotFoundInStorageError(path)
        return self._files[resolved]

    async def write(self, path: str, content: str) -> None:
        await self.write_bytes(path, content.encode("utf-8"))

    async def write_bytes(self, path: str, data: bytes) -> None:
        self._put_file(self.resolve(path), bytes(data))

    async def exists(self, path: str) -> bool:
        resolved = self.resolve(path)
        return resolved in self._files or resolved in self._dirs

    async def delete(self, path: str) -> None:
        resolved = self.resolve(path)
        if resolved not in self._files:
            raise FileNotFoundInStorageError(path)
        del self._files[resolved]

    async def mkdir(self, path: str, *, recursive: bool = False) -> None:
        resolved = self.resolve(path)
        if recursive:
            self._add_dir_chain(resolved)
            return
        if posixpath.dirname(resolved) not in self._dirs:
            raise NoSuchFileOrDirectoryError(posixpath.dirname(path) or path)
        self._dirs.add(resolved)

    async def move(self, old_path: str, new_path: str) -> None:
        old = self.resolve(old_path)
        new = self.resolve(new_path)

        if old in self._files:
            self._put_file(new, self._files.pop(old))
            return
        if old not in self._dirs:
            raise PathNotFoundError(old_path)
        if old == new:
            return

        moved_files = {
            _rebase(f, old, new): data for f, data in self._files.items() if _under(f, old)
        }
        moved_dirs = {_rebase(d, old, new) for d in self._dirs if _under(d, old)}

        for f in [f for f in self._files if _under(f, old)]:
            del self._files[f]
        self._dirs -= {d for d in self._dirs if _under(d, old)}

        for d in moved_dirs:
            self._add_dir_chain(d)
        for f, data in moved_files.items():
            self._put_file(f, data)
        logger.debug("Moved %s -> %s (%d files)", old, new, len(moved_files))

    async def copy(self, old_path: str, new_path: str) -> None:
        old = self.resolve(old_path)
        new = self.resolve(new_path)

        if old in self._files:
            self._put_file(new, self._files[old])
            return
        if old not in self._dirs:
            raise FileNotFoundInStorageError(old_path)

        copied_dirs = [_rebase(d, old, new) for d in self._dirs if _under(d, old)]
        copied_files = [
            (_rebase(f, old, new), data) for f, data in self._files.items() if _under(f, old)
        ]
        for d in copied_dirs:
            self._add_dir_chain(d)
        for f, data in copied_files:
            self._put_file(f, data)

    async def list(self, path: str) -> list[DirEntry]:
        resolved = self.resolve(path)
        if resolved not in self._dirs:
            raise NoSuchFileOrDirectoryError(path)

        entries = [
            DirEntry(name=posixpath.basename(d), path=d, kind="dir")
            for d in self._dirs
            if d != resolved and posixpath.dirname(d) == resolved
        ]
        entries.extend(
            DirEntry(name=posixpath.basename(f), path=f, kind="file")
            for f in self._files
            if posixpath.dirname(f) == resolved
        )
        return sorted(entries, key=lambda e: e.name)

    async def stat(self, path: str) -> FileStat:
        resolved = self.resolve(path)
        if resolved in self._dirs:
            return FileStat(is_file=False, is_dir=True)
        if resolved in self._files:
            return FileStat(is_file=True, is_dir=False)
        raise NoSuchFileOrDirectoryError(path)

    async def remove(
        self, path: str, *, recursive: bool = False, force: bool = False
    ) -> None:
        resolved = self.resolve(path)

        if recursive:
            if resolved not in self._files and resolved not in self._dirs:
                if force:
                    return
                raise PathNotFoundError(path)
            for f in [f for f in self._files if _under(f, resolved)]:
                del self._files[f]
            self._dirs -= {d for d in self._dirs if _under(d, resolved)}
            self._dirs.add("/")
            return

        if resolved in self._files:
            del self._files[resolved]
            return
        if resolved in self._dirs:
            if self._has_children(resolved):
                raise DirectoryNotEmptyError(path)
            self._dirs.discard(resolved)
            return
        if not force:
            raise PathNotFoundError(path)

    async def create_archive(self, sources: Iterable[str], archive_path: str) -> None:
        entries: list[tuple[str, bytes]] = []
        for source in sources:
            resolved = self.resolve(source)
            if resolved in self._files:
                entries.append((posixpath.basename(resolved), self._files[resolved]))
            elif resolved in self._dirs:
                for f in sorted(self._files):
                    if f != resolved and _under(f, resolved):
                        entries.append((posixpath.relpath(f, resolved), self._files[f]))
            else:
                raise PathNotFoundError(source)

        await self.write_bytes(archive_path, build_zip(entries))
        logger.debug("Created archive %s with %d entries", archive_path, len(entries))

    async def extract_archive(self, archive_path: str, dest_dir: str) -> None:
        resolved = self.resolve(archive_path)
        if resolved not in self._files:
            raise ArchiveNotFoundError(archive_path)

        dest = self.resolve(dest_dir)
        self._add_dir_chain(dest)
        for name, data in iter_zip(self._files[resolved]):
            self._put_file(posixpath.join(dest, safe_entry_name(name, dest)), data)


def _to_bytes(content: Union[str, bytes]) -> bytes:
    return content if isinstance(content, bytes) else content.encode("utf-8")
