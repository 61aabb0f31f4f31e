from __future__ import annotations

import asyncio
import errno
import logging
import os
import shutil
import zipfile
from stat import S_ISDIR, S_ISREG
from typing import Iterable, Optional

from ..errors import (
    ArchiveNotFoundError,
    DirectoryNotEmptyError,
    FileNotFoundInStorageError,
    NoSuchFileOrDirectoryError,
    PathNotFoundError,
)
from .archive import safe_entry_name
from .base import DirEntry, FileStat, FileSystemService

logger = logging.getLogger(__name__)


class LocalFileSystemService(FileSystemService):
    """FileSystemService over the real disk.

    Blocking calls run in worker threads via ``asyncio.to_thread``. The
    working directory is instance state; the process cwd is never changed.
    """

    def __init__(
        self,
        working_directory: Optional[str] = None,
        module_root: Optional[str] = None,
    ) -> None:
        self._cwd = os.path.abspath(working_directory or os.getcwd())
        self._module_root = os.path.abspath(module_root or self._cwd)

    @property
    def cwd(self) -> str:
        return self._cwd

    @property
    def module_root(self) -> str:
        return self._module_root

    def chdir(self, path: str) -> None:
        resolved = self.resolve(path)
        if not os.path.isdir(resolved):
            raise NoSuchFileOrDirectoryError(path)
        self._cwd = resolved

    def resolve(self, *paths: str) -> str:
        return os.path.normpath(os.path.join(self._cwd, *paths))

    # -- reads / writes ----------------------------------------------------

    async def read(self, path: str) -> str:
        resolved = self.resolve(path)

        def _read() -> str:
            # newline="" keeps CRLF files byte-identical on rewrite
            with open(resolved, "r", encoding="utf-8", newline="") as f:
                return f.read()

        try:
            return await asyncio.to_thread(_read)
        except (FileNotFoundError, IsADirectoryError) as e:
            raise FileNotFoundInStorageError(path) from e

    async def read_bytes(self, path: str) -> bytes:
        resolved = self.resolve(path)

        def _read() -> bytes:
            with open(resolved, "rb") as f:
                return f.read()

        try:
            return await asyncio.to_thread(_read)
        except (FileNotFoundError, IsADirectoryError) as e:
            raise FileNotFoundInStorageError(path) from e

    async def write(self, path: str, content: str) -> None:
        resolved = self.resolve(path)

        def _write() -> None:
            os.makedirs(os.path.dirname(resolved), exist_ok=True)
            with open(resolved, "w", encoding="utf-8", newline="") as f:
                f.write(content)

        await asyncio.to_thread(_write)

    async def write_bytes(self, path: str, data: bytes) -> None:
        resolved = self.resolve(path)

        def _write() -> None:
            os.makedirs(os.path.dirname(resolved), exist_ok=True)
            with open(resolved, "wb") as f:
                f.write(data)

        await asyncio.to_thread(_write)

    async def exists(self, path: str) -> bool:
        return await asyncio.to_thread(os.path.exists, self.resolve(path))

    async def delete(self, path: str) -> None:
        resolved = self.resolve(path)

        def _delete() -> None:
            if not os.path.isfile(resolved):
                raise FileNotFoundInStorageError(path)
            os.remove(resolved)

        await asyncio.to_thread(_delete)

    # -- tree operations ---------------------------------------------------

    async def mkdir(self, path: str, *, recursive: bool = False) -> None:
        resolved = self.resolve(path)

        def _mkdir() -> None:
            if recursive:
                os.makedirs(resolved, exist_ok=True)
                return
            try:
                os.mkdir(resolved)
            except FileExistsError:
                if not os.path.isdir(resolved):
                    raise
            except FileNotFoundError as e:
                raise NoSuchFileOrDirectoryError(os.path.dirname(path) or path) from e

        await asyncio.to_thread(_mkdir)

    async def move(self, old_path: str, new_path: str) -> None:
        old = self.resolve(old_path)
        new = self.resolve(new_path)

        def _move() -> None:
            if not os.path.exists(old):
                raise PathNotFoundError(old_path)
            os.makedirs(os.path.dirname(new), exist_ok=True)
            shutil.move(old, new)

        await asyncio.to_thread(_move)
        logger.debug("Moved %s -> %s", old, new)

    async def copy(self, old_path: str, new_path: str) -> None:
        old = self.resolve(old_path)
        new = self.resolve(new_path)

        def _copy() -> None:
            if not os.path.exists(old):
                raise FileNotFoundInStorageError(old_path)
            if os.path.isdir(old):
                shutil.copytree(old, new, dirs_exist_ok=True)
                return
            os.makedirs(os.path.dirname(new), exist_ok=True)
            shutil.copy2(old, new)

        await asyncio.to_thread(_copy)

    async def list(self, path: str) -> list[DirEntry]:
        resolved = self.resolve(path)

        def _scan() -> list[DirEntry]:
            with os.scandir(resolved) as it:
                return [
                    DirEntry(
                        name=e.name,
                        path=e.path,
                        kind="dir" if e.is_dir(follow_symlinks=True) else "file",
                    )
                    for e in it
                ]

        try:
            entries = await asyncio.to_thread(_scan)
        except (FileNotFoundError, NotADirectoryError) as e:
            raise NoSuchFileOrDirectoryError(path) from e
        return sorted(entries, key=lambda e: e.name)

    async def stat(self, path: str) -> FileStat:
        resolved = self.resolve(path)
        try:
            st = await asyncio.to_thread(os.stat, resolved)
        except FileNotFoundError as e:
            raise NoSuchFileOrDirectoryError(path) from e
        return FileStat(is_file=S_ISREG(st.st_mode), is_dir=S_ISDIR(st.st_mode))

    async def remove(
        self, path: str, *, recursive: bool = False, force: bool = False
    ) -> None:
        resolved = self.resolve(path)

        def _remove() -> None:
            if not os.path.lexists(resolved):
                if force:
                    return
                raise PathNotFoundError(path)
            if not os.path.isdir(resolved) or os.path.islink(resolved):
                os.remove(resolved)
                return
            if recursive:
                shutil.rmtree(resolved)
                return
            try:
                os.rmdir(resolved)
            except OSError as e:
                if e.errno in (errno.ENOTEMPTY, errno.EEXIST):
                    raise DirectoryNotEmptyError(path) from e
                raise

        await asyncio.to_thread(_remove)

    # -- archives ----------------------------------------------------------

    async def create_archive(self, sources: Iterable[str], archive_path: str) -> None:
        resolved_sources = [(s, self.resolve(s)) for s in sources]
        archive = self.resolve(archive_path)

        def _create() -> int:
            for original, resolved in resolved_sources:
                if not os.path.exists(resolved):
                    raise PathNotFoundError(original)
            os.makedirs(os.path.dirname(archive), exist_ok=True)
            members: dict[str, str] = {}
            for _, src in resolved_sources:
                if os.path.isfile(src):
                    members[os.path.basename(src)] = src
                    continue
                for root, dirs, files in os.walk(src):
                    dirs.sort()
                    for name in sorted(files):
                        full = os.path.join(root, name)
                        if full == archive:
                            continue
                        arcname = os.path.relpath(full, src).replace(os.sep, "/")
                        members[arcname] = full
            with zipfile.ZipFile(archive, "w", compression=zipfile.ZIP_DEFLATED) as zf:
                for arcname, full in members.items():
                    zf.write(full, arcname)
            return len(members)

        count = await asyncio.to_thread(_create)
        logger.debug("Created archive %s with %d entries", archive, count)

    async def extract_archive(self, archive_path: str, dest_dir: str) -> None:
        archive = self.resolve(archive_path)
        dest = self.resolve(dest_dir)

        def _extract() -> None:
            if not os.path.isfile(archive):
                raise ArchiveNotFoundError(archive_path)
            os.makedirs(dest, exist_ok=True)
            with zipfile.ZipFile(archive) as zf:
                for info in zf.infolist():
                    name = safe_entry_name(info.filename, dest)
                    target = os.path.join(dest, *name.split("/"))
                    if info.is_dir():
                        os.makedirs(target, exist_ok=True)
                        continue
                    os.makedirs(os.path.dirname(target), exist_ok=True)
                    with zf.open(info) as src, open(target, "wb") as out:
                        shutil.copyfileobj(src, out)

        await asyncio.to_thread(_extract)
