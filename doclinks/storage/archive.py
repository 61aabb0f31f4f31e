"""ZIP helpers shared by both FileSystemService backends."""

from __future__ import annotations

import io
import logging
import posixpath
import zipfile
from typing import Iterable, Iterator

from ..errors import UnsafeArchiveEntryError

logger = logging.getLogger(__name__)


def build_zip(entries: Iterable[tuple[str, bytes]]) -> bytes:
    """Pack ``(name, data)`` pairs into a deflated ZIP.

    A name seen twice keeps the data of its last occurrence.
    """
    unique: dict[str, bytes] = {}
    for name, data in entries:
        if name in unique:
            logger.debug("Duplicate archive entry %s, keeping last", name)
        unique[name] = data

    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, data in unique.items():
            zf.writestr(name, data)
    return buf.getvalue()


def iter_zip(data: bytes) -> Iterator[tuple[str, bytes]]:
    """Yield ``(name, data)`` for every file entry; directory entries are skipped."""
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        for info in zf.infolist():
            if info.is_dir():
                continue
            yield info.filename, zf.read(info)


def safe_entry_name(name: str, dest_dir: str) -> str:
    """Return the normalised entry name, refusing names that leave ``dest_dir``."""
    cleaned = posixpath.normpath(name.replace("\\", "/"))
    if (
        not cleaned
        or cleaned == "."
        or cleaned.startswith("/")
        or cleaned == ".."
        or cleaned.startswith("../")
    ):
        raise UnsafeArchiveEntryError(name, dest_dir)
    return cleaned
