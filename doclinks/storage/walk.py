from __future__ import annotations

import asyncio
from typing import Optional

from .base import FileSystemService


async def walk_files(
    directory: str, fs: FileSystemService, *, suffix: Optional[str] = None
) -> list[str]:
    """Return every file under ``directory`` (optionally filtered by suffix), sorted by path."""
    entries = await fs.list(fs.resolve(directory))

    nested = await asyncio.gather(
        *(walk_files(e.path, fs, suffix=suffix) for e in entries if e.is_dir())
    )
    files = [
        e.path
        for e in entries
        if e.is_file() and (suffix is None or e.name.endswith(suffix))
    ]
    for sub in nested:
        files.extend(sub)
    return sorted(files)


async def walk_markdown_files(directory: str, fs: FileSystemService) -> list[str]:
    return await walk_files(directory, fs, suffix=".md")
