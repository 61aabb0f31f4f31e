"""
Path resolution for markdown link targets.

``resolve_markdown_path`` only computes where a link claims to point.
``try_resolve_path_variants`` is the healing search run after that target
turned out to be missing.
"""

from __future__ import annotations

import logging
import posixpath
from typing import Awaitable, Callable, Optional, Sequence

from ..storage import FileSystemService, walk_files
from .utils import normalize_link_slashes, split_link_parts, strip_anchor

logger = logging.getLogger(__name__)

INDEX_NAMES = ("index.md", "README.md")
ROOT_MARKERS = (".git", "package.json", "pyproject.toml", ".doclinks")


def resolve_markdown_path(
    file: str,
    link_path: str,
    docs_folders: Sequence[str],
    dataset_root: str,
) -> str:
    """Turn a link target into the absolute path it refers to.

    - absolute targets are returned as-is (normalised)
    - targets whose first segment is a docs folder are anchored at ``dataset_root``
    - everything else is relative to the directory of ``file``

    The anchor is ignored. Existence is not checked.
    """
    if not link_path:
        raise ValueError("link_path is empty")

    target = normalize_link_slashes(strip_anchor(link_path))
    if not target:
        return posixpath.normpath(file)
    if posixpath.isabs(target):
        return posixpath.normpath(target)

    first_segment = target.split("/", 1)[0]
    if first_segment in docs_folders:
        return posixpath.normpath(posixpath.join(dataset_root, target))
    return posixpath.normpath(posixpath.join(posixpath.dirname(file), target))


async def try_resolve_path_variants(
    *,
    file: str,
    link_path: str,
    docs_folders: Sequence[str],
    file_service: FileSystemService,
    dataset_root: str,
) -> Optional[str]:
    """Search for an existing target a broken link most likely meant.

    Strategies run in a fixed order and the first candidate that exists wins:

    1. drop leading ``../`` segments one at a time
    2. a file with the same basename inside ``docs_folders`` (array order,
       direct child before nested matches, nested matches in path order)
    3. ``.md`` suffix variants
    4. ``index.md`` <-> ``README.md`` for directory landing pages
    5. case-insensitive match of every path segment

    Query and anchor are carried over verbatim. Returns ``None`` when nothing
    matches so the caller records an error instead of guessing.
    """
    path, query, anchor = split_link_parts(normalize_link_slashes(link_path))
    if not path:
        return None

    async def exists(candidate: str) -> bool:
        resolved = resolve_markdown_path(file, candidate, docs_folders, dataset_root)
        return await file_service.exists(resolved)

    strategies: list[Callable[[], Awaitable[Optional[str]]]] = [
        lambda: _first_existing(_back_step_candidates(path), exists),
        lambda: _search_docs_folders(
            path,
            docs_folders=docs_folders,
            dataset_root=dataset_root,
            fs=file_service,
        ),
        lambda: _first_existing(_suffix_candidates(path), exists),
        lambda: _first_existing(_index_candidates(path), exists),
        lambda: _case_insensitive_candidate(
            path,
            file=file,
            docs_folders=docs_folders,
            dataset_root=dataset_root,
            fs=file_service,
        ),
    ]

    for strategy in strategies:
        candidate = await strategy()
        if candidate and candidate != path and await exists(candidate):
            fixed = candidate + query + anchor
            logger.debug("Healed link %s -> %s in %s", link_path, fixed, file)
            return fixed
    return None


async def _first_existing(
    candidates: Sequence[str], exists: Callable[[str], Awaitable[bool]]
) -> Optional[str]:
    for candidate in candidates:
        if await exists(candidate):
            return candidate
    return None


def _back_step_candidates(path: str) -> list[str]:
    if not path.startswith("../"):
        return []
    segments = path.split("/")
    back_steps = sum(1 for s in segments if s == "..")
    candidates = []
    for i in range(1, back_steps + 1):
        candidate = "/".join(segments[i:])
        if candidate:
            candidates.append(candidate)
    return candidates


def _suffix_candidates(path: str) -> list[str]:
    if path.endswith("/"):
        bare = path.rstrip("/")
        return [bare + ".md"] if bare and not bare.endswith(".") else []
    if path.endswith(".md") or path.endswith("."):
        return []
    return [path + ".md"]


def _index_candidates(path: str) -> list[str]:
    parent, name = posixpath.split(path)
    if name.lower() not in {n.lower() for n in INDEX_NAMES}:
        return []
    others = [n for n in INDEX_NAMES if n.lower() != name.lower()]
    return [posixpath.join(parent, n) if parent else n for n in others]


async def _search_docs_folders(
    path: str,
    *,
    docs_folders: Sequence[str],
    dataset_root: str,
    fs: FileSystemService,
) -> Optional[str]:
    basename = posixpath.basename(path.rstrip("/"))
    if not basename or basename in {".", ".."}:
        return None
    names = [basename] if basename.endswith(".md") else [basename, basename + ".md"]

    for folder in docs_folders:
        folder_root = posixpath.normpath(posixpath.join(dataset_root, folder))
        if not await fs.is_dir(folder_root):
            continue
        for name in names:
            direct = posixpath.join(folder_root, name)
            if await fs.is_file(direct):
                return posixpath.relpath(direct, dataset_root)
        for found in await walk_files(folder_root, fs):
            if posixpath.basename(found) in names:
                return posixpath.relpath(found, dataset_root)
    return None


async def _case_insensitive_candidate(
    path: str,
    *,
    file: str,
    docs_folders: Sequence[str],
    dataset_root: str,
    fs: FileSystemService,
) -> Optional[str]:
    is_abs = path.startswith("/")
    trailing = "/" if path.endswith("/") and path != "/" else ""
    segments = [s for s in path.split("/") if s]

    lead: list[str] = []
    while segments and segments[0] in {".", ".."}:
        lead.append(segments.pop(0))
    if not segments:
        return None

    if is_abs:
        current = "/"
    elif not lead and segments[0] in docs_folders:
        current = dataset_root
    else:
        current = posixpath.normpath(posixpath.join(posixpath.dirname(file), *lead))

    fixed: list[str] = []
    for segment in segments:
        if not await fs.is_dir(current):
            return None
        names = [e.name for e in await fs.list(current)]
        if segment in names:
            match: Optional[str] = segment
        else:
            match = next((n for n in names if n.lower() == segment.lower()), None)
        if match is None:
            return None
        fixed.append(match)
        current = posixpath.join(current, match)

    return ("/" if is_abs else "") + "/".join(lead + fixed) + trailing


async def detect_dataset_root(
    start_dir: str, fs: FileSystemService, max_depth: int = 10
) -> Optional[str]:
    """Walk up from ``start_dir`` looking for a repository marker."""
    current = fs.resolve(start_dir)
    for _ in range(max_depth):
        for marker in ROOT_MARKERS:
            if await fs.exists(posixpath.join(current, marker)):
                return current
        parent = posixpath.dirname(current)
        if not parent or parent == current:
            break
        current = parent
    return None


async def resolve_markdown_path_auto(
    *,
    file: str,
    link_path: str,
    docs_folders: Sequence[str],
    fs: FileSystemService,
    dataset_root: Optional[str] = None,
) -> str:
    """``resolve_markdown_path`` that detects the dataset root when it is not given."""
    root = dataset_root
    if not root:
        start = posixpath.dirname(file)
        root = await detect_dataset_root(start, fs) or start
    return fs.resolve(resolve_markdown_path(file, link_path, docs_folders, root))
