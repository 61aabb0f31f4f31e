"""
Per-link decision logic.

Each public generator walks the links of one file and returns the text
edits (and, for the existence check, the unresolved links) for that file.
Links are independent, so they are resolved concurrently and the results are
put back into ``(line, start)`` order before they are returned.
"""

from __future__ import annotations

import asyncio
import logging
import posixpath
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from ..config import LinkProcessingConfig
from ..models import ErrorLog, ErrorType, ParsedLink, Replacement, ReplacementKind
from ..storage import FileSystemService
from .resolver import resolve_markdown_path, try_resolve_path_variants
from .utils import (
    escapes_upward,
    find_bad_link_formats,
    is_external_link,
    is_placeholder_link,
    normalize_link_slashes,
    split_link_parts,
)

logger = logging.getLogger(__name__)


@dataclass
class ExistenceCheckResult:
    replacements: list[Replacement] = field(default_factory=list)
    errors: list[ErrorLog] = field(default_factory=list)


def should_skip_link(href: Optional[str], exclusion_list: Sequence[str] = ()) -> bool:
    """Links the engine never resolves: empty, external, excluded or placeholders."""
    return (
        not href
        or is_external_link(href)
        or any(href.startswith(prefix) for prefix in exclusion_list)
        or is_placeholder_link(href)
    )


def sort_replacements(replacements: Iterable[Replacement]) -> list[Replacement]:
    """Order by ``(line, start)`` and drop duplicates of the same span."""
    seen: set[tuple[int, Optional[int], Optional[int], str]] = set()
    result: list[Replacement] = []
    ordered = sorted(
        replacements,
        key=lambda r: (r.line, -1 if r.start is None else r.start),
    )
    for r in ordered:
        key = (r.line, r.start, r.end, r.old_href)
        if key in seen:
            continue
        seen.add(key)
        result.append(r)
    return result


# --- normalization -----------------------------------------------------------


async def generate_normalization_replacements(
    links: Sequence[ParsedLink],
    file: str,
    config: LinkProcessingConfig,
    file_service: FileSystemService,
) -> list[Replacement]:
    """Rewrite links to their canonical form without changing their target.

    Targets inside the host directory's tree become host-relative
    (``normalizedRel``); targets outside it but inside a docs folder become
    dataset-relative (``normalizedFull``). Missing targets are left alone.
    """
    abs_file = file_service.resolve(file)
    results = await asyncio.gather(
        *(
            _normalize_link(link, file=abs_file, config=config, fs=file_service)
            for link in links
        )
    )
    return sort_replacements(r for r in results if r is not None)


async def _normalize_link(
    link: ParsedLink,
    *,
    file: str,
    config: LinkProcessingConfig,
    fs: FileSystemService,
) -> Optional[Replacement]:
    href = link.href
    if should_skip_link(href, config.exclusion_list):
        return None
    path, query, anchor = split_link_parts(href)
    if not path:
        return None

    dataset_root = fs.resolve(config.dataset_root)
    abs_target = resolve_markdown_path(file, path, config.docs_folders, dataset_root)
    suffix = query + anchor

    rel_from_host = posixpath.relpath(abs_target, posixpath.dirname(file))
    if not escapes_upward(rel_from_host):
        if rel_from_host == "." or not await fs.exists(abs_target):
            return None
        normalized = rel_from_host + suffix
        kind = ReplacementKind.NORMALIZED_REL
    else:
        rel_to_root = posixpath.relpath(abs_target, dataset_root)
        if rel_to_root == "." or escapes_upward(rel_to_root):
            return None
        if rel_to_root.split("/", 1)[0] not in config.docs_folders:
            return None
        if not await fs.exists(abs_target):
            return None
        normalized = normalize_link_slashes(rel_to_root) + suffix
        kind = ReplacementKind.NORMALIZED_FULL

    if normalized == href:
        return None
    return Replacement.for_link(link, new_href=normalized, kind=kind)


# --- existence check ---------------------------------------------------------


async def generate_existence_check_replacements(
    *,
    links: Sequence[ParsedLink],
    file: str,
    config: LinkProcessingConfig,
    file_service: FileSystemService,
    lines: Sequence[str],
) -> ExistenceCheckResult:
    """Verify every link target; heal what can be healed, report the rest."""
    abs_file = file_service.resolve(file)
    outcomes = await asyncio.gather(
        *(
            _check_link(link, file=abs_file, config=config, fs=file_service)
            for link in links
        )
    )

    result = ExistenceCheckResult()
    for link, (replacement, missing) in zip(links, outcomes):
        if replacement is not None:
            result.replacements.append(replacement)
        if missing:
            result.errors.append(
                ErrorLog(
                    type=ErrorType.LINK_TARGET_NOT_FOUND,
                    file=file,
                    line_number=link.line,
                    line=lines[link.line - 1] if 0 < link.line <= len(lines) else "",
                )
            )
            logger.warning("Link target not found: %s (%s:%d)", link.href, file, link.line)
    result.replacements = sort_replacements(result.replacements)
    return result


async def _check_link(
    link: ParsedLink,
    *,
    file: str,
    config: LinkProcessingConfig,
    fs: FileSystemService,
) -> tuple[Optional[Replacement], bool]:
    """Return ``(patch, missing)`` for one link."""
    href = link.href
    if should_skip_link(href, config.exclusion_list):
        return None, False
    path = split_link_parts(href).path
    if not path:
        return None, False

    dataset_root = fs.resolve(config.dataset_root)
    abs_target = resolve_markdown_path(file, path, config.docs_folders, dataset_root)
    if await fs.exists(abs_target):
        return None, False

    fixed = await try_resolve_path_variants(
        file=file,
        link_path=href,
        docs_folders=config.docs_folders,
        file_service=fs,
        dataset_root=dataset_root,
    )
    if fixed:
        return Replacement.for_link(link, new_href=fixed, kind=ReplacementKind.PATCHED), False
    return None, True


# --- path substitution -------------------------------------------------------


def generate_path_substitution_replacements(
    links: Sequence[ParsedLink], old_base: str, new_base: str, *, exact: bool = False
) -> list[Replacement]:
    """Swap the ``old_base`` prefix for ``new_base`` on every local link.

    With ``exact`` the prefix must be the whole path, optionally followed by
    a query or anchor. No existence check: the caller has already moved the
    files.
    """
    replacements = []
    for link in links:
        href = link.href
        if not href or is_external_link(href):
            continue
        norm = normalize_link_slashes(href)
        if not norm.startswith(old_base):
            continue
        rest = norm[len(old_base):]
        if exact and rest and rest[0] not in "?#":
            continue
        replacements.append(
            Replacement.for_link(
                link,
                new_href=new_base + rest,
                kind=ReplacementKind.PATH_SUBSTITUTION,
            )
        )
    return sort_replacements(replacements)


# --- format check ------------------------------------------------------------


def check_bad_link_format(file: str, lines: Sequence[str]) -> list[ErrorLog]:
    """One ``BAD LINK FORMAT`` error per ``:name.md:`` fragment left in the text."""
    errors = []
    for number, line in enumerate(lines, start=1):
        for fragment in find_bad_link_formats(line):
            errors.append(
                ErrorLog(
                    type=ErrorType.BAD_LINK_FORMAT,
                    file=file,
                    line_number=number,
                    line=line,
                )
            )
            logger.warning("Bad link format: %s (%s:%d)", fragment, file, number)
    return errors
