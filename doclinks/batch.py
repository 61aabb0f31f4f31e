"""
Corpus-level drivers.

Each driver runs a per-file worker over many files with bounded concurrency.
A failing file is logged and recorded; the remaining files still run.
"""

from __future__ import annotations

import asyncio
import logging
import posixpath
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

from .config import LinkProcessingConfig
from .links.applier import (
    LinkExtractor,
    ReplacementGenerator,
    apply_replacements,
    process_file_replacement,
)
from .links.processor import (
    check_bad_link_format,
    generate_existence_check_replacements,
    generate_normalization_replacements,
    generate_path_substitution_replacements,
)
from .links.utils import split_lines
from .models import ApplyResult, ErrorLog, ParsedLink, Replacement
from .storage import FileSystemService, walk_markdown_files

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 10

T = TypeVar("T")


@dataclass
class FileFailure:
    file: str
    error: str


@dataclass
class BatchResult:
    processed: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)
    by_kind: dict[str, int] = field(default_factory=dict)
    failures: list[FileFailure] = field(default_factory=list)

    @property
    def applied(self) -> int:
        return sum(self.by_kind.values())

    def record(self, file: str, result: ApplyResult) -> None:
        self.processed.append(file)
        if result.applied:
            self.modified.append(file)
        for kind, n in result.by_kind.items():
            self.by_kind[kind] = self.by_kind.get(kind, 0) + n


@dataclass
class CheckReport:
    files_checked: int = 0
    patched: int = 0
    errors: list[ErrorLog] = field(default_factory=list)
    failures: list[FileFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors and not self.failures


async def _run_bounded(
    files: Sequence[str],
    worker: Callable[[str], Awaitable[T]],
    concurrency_limit: int,
) -> list[tuple[str, Optional[T], Optional[Exception]]]:
    semaphore = asyncio.Semaphore(max(1, concurrency_limit))

    async def run_one(file: str) -> tuple[str, Optional[T], Optional[Exception]]:
        async with semaphore:
            try:
                return file, await worker(file), None
            except Exception as e:
                logger.error("Failed to process %s: %s", file, e)
                return file, None, e

    return list(await asyncio.gather(*[run_one(f) for f in files]))


async def process_files_with_link_replacements(
    files: Sequence[str],
    generate: ReplacementGenerator,
    fs: FileSystemService,
    extract_links: LinkExtractor,
    concurrency_limit: int = DEFAULT_CONCURRENCY,
) -> BatchResult:
    """Run ``generate`` and apply its edits for every file.

    Args:
        files: Files to process.
        generate: Coroutine producing replacements for ``(links, file, content)``.
        fs: Storage the files live in.
        extract_links: Markdown link extractor for a file's text.
        concurrency_limit: Maximum number of files in flight.

    Returns:
        BatchResult with per-kind counters and the files that failed.
    """

    async def worker(file: str) -> ApplyResult:
        return await process_file_replacement(file, generate, fs, extract_links)

    batch = BatchResult()
    for file, result, error in await _run_bounded(files, worker, concurrency_limit):
        if error is not None:
            batch.failures.append(FileFailure(file=file, error=str(error)))
        else:
            batch.record(file, result)

    logger.info(
        "Processed %d files, modified %d, %d failed",
        len(batch.processed),
        len(batch.modified),
        len(batch.failures),
    )
    return batch


def normalization_generator(
    config: LinkProcessingConfig, fs: FileSystemService
) -> ReplacementGenerator:
    async def generate(
        links: Sequence[ParsedLink], file: str, content: str
    ) -> list[Replacement]:
        return await generate_normalization_replacements(links, file, config, fs)

    return generate


def path_substitution_generator(
    old_base: str, new_base: str, *extra_pairs: tuple[str, str], exact: bool = False
) -> ReplacementGenerator:
    """Generator swapping ``old_base`` for ``new_base`` (and any extra pairs)."""
    pairs = [(old_base, new_base), *extra_pairs]

    async def generate(
        links: Sequence[ParsedLink], file: str, content: str
    ) -> list[Replacement]:
        remaining = list(links)
        replacements: list[Replacement] = []
        for old, new in pairs:
            found = generate_path_substitution_replacements(
                remaining, old, new, exact=exact
            )
            replacements.extend(found)
            touched = {(r.line, r.start, r.old_href) for r in found}
            remaining = [
                link for link in remaining if (link.line, link.start, link.href) not in touched
            ]
        return replacements

    return generate


async def normalize_links(
    files: Sequence[str],
    config: LinkProcessingConfig,
    fs: FileSystemService,
    extract_links: LinkExtractor,
    concurrency_limit: int = DEFAULT_CONCURRENCY,
) -> BatchResult:
    return await process_files_with_link_replacements(
        files,
        normalization_generator(config, fs),
        fs,
        extract_links,
        concurrency_limit=concurrency_limit,
    )


async def check_links(
    files: Sequence[str],
    config: LinkProcessingConfig,
    fs: FileSystemService,
    extract_links: LinkExtractor,
    concurrency_limit: int = DEFAULT_CONCURRENCY,
) -> CheckReport:
    """Existence pass over a corpus.

    Healed links are written back; links that cannot be healed end up in
    ``CheckReport.errors``.
    """

    async def worker(file: str) -> tuple[ApplyResult, list[ErrorLog]]:
        content = await fs.read(file)
        lines = split_lines(content)
        checked = await generate_existence_check_replacements(
            links=extract_links(content),
            file=file,
            config=config,
            file_service=fs,
            lines=lines,
        )
        errors = check_bad_link_format(file, lines) + checked.errors
        result = apply_replacements(content, checked.replacements)
        if result.content != content:
            await fs.write(file, result.content)
            logger.info("Healed %d links in %s", result.applied, file)
        return result, errors

    report = CheckReport()
    for file, outcome, error in await _run_bounded(files, worker, concurrency_limit):
        if error is not None:
            report.failures.append(FileFailure(file=file, error=str(error)))
            continue
        result, errors = outcome
        report.files_checked += 1
        report.patched += result.applied
        report.errors.extend(errors)

    if report.errors:
        logger.warning("%d broken links in %d files", len(report.errors), len(files))
    return report


async def process_directory_with_link_replacements(
    root: str,
    generate: ReplacementGenerator,
    fs: FileSystemService,
    extract_links: LinkExtractor,
    concurrency_limit: int = DEFAULT_CONCURRENCY,
) -> BatchResult:
    """``process_files_with_link_replacements`` over every ``*.md`` under ``root``."""
    files = await walk_markdown_files(root, fs)
    logger.info("Found %d markdown files under %s", len(files), root)
    return await process_files_with_link_replacements(
        files, generate, fs, extract_links, concurrency_limit=concurrency_limit
    )


async def process_path_substitution(
    root: str,
    old_base: str,
    new_base: str,
    fs: FileSystemService,
    extract_links: LinkExtractor,
    concurrency_limit: int = DEFAULT_CONCURRENCY,
) -> BatchResult:
    """Rewrite the ``old_base`` prefix to ``new_base`` in every markdown file under ``root``.

    Nothing is moved and no target is checked.
    """
    return await process_directory_with_link_replacements(
        root,
        path_substitution_generator(old_base, new_base),
        fs,
        extract_links,
        concurrency_limit=concurrency_limit,
    )


async def relocate_path(
    old_path: str,
    new_path: str,
    config: LinkProcessingConfig,
    fs: FileSystemService,
    extract_links: LinkExtractor,
    concurrency_limit: int = DEFAULT_CONCURRENCY,
) -> BatchResult:
    """Move a file or directory and rewrite every link that pointed into it.

    Both dataset-relative (``docs/old/x.md``) and absolute links are
    rewritten. Links relative to their host file are left to ``check_links``.
    """
    dataset_root = fs.resolve(config.dataset_root)
    old_abs = fs.resolve(old_path)
    new_abs = fs.resolve(new_path)

    await fs.move(old_abs, new_abs)
    logger.info("Relocated %s -> %s", old_abs, new_abs)

    # "docs/guide/" must not match "docs/guides/...", "docs/a.md" not "docs/a.mdx"
    is_dir = await fs.is_dir(new_abs)
    sep = "/" if is_dir else ""
    generate = path_substitution_generator(
        posixpath.relpath(old_abs, dataset_root) + sep,
        posixpath.relpath(new_abs, dataset_root) + sep,
        (old_abs + sep, new_abs + sep),
        exact=not is_dir,
    )
    return await process_directory_with_link_replacements(
        dataset_root, generate, fs, extract_links, concurrency_limit=concurrency_limit
    )
