"""
Apply ``Replacement`` batches to file text.

Offsets in a batch always refer to the original text, so offset edits are
applied from the end of the file towards the start.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional, Sequence

from ..models import ApplyResult, ParsedLink, Replacement, ReplacementKind
from ..storage import FileSystemService

logger = logging.getLogger(__name__)

# How far around a stale range to look for the old href.
SEARCH_WINDOW = 64

LinkExtractor = Callable[[str], Sequence[ParsedLink]]
ReplacementGenerator = Callable[
    [Sequence[ParsedLink], str, str], Awaitable[Sequence[Replacement]]
]


def apply_replacements(content: str, replacements: Sequence[Replacement]) -> ApplyResult:
    """Apply every replacement once and return the new text with counters.

    Offset edits whose range no longer holds ``old_href`` are re-anchored on
    the nearest occurrence inside a small window. Ranges outside the text are
    skipped. Edits without offsets patch the first occurrence on their line.
    """
    result = ApplyResult(content=content)
    if not replacements:
        return result

    with_offsets = [r for r in replacements if r.has_offsets()]
    by_line = [r for r in replacements if not r.has_offsets()]

    text = content
    for r in sorted(with_offsets, key=lambda r: r.start, reverse=True):
        start, end = r.start, r.end
        if start < 0 or end > len(text) or start >= end:
            logger.debug("Skipping invalid range %d:%d for %s", start, end, r.old_href)
            continue
        if text[start:end] != r.old_href:
            located = _locate_near(text, r.old_href, start, end)
            if located is None:
                logger.debug("Could not find %r near %d:%d", r.old_href, start, end)
                continue
            start, end = located
        text = text[:start] + r.new_href + text[end:]
        result.count(ReplacementKind(r.kind).value)

    for r in by_line:
        patched = replace_link_on_line(text, r.line, r.old_href, r.new_href)
        if patched is None:
            logger.debug("Href %r not found on line %d", r.old_href, r.line)
            continue
        text = patched
        result.count(ReplacementKind(r.kind).value)

    result.content = text
    return result


def _locate_near(text: str, needle: str, start: int, end: int) -> Optional[tuple[int, int]]:
    if not needle:
        return None
    idx = text.find(needle, max(0, start - SEARCH_WINDOW))
    if idx < 0 or idx > end + SEARCH_WINDOW:
        return None
    return idx, idx + len(needle)


def replace_link_on_line(
    content: str, line_number: int, old_href: str, new_href: str
) -> Optional[str]:
    """Replace the first ``old_href`` on a 1-based line, keeping line endings.

    Returns ``None`` when the line does not exist or does not contain the href.
    """
    lines = content.split("\n")
    if not old_href or not 0 < line_number <= len(lines):
        return None

    raw = lines[line_number - 1]
    body = raw[:-1] if raw.endswith("\r") else raw
    if old_href not in body:
        return None
    lines[line_number - 1] = body.replace(old_href, new_href, 1) + raw[len(body):]
    return "\n".join(lines)


async def process_file_replacement(
    file: str,
    generate: ReplacementGenerator,
    fs: FileSystemService,
    extract_links: LinkExtractor,
) -> ApplyResult:
    """Read one file, generate and apply its edits, write it back if changed."""
    content = await fs.read(file)
    links = extract_links(content)
    replacements = await generate(links, file, content)

    result = apply_replacements(content, replacements)
    if result.content != content:
        await fs.write(file, result.content)
        logger.info("Updated %s (%d replacements)", file, result.applied)
    return result
