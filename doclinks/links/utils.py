"""String-level helpers for markdown link targets. No I/O."""

from __future__ import annotations

import re
from typing import NamedTuple, Optional

# Any URI scheme (http:, https:, mailto:, ftp:, data:, ...). A single
# letter followed by ":" is a Windows drive, not a scheme.
_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]+:")
_PLACEHOLDER_RE = re.compile(r"^:.*\.md:$")
_BAD_LINK_FORMAT_RE = re.compile(r":[^\s:]+\.md:")
_LINE_BREAK_RE = re.compile(r"\r?\n")


class LinkParts(NamedTuple):
    path: str
    query: str
    anchor: str


def is_external_link(link: Optional[str]) -> bool:
    """True for URLs, ``mailto:`` and pure in-page anchors."""
    if not link:
        return False
    stripped = link.strip()
    return stripped.startswith("#") or bool(_SCHEME_RE.match(stripped))


def is_placeholder_link(link: str) -> bool:
    """Template placeholders of the shape ``:name.md:``."""
    return bool(_PLACEHOLDER_RE.match(link))


def normalize_link_slashes(link: str) -> str:
    return link.replace("\\", "/")


def strip_anchor(link: Optional[str]) -> str:
    if not link:
        return ""
    return link.split("#", 1)[0]


def extract_anchor(href: Optional[str]) -> Optional[str]:
    """Return ``#fragment`` (with the hash) or ``None``."""
    if not href or "#" not in href:
        return None
    return href[href.index("#"):]


def split_link_parts(href: Optional[str]) -> LinkParts:
    """Split ``path?query#anchor``; query keeps its ``?``, anchor its ``#``."""
    if not href:
        return LinkParts("", "", "")
    hash_idx = href.find("#")
    q_idx = href.find("?")

    path_end = len(href)
    if hash_idx >= 0:
        path_end = min(path_end, hash_idx)
    if q_idx >= 0:
        path_end = min(path_end, q_idx)

    query = ""
    if q_idx >= 0 and (hash_idx < 0 or q_idx < hash_idx):
        query = href[q_idx:hash_idx] if hash_idx >= 0 else href[q_idx:]
    anchor = href[hash_idx:] if hash_idx >= 0 else ""
    return LinkParts(href[:path_end], query, anchor)


def classify_link_type(href: Optional[str]) -> str:
    """One of ``relative``, ``absolute``, ``http``, ``mailto``, ``anchor``, ``other``."""
    if not href:
        return "other"
    h = href.strip()
    if h.startswith("#"):
        return "anchor"
    if re.match(r"^https?://", h, re.IGNORECASE):
        return "http"
    if re.match(r"^mailto:", h, re.IGNORECASE):
        return "mailto"
    if h.startswith("/"):
        return "absolute"
    if _SCHEME_RE.match(h):
        return "other"
    return "relative"


def escapes_upward(rel_path: str) -> bool:
    """True when a relative path climbs out of its base directory."""
    return rel_path == ".." or rel_path.startswith("../")


def split_lines(content: str) -> list[str]:
    """Split on ``\\n`` / ``\\r\\n`` only, matching extractor line numbers."""
    return _LINE_BREAK_RE.split(content)


def find_bad_link_formats(line: str) -> list[str]:
    """Every ``:name.md:`` fragment on a line."""
    return _BAD_LINK_FORMAT_RE.findall(line)
