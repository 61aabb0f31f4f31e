from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ReplacementKind(str, Enum):
    NORMALIZED_REL = "normalizedRel"
    NORMALIZED_FULL = "normalizedFull"
    PATCHED = "patched"
    PATH_SUBSTITUTION = "pathSubstitution"


class ErrorType(str, Enum):
    LINK_TARGET_NOT_FOUND = "LINK TARGET NOT FOUND"
    BAD_LINK_FORMAT = "BAD LINK FORMAT"


@dataclass(frozen=True)
class ParsedLink:
    """One hyperlink occurrence as handed over by the markdown extractor.

    ``start``/``end`` are offsets into the raw file text. Extractors that
    cannot provide them leave both as ``None``; those links are patched by
    searching their line instead.
    """

    href: str
    line: int
    start: Optional[int] = None
    end: Optional[int] = None
    text: str = ""


@dataclass(frozen=True)
class Replacement:
    line: int
    old_href: str
    new_href: str
    kind: ReplacementKind
    start: Optional[int] = None
    end: Optional[int] = None

    @staticmethod
    def for_link(
        link: ParsedLink, *, new_href: str, kind: ReplacementKind
    ) -> "Replacement":
        return Replacement(
            line=link.line,
            old_href=link.href,
            new_href=new_href,
            kind=kind,
            start=link.start,
            end=link.end,
        )

    def has_offsets(self) -> bool:
        return self.start is not None and self.end is not None

    def to_json(self) -> dict[str, Any]:
        return {
            "start": self.start,
            "end": self.end,
            "line": self.line,
            "oldHref": self.old_href,
            "newHref": self.new_href,
            "kind": ReplacementKind(self.kind).value,
        }


@dataclass(frozen=True)
class ErrorLog:
    """A link that could neither be resolved nor healed."""

    type: ErrorType
    file: str
    line_number: int
    line: str

    def to_json(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "file": self.file,
            "lineNumber": self.line_number,
            "line": self.line,
        }


@dataclass
class ApplyResult:
    content: str
    applied: int = 0
    by_kind: dict[str, int] = field(default_factory=dict)

    def count(self, kind: str) -> None:
        self.applied += 1
        self.by_kind[kind] = self.by_kind.get(kind, 0) + 1
