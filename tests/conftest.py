"""Shared fixtures.

Markdown tokenization is not part of doclinks, so tests use a small
regex extractor for inline ``[text](href)`` links.
"""

from __future__ import annotations

import re
from typing import Callable, Sequence

import pytest

from doclinks.config import LinkProcessingConfig
from doclinks.models import ParsedLink
from doclinks.storage import InMemoryFileSystemService

_INLINE_LINK_RE = re.compile(r"\[([^\]]*)\]\(([^)\s]*)\)")


def extract_inline_links(content: str) -> list[ParsedLink]:
    links = []
    offset = 0
    for number, line in enumerate(content.split("\n"), start=1):
        for m in _INLINE_LINK_RE.finditer(line):
            links.append(
                ParsedLink(
                    href=m.group(2),
                    line=number,
                    start=offset + m.start(2),
                    end=offset + m.end(2),
                    text=m.group(1),
                )
            )
        offset += len(line) + 1
    return links


@pytest.fixture
def extract_links() -> Callable[[str], Sequence[ParsedLink]]:
    return extract_inline_links


@pytest.fixture
def config() -> LinkProcessingConfig:
    return LinkProcessingConfig(
        docs_folders=["docs", "guides"],
        dataset_root="/dataset",
        exclusion_list=["/static/"],
    )


@pytest.fixture
def memfs() -> InMemoryFileSystemService:
    return InMemoryFileSystemService(
        {
            "/dataset/index.md": "# Home\n",
            "/dataset/a.md": "see [missing](missing.md)\n",
            "/dataset/docs/intro.md": "# Intro\n",
            "/dataset/docs/missing.md": "# Found\n",
            "/dataset/docs/api/README.md": "# API\n",
            "/dataset/docs/api/Endpoints.md": "# Endpoints\n",
            "/dataset/guides/setup.md": "# Setup\n",
        },
        working_directory="/dataset",
    )
