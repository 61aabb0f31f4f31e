from __future__ import annotations

import asyncio

from doclinks.batch import (
    check_links,
    normalize_links,
    path_substitution_generator,
    process_directory_with_link_replacements,
    process_files_with_link_replacements,
    process_path_substitution,
    relocate_path,
)
from doclinks.config import LinkProcessingConfig
from doclinks.models import ErrorType
from doclinks.storage import InMemoryFileSystemService


async def test_failing_file_does_not_stop_the_batch(
    memfs: InMemoryFileSystemService, config: LinkProcessingConfig, extract_links
) -> None:
    await memfs.write("/dataset/docs/page.md", "[i](./intro.md#top)\n")

    result = await normalize_links(
        ["/dataset/docs/page.md", "/dataset/docs/ghost.md"], config, memfs, extract_links
    )

    assert result.processed == ["/dataset/docs/page.md"]
    assert result.modified == ["/dataset/docs/page.md"]
    assert result.by_kind == {"normalizedRel": 1}
    assert result.applied == 1
    assert len(result.failures) == 1
    assert result.failures[0].file == "/dataset/docs/ghost.md"
    assert "File not found" in result.failures[0].error
    assert await memfs.read("/dataset/docs/page.md") == "[i](intro.md#top)\n"


async def test_concurrency_limit_is_respected(extract_links) -> None:
    fs = InMemoryFileSystemService({f"/d/{i}.md": "x" for i in range(6)})
    in_flight = 0
    peak = 0

    async def generate(links, file, content):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0)
        in_flight -= 1
        return []

    result = await process_files_with_link_replacements(
        [f"/d/{i}.md" for i in range(6)], generate, fs, extract_links, concurrency_limit=2
    )

    assert len(result.processed) == 6
    assert result.modified == []
    assert peak <= 2


async def test_check_links_heals_and_reports(
    memfs: InMemoryFileSystemService, config: LinkProcessingConfig, extract_links
) -> None:
    await memfs.write("/dataset/b.md", "ok [i](docs/intro.md)\nbad [g](ghost.md)\n")

    report = await check_links(
        ["/dataset/a.md", "/dataset/b.md"], config, memfs, extract_links
    )

    assert report.files_checked == 2
    assert report.patched == 1
    assert not report.ok
    [err] = report.errors
    assert err.type == ErrorType.LINK_TARGET_NOT_FOUND
    assert (err.file, err.line_number) == ("/dataset/b.md", 2)
    assert await memfs.read("/dataset/a.md") == "see [missing](docs/missing.md)\n"


async def test_relocate_path_rewrites_references(
    memfs: InMemoryFileSystemService, config: LinkProcessingConfig, extract_links
) -> None:
    await memfs.write(
        "/dataset/index.md",
        "[e](docs/api/Endpoints.md#get)\n"
        "[r](/dataset/docs/api/README.md)\n"
        "[other](docs/apiary.md)\n",
    )

    result = await relocate_path(
        "/dataset/docs/api", "/dataset/docs/reference", config, memfs, extract_links
    )

    assert await memfs.exists("/dataset/docs/reference/Endpoints.md")
    assert not await memfs.exists("/dataset/docs/api")
    assert await memfs.read("/dataset/index.md") == (
        "[e](docs/reference/Endpoints.md#get)\n"
        "[r](/dataset/docs/reference/README.md)\n"
        "[other](docs/apiary.md)\n"
    )
    assert result.by_kind == {"pathSubstitution": 2}
    assert result.failures == []


async def test_check_links_reports_line_text_after_form_feed(
    memfs: InMemoryFileSystemService, config: LinkProcessingConfig, extract_links
) -> None:
    await memfs.write("/dataset/c.md", "intro\x0cpage\n[g](ghost.md)\n")

    report = await check_links(["/dataset/c.md"], config, memfs, extract_links)

    [err] = report.errors
    assert err.line_number == 2
    assert err.line == "[g](ghost.md)"


async def test_check_links_reports_bad_link_format(
    memfs: InMemoryFileSystemService, config: LinkProcessingConfig, extract_links
) -> None:
    await memfs.write("/dataset/c.md", "# Guide\nsee :guide.md: for details\n")

    report = await check_links(["/dataset/c.md"], config, memfs, extract_links)

    assert not report.ok
    [err] = report.errors
    assert err.type == ErrorType.BAD_LINK_FORMAT
    assert (err.file, err.line_number) == ("/dataset/c.md", 2)
    assert err.line == "see :guide.md: for details"


async def test_relocate_file_only_rewrites_whole_path(
    memfs: InMemoryFileSystemService, config: LinkProcessingConfig, extract_links
) -> None:
    await memfs.write(
        "/dataset/index.md",
        "[a](docs/intro.md#x)\n"
        "[b](docs/intro.md.bak)\n"
        "[c](docs/intro.mdx)\n",
    )

    result = await relocate_path(
        "/dataset/docs/intro.md", "/dataset/docs/start.md", config, memfs, extract_links
    )

    assert await memfs.read("/dataset/docs/start.md") == "# Intro\n"
    assert await memfs.read("/dataset/index.md") == (
        "[a](docs/start.md#x)\n"
        "[b](docs/intro.md.bak)\n"
        "[c](docs/intro.mdx)\n"
    )
    assert result.by_kind == {"pathSubstitution": 1}


async def test_process_path_substitution_rewrites_without_moving(
    memfs: InMemoryFileSystemService, extract_links
) -> None:
    await memfs.write("/dataset/index.md", "[e](docs/api/Endpoints.md)\n")
    await memfs.write("/dataset/guides/setup.md", "[r](docs/api/README.md#top)\n")

    result = await process_path_substitution(
        "/dataset", "docs/api/", "docs/reference/", memfs, extract_links
    )

    assert await memfs.read("/dataset/index.md") == "[e](docs/reference/Endpoints.md)\n"
    assert await memfs.read("/dataset/guides/setup.md") == "[r](docs/reference/README.md#top)\n"
    assert await memfs.exists("/dataset/docs/api/Endpoints.md")
    assert not await memfs.exists("/dataset/docs/reference")
    assert sorted(result.modified) == ["/dataset/guides/setup.md", "/dataset/index.md"]
    assert result.failures == []


async def test_process_directory_stays_under_root(
    memfs: InMemoryFileSystemService, extract_links
) -> None:
    await memfs.write("/dataset/index.md", "[i](docs/intro.md)\n")
    await memfs.write("/dataset/docs/api/README.md", "[i](docs/intro.md)\n")

    result = await process_directory_with_link_replacements(
        "/dataset/docs",
        path_substitution_generator("docs/intro.md", "docs/start.md", exact=True),
        memfs,
        extract_links,
    )

    assert result.modified == ["/dataset/docs/api/README.md"]
    assert await memfs.read("/dataset/docs/api/README.md") == "[i](docs/start.md)\n"
    assert await memfs.read("/dataset/index.md") == "[i](docs/intro.md)\n"
    assert len(result.processed) == 4
