from __future__ import annotations

import pytest

from doclinks.errors import (
    ArchiveNotFoundError,
    DirectoryNotEmptyError,
    FileNotFoundInStorageError,
    NoSuchFileOrDirectoryError,
    PathNotFoundError,
    StorageError,
    UnsafeArchiveEntryError,
)
from doclinks.storage import InMemoryFileSystemService
from doclinks.storage.archive import build_zip


async def test_write_registers_every_ancestor() -> None:
    fs = InMemoryFileSystemService()
    await fs.write("/a/b/c/file.md", "x")

    for d in ("/", "/a", "/a/b", "/a/b/c"):
        assert await fs.is_dir(d)
    assert await fs.read("/a/b/c/file.md") == "x"


async def test_relative_paths_resolve_against_instance_cwd() -> None:
    fs = InMemoryFileSystemService(working_directory="/work")
    other = InMemoryFileSystemService(working_directory="/elsewhere")

    await fs.write("notes/a.md", "hi")
    fs.chdir("notes")

    assert fs.cwd == "/work/notes"
    assert other.cwd == "/elsewhere"
    assert await fs.read("a.md") == "hi"
    assert fs.resolve("../x/./y.md") == "/work/x/y.md"
    assert fs.resolve("/abs/../b.md") == "/b.md"


async def test_read_missing_file_raises() -> None:
    fs = InMemoryFileSystemService()
    with pytest.raises(FileNotFoundInStorageError) as exc:
        await fs.read("/nope.md")
    assert "File not found" in str(exc.value)
    assert isinstance(exc.value, FileNotFoundError)
    assert isinstance(exc.value, StorageError)


async def test_delete_only_removes_files() -> None:
    fs = InMemoryFileSystemService({"/d/f.md": "x"})
    await fs.delete("/d/f.md")
    assert not await fs.exists("/d/f.md")
    assert await fs.is_dir("/d")

    with pytest.raises(FileNotFoundInStorageError):
        await fs.delete("/d/f.md")


async def test_mkdir_non_recursive_requires_parent() -> None:
    fs = InMemoryFileSystemService()
    with pytest.raises(NoSuchFileOrDirectoryError):
        await fs.mkdir("/a/b")

    await fs.mkdir("/a/b", recursive=True)
    assert await fs.is_dir("/a")
    await fs.mkdir("/a/b/c")
    assert await fs.is_dir("/a/b/c")


async def test_move_directory_relocates_subtree() -> None:
    fs = InMemoryFileSystemService(
        {
            "/src/docs/a.md": "a",
            "/src/docs/sub/b.md": "b",
            "/src/docs-other/c.md": "c",
        }
    )
    await fs.mkdir("/src/docs/empty")

    await fs.move("/src/docs", "/dst/moved")

    assert await fs.read("/dst/moved/a.md") == "a"
    assert await fs.read("/dst/moved/sub/b.md") == "b"
    assert await fs.is_dir("/dst/moved/empty")
    assert not await fs.exists("/src/docs")
    assert not await fs.exists("/src/docs/sub/b.md")
    # sibling sharing the name prefix is untouched
    assert await fs.read("/src/docs-other/c.md") == "c"


async def test_move_missing_source_raises() -> None:
    fs = InMemoryFileSystemService()
    with pytest.raises(PathNotFoundError):
        await fs.move("/ghost", "/elsewhere")


async def test_copy_directory_leaves_source() -> None:
    fs = InMemoryFileSystemService({"/s/a.md": "a", "/s/n/b.md": "b"})
    await fs.copy("/s", "/t")

    assert await fs.read("/s/n/b.md") == "b"
    assert await fs.read("/t/n/b.md") == "b"
    assert await fs.read("/t/a.md") == "a"

    with pytest.raises(FileNotFoundInStorageError):
        await fs.copy("/ghost", "/t2")


async def test_move_file_registers_new_parent() -> None:
    fs = InMemoryFileSystemService({"/a/x.md": "x"})

    await fs.move("/a/x.md", "/b/c/x.md")

    assert await fs.is_dir("/b")
    assert await fs.is_dir("/b/c")
    assert await fs.read("/b/c/x.md") == "x"
    assert not await fs.exists("/a/x.md")
    assert [e.name for e in await fs.list("/b/c")] == ["x.md"]


async def test_copy_file_leaves_source() -> None:
    fs = InMemoryFileSystemService({"/a/x.md": "x"})

    await fs.copy("/a/x.md", "/b/c/y.md")

    assert await fs.is_dir("/b/c")
    assert await fs.read("/b/c/y.md") == "x"
    assert await fs.read("/a/x.md") == "x"


async def test_list_returns_sorted_direct_children() -> None:
    fs = InMemoryFileSystemService({"/d/b.md": "", "/d/a.md": "", "/d/sub/c.md": ""})
    entries = await fs.list("/d")

    assert [e.name for e in entries] == ["a.md", "b.md", "sub"]
    sub = entries[2]
    assert sub.is_dir() and not sub.is_file() and not sub.is_symlink()
    assert entries[0].path == "/d/a.md"

    with pytest.raises(NoSuchFileOrDirectoryError):
        await fs.list("/missing")


async def test_stat() -> None:
    fs = InMemoryFileSystemService({"/d/a.md": ""})
    assert (await fs.stat("/d")).is_dir
    assert (await fs.stat("/d/a.md")).is_file
    with pytest.raises(NoSuchFileOrDirectoryError):
        await fs.stat("/d/x")


async def test_remove_non_recursive_on_non_empty_directory_keeps_everything() -> None:
    fs = InMemoryFileSystemService({"/d/a.md": "a"})

    with pytest.raises(DirectoryNotEmptyError):
        await fs.remove("/d")

    assert await fs.read("/d/a.md") == "a"


async def test_remove_variants() -> None:
    fs = InMemoryFileSystemService({"/d/a.md": "a", "/d/sub/b.md": "b"})
    await fs.mkdir("/empty")

    await fs.remove("/empty")
    assert not await fs.exists("/empty")

    with pytest.raises(PathNotFoundError):
        await fs.remove("/ghost")
    await fs.remove("/ghost", force=True)
    await fs.remove("/ghost", recursive=True, force=True)

    await fs.remove("/d", recursive=True)
    assert not await fs.exists("/d")
    assert not await fs.exists("/d/sub/b.md")
    assert await fs.is_dir("/")


async def test_archive_round_trip_is_byte_identical() -> None:
    payload = bytes(range(256))
    fs = InMemoryFileSystemService(
        {
            "/src/docs/a.md": "# A\r\nline\n",
            "/src/docs/nested/deep/b.md": "ümlaut ✓",
            "/src/single.md": "single",
        }
    )
    await fs.write_bytes("/src/docs/blob.bin", payload)

    await fs.create_archive(["/src/docs", "/src/single.md"], "/out/bundle.zip")
    await fs.extract_archive("/out/bundle.zip", "/restored")

    assert await fs.read("/restored/a.md") == "# A\r\nline\n"
    assert await fs.read("/restored/nested/deep/b.md") == "ümlaut ✓"
    assert await fs.read("/restored/single.md") == "single"
    assert await fs.read_bytes("/restored/blob.bin") == payload
    assert await fs.is_dir("/restored/nested/deep")


async def test_create_archive_missing_source_raises() -> None:
    fs = InMemoryFileSystemService()
    with pytest.raises(PathNotFoundError):
        await fs.create_archive(["/nothing"], "/x.zip")


async def test_extract_missing_archive_raises() -> None:
    fs = InMemoryFileSystemService()
    with pytest.raises(ArchiveNotFoundError) as exc:
        await fs.extract_archive("/missing.zip", "/out")
    assert "ZIP file not found" in str(exc.value)


async def test_extract_rejects_escaping_entries() -> None:
    fs = InMemoryFileSystemService()
    await fs.write_bytes("/evil.zip", build_zip([("../outside.md", b"x")]))

    with pytest.raises(UnsafeArchiveEntryError):
        await fs.extract_archive("/evil.zip", "/out")
    assert not await fs.exists("/outside.md")


def test_get_content_and_snapshot() -> None:
    fs = InMemoryFileSystemService({"/b.md": "b", "/a.md": "a"})
    assert fs.get_content("/a.md") == "a"
    assert fs.get_content("/zzz.md") is None
    assert list(fs.snapshot()) == ["/a.md", "/b.md"]
