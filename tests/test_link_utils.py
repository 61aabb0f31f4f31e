from doclinks.links.utils import (
    classify_link_type,
    escapes_upward,
    extract_anchor,
    is_external_link,
    is_placeholder_link,
    split_link_parts,
    strip_anchor,
)


def test_is_external_link() -> None:
    assert is_external_link("https://example.com")
    assert is_external_link("mailto:someone@example.com")
    assert is_external_link("#section")
    assert not is_external_link("docs/a.md")
    assert not is_external_link("C:\\docs\\a.md")
    assert not is_external_link(None)


def test_placeholder_links() -> None:
    assert is_placeholder_link(":getting-started.md:")
    assert not is_placeholder_link("getting-started.md")


def test_split_link_parts() -> None:
    assert split_link_parts("a.md?x=1#s") == ("a.md", "?x=1", "#s")
    assert split_link_parts("a.md#s?not-a-query") == ("a.md", "", "#s?not-a-query")
    assert split_link_parts("a.md") == ("a.md", "", "")
    assert split_link_parts("") == ("", "", "")


def test_anchor_helpers() -> None:
    assert strip_anchor("a.md#s") == "a.md"
    assert extract_anchor("a.md#s") == "#s"
    assert extract_anchor("a.md") is None


def test_classify_link_type() -> None:
    assert classify_link_type("https://x.org") == "http"
    assert classify_link_type("MAILTO:x@y.z") == "mailto"
    assert classify_link_type("#a") == "anchor"
    assert classify_link_type("/abs.md") == "absolute"
    assert classify_link_type("ftp://x") == "other"
    assert classify_link_type("rel.md") == "relative"


def test_escapes_upward() -> None:
    assert escapes_upward("..")
    assert escapes_upward("../a.md")
    assert not escapes_upward("..a.md")
    assert not escapes_upward("a/../b.md")
