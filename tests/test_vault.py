"""Tests for vault access and front-matter parsing."""

from __future__ import annotations

from pathlib import Path

from vault_publisher.vault import (
    Document,
    Found,
    NotFound,
    Vault,
    parse_frontmatter,
    read_file_with_encoding,
)

# ---------------------------------------------------------------------------
# Front matter
# ---------------------------------------------------------------------------


class TestParseFrontmatter:
    def test_basic(self):
        content = "---\nshare: true\ntitle: Idea\n---\nbody"
        assert parse_frontmatter(content) == {"share": True, "title": "Idea"}

    def test_no_front_matter(self):
        assert parse_frontmatter("# Just a note\nshare: true") == {}

    def test_must_start_on_first_line(self):
        assert parse_frontmatter("\n---\nshare: true\n---\n") == {}

    def test_unclosed_block(self):
        assert parse_frontmatter("---\nshare: true\n") == {}

    def test_malformed_yaml(self):
        assert parse_frontmatter("---\nshare: [true\n---\n") == {}

    def test_non_mapping(self):
        assert parse_frontmatter("---\n- a\n- b\n---\n") == {}

    def test_empty_block(self):
        assert parse_frontmatter("---\n---\nbody") == {}

    def test_bom_is_ignored(self):
        assert parse_frontmatter("\ufeff---\nshare: true\n---\n") == {
            "share": True
        }

    def test_crlf_line_endings(self):
        assert parse_frontmatter("---\r\nshare: true\r\n---\r\n") == {
            "share": True
        }


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


def test_document_properties():
    doc = Document("Notes/Sub/Idea.MD")
    assert doc.name == "Idea.MD"
    assert doc.basename == "Idea"
    assert doc.extension == "md"
    assert doc.folder == "Notes/Sub"


def test_root_document_has_empty_folder():
    assert Document("Idea.md").folder == ""


# ---------------------------------------------------------------------------
# Vault
# ---------------------------------------------------------------------------


class TestVault:
    def test_lookup_found(self, vault_dir: Path):
        (vault_dir / "Notes").mkdir()
        (vault_dir / "Notes" / "Idea.md").write_text("x")
        vault = Vault(vault_dir)

        assert vault.lookup("Notes/Idea.md") == Found(Document("Notes/Idea.md"))

    def test_lookup_not_found(self, vault_dir: Path):
        assert Vault(vault_dir).lookup("Nope.md") == NotFound("Nope.md")

    def test_lookup_directory_is_not_found(self, vault_dir: Path):
        (vault_dir / "Notes").mkdir()
        assert isinstance(Vault(vault_dir).lookup("Notes"), NotFound)

    def test_lookup_refuses_escape(self, vault_dir: Path):
        (vault_dir.parent / "outside.md").write_text("x")
        vault = Vault(vault_dir)
        assert isinstance(vault.lookup("../outside.md"), NotFound)
        assert isinstance(vault.lookup("/etc/passwd"), NotFound)
        assert isinstance(vault.lookup(""), NotFound)

    def test_markdown_documents_sorted_and_filtered(self, vault_dir: Path):
        for path in [
            "b.md",
            "a.md",
            "Sub/c.md",
            ".obsidian/workspace.md",
            "state/ledger.md",
            "image.png",
        ]:
            target = vault_dir / path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text("x")

        vault = Vault(vault_dir, ignore=("state",))

        assert [d.path for d in vault.markdown_documents()] == [
            "Sub/c.md",
            "a.md",
            "b.md",
        ]

    def test_missing_root_has_no_documents(self, tmp_path: Path):
        assert Vault(tmp_path / "missing").markdown_documents() == []

    def test_frontmatter_of_non_markdown_is_empty(self, vault_dir: Path):
        (vault_dir / "data.txt").write_text("---\nshare: true\n---\n")
        vault = Vault(vault_dir)
        assert vault.frontmatter(Document("data.txt")) == {}

    def test_read_binary(self, vault_dir: Path):
        (vault_dir / "pic.png").write_bytes(b"\x89PNG\x00")
        assert Vault(vault_dir).read_binary(Document("pic.png")) == b"\x89PNG\x00"


class TestReadFileWithEncoding:
    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "empty.md"
        path.write_bytes(b"")
        assert read_file_with_encoding(path) == ("", "utf-8")

    def test_ascii_reported_as_utf8(self, tmp_path: Path):
        path = tmp_path / "a.md"
        path.write_bytes(b"plain ascii text\n")
        content, encoding = read_file_with_encoding(path)
        assert content == "plain ascii text\n"
        assert encoding == "utf-8"
