"""Tests for image extraction, upload and link rewriting."""

from __future__ import annotations

import base64
from pathlib import Path

import pytest

from vault_publisher.config_schema import PublishConfig
from vault_publisher.core.client import RemoteError
from vault_publisher.publish.images import (
    ImagePublisher,
    extract_image_references,
    is_remote_reference,
    rewrite_image_references,
)
from vault_publisher.vault import Document, Vault

RAW = "https://raw.githubusercontent.com/octocat/garden/main"


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


class TestExtract:
    def test_finds_references_in_order(self):
        content = "![a](one.png) text ![b](dir/two.jpg)"
        assert extract_image_references(content) == ["one.png", "dir/two.jpg"]

    def test_skips_remote_urls(self):
        content = "![a](https://example.com/x.png) ![b](HTTP://x/y.png) ![c](z.png)"
        assert extract_image_references(content) == ["z.png"]

    def test_plain_links_are_ignored(self):
        assert extract_image_references("[not an image](a.png)") == []

    def test_keeps_duplicates(self):
        assert extract_image_references("![a](x.png)![b](x.png)") == [
            "x.png",
            "x.png",
        ]

    @pytest.mark.parametrize(
        "ref,expected",
        [("http://a", True), ("https://a", True), ("a.png", False)],
    )
    def test_is_remote_reference(self, ref, expected):
        assert is_remote_reference(ref) is expected


class TestRewrite:
    def test_rewrites_only_mapped_references(self):
        content = "![a](x.png) and ![b](y.png)"
        result = rewrite_image_references(content, {"x.png": "URL"})
        assert result == "![a](URL) and ![b](y.png)"

    def test_plain_text_with_same_path_untouched(self):
        content = "see x.png\n![a](x.png)"
        result = rewrite_image_references(content, {"x.png": "URL"})
        assert result == "see x.png\n![a](URL)"

    def test_empty_map_returns_content(self):
        assert rewrite_image_references("![a](x)", {}) == "![a](x)"


# ---------------------------------------------------------------------------
# ImagePublisher
# ---------------------------------------------------------------------------


def _publisher(client, vault_dir: Path, **settings) -> ImagePublisher:
    return ImagePublisher(client, Vault(vault_dir), PublishConfig(**settings))


class TestLocate:
    def test_vault_root_path(self, fake_client, vault_dir):
        (vault_dir / "img").mkdir()
        (vault_dir / "img" / "pic.png").write_bytes(b"x")
        publisher = _publisher(fake_client, vault_dir)

        image = publisher.locate("img/pic.png", Document("Notes/Idea.md"))

        assert image == Document("img/pic.png")

    def test_relative_to_note_folder(self, fake_client, vault_dir):
        (vault_dir / "Notes" / "att").mkdir(parents=True)
        (vault_dir / "Notes" / "att" / "pic.png").write_bytes(b"x")
        publisher = _publisher(fake_client, vault_dir)

        image = publisher.locate("att/pic.png", Document("Notes/Idea.md"))

        assert image == Document("Notes/att/pic.png")

    def test_url_encoded_reference(self, fake_client, vault_dir):
        (vault_dir / "my pic.png").write_bytes(b"x")
        publisher = _publisher(fake_client, vault_dir)

        image = publisher.locate("my%20pic.png", Document("Idea.md"))

        assert image == Document("my pic.png")

    def test_missing(self, fake_client, vault_dir):
        publisher = _publisher(fake_client, vault_dir)
        assert publisher.locate("nope.png", Document("Idea.md")) is None

    def test_escape_outside_vault_is_refused(self, fake_client, vault_dir):
        (vault_dir.parent / "secret.png").write_bytes(b"x")
        publisher = _publisher(fake_client, vault_dir)
        assert publisher.locate("../secret.png", Document("Idea.md")) is None


class TestRemotePath:
    def test_flat_namespace(self, fake_client, vault_dir):
        publisher = _publisher(fake_client, vault_dir)
        assert (
            publisher.remote_path_for(Document("a/b/pic.png"))
            == "assets/images/pic.png"
        )

    def test_preserve_folders(self, fake_client, vault_dir):
        publisher = _publisher(
            fake_client, vault_dir, preserve_image_folders=True
        )
        assert (
            publisher.remote_path_for(Document("a/b/pic.png"))
            == "assets/images/a/b/pic.png"
        )


class TestUploadAndRewrite:
    async def test_uploads_and_rewrites(self, fake_client, vault_dir):
        (vault_dir / "img").mkdir()
        (vault_dir / "img" / "pic.png").write_bytes(b"\x89PNG")
        publisher = _publisher(fake_client, vault_dir)

        content, count = await publisher.upload_and_rewrite(
            "![alt](img/pic.png)", Document("Notes/Idea.md")
        )

        assert count == 1
        assert content == f"![alt]({RAW}/assets/images/pic.png)"
        sha, payload = fake_client.files["assets/images/pic.png"]
        assert base64.b64decode(payload) == b"\x89PNG"
        assert fake_client.messages == [
            "Upload image pic.png via vault-publisher"
        ]

    async def test_existing_image_is_updated_with_its_sha(
        self, fake_client, vault_dir
    ):
        (vault_dir / "pic.png").write_bytes(b"new")
        fake_client.files["assets/images/pic.png"] = ("sha-old", "b2xk")
        publisher = _publisher(fake_client, vault_dir)

        _, count = await publisher.upload_and_rewrite(
            "![a](pic.png)", Document("Idea.md")
        )

        assert count == 1
        assert fake_client.files["assets/images/pic.png"][0] != "sha-old"

    async def test_duplicate_references_upload_once(
        self, fake_client, vault_dir
    ):
        (vault_dir / "pic.png").write_bytes(b"x")
        publisher = _publisher(fake_client, vault_dir)

        content, count = await publisher.upload_and_rewrite(
            "![a](pic.png)\n![b](pic.png)", Document("Idea.md")
        )

        assert count == 1
        assert content.count(f"{RAW}/assets/images/pic.png") == 2
        assert [c for c in fake_client.calls if c[0] == "PUT"] == [
            ("PUT", "assets/images/pic.png")
        ]

    async def test_missing_image_is_skipped(self, fake_client, vault_dir):
        publisher = _publisher(fake_client, vault_dir)

        content, count = await publisher.upload_and_rewrite(
            "![alt](img/pic.png)", Document("Idea.md")
        )

        assert count == 0
        assert content == "![alt](img/pic.png)"
        assert fake_client.calls == []

    async def test_upload_failure_keeps_reference(self, fake_client, vault_dir):
        (vault_dir / "a.png").write_bytes(b"a")
        (vault_dir / "b.png").write_bytes(b"b")
        fake_client.fail_on[("PUT", "assets/images/a.png")] = RemoteError(
            "Server Error", 500
        )
        publisher = _publisher(fake_client, vault_dir)

        content, count = await publisher.upload_and_rewrite(
            "![a](a.png) ![b](b.png)", Document("Idea.md")
        )

        assert count == 1
        assert "![a](a.png)" in content
        assert f"![b]({RAW}/assets/images/b.png)" in content

    async def test_no_images_no_calls(self, fake_client, vault_dir):
        publisher = _publisher(fake_client, vault_dir)

        content, count = await publisher.upload_and_rewrite(
            "# Title\nNo pictures", Document("Idea.md")
        )

        assert (content, count) == ("# Title\nNo pictures", 0)
        assert fake_client.calls == []
