"""Tests for sitefreeze.routes.assets: directory crawling."""

from __future__ import annotations

import os
import socket
from pathlib import Path

import httpx
import pytest

from sitefreeze._errors import EnumerationError
from sitefreeze.config import SitePaths
from sitefreeze.routes.assets import (
    AssetSource,
    asset_sources,
    crawl_assets,
    crawl_directory,
    normalize_route_root,
)
from tests.conftest import BASE_URL


class TestNormalizeRouteRoot:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("assets", "assets/"),
            ("/content/images/", "content/images/"),
            ("content\\images", "content/images/"),
            ("", ""),
            ("/", ""),
        ],
    )
    def test_forms(self, raw: str, expected: str) -> None:
        assert normalize_route_root(raw) == expected


class TestAssetSources:
    def test_standard_layout(self, tmp_path: Path) -> None:
        sources = asset_sources(SitePaths.for_root(tmp_path), "casper")
        assert sources == (
            AssetSource(tmp_path / "core" / "built" / "public", "public/"),
            AssetSource(tmp_path / "content" / "images", "content/images/"),
            AssetSource(tmp_path / "content" / "themes" / "casper" / "assets", "assets/"),
        )


class TestCrawlDirectory:
    def test_nested_files(self, tmp_path: Path) -> None:
        (tmp_path / "css").mkdir()
        (tmp_path / "css" / "screen.css").write_text("x")
        (tmp_path / "js" / "lib").mkdir(parents=True)
        (tmp_path / "js" / "lib" / "a.js").write_text("x")
        (tmp_path / "logo.png").write_bytes(b"x")

        mappings = crawl_directory(tmp_path, "assets", "http://blog.test")
        assert [(m.url, m.target_path, m.kind) for m in mappings] == [
            ("http://blog.test/assets/css/screen.css", "assets/css/screen.css", "asset"),
            ("http://blog.test/assets/js/lib/a.js", "assets/js/lib/a.js", "asset"),
            ("http://blog.test/assets/logo.png", "assets/logo.png", "asset"),
        ]

    def test_reserved_characters_quoted_in_url(self, tmp_path: Path) -> None:
        for name in ("a#b.css", "c?d.png", "50%.txt"):
            (tmp_path / name).write_text("x")

        mappings = crawl_directory(tmp_path, "content/images", BASE_URL)
        assert [(m.url, m.target_path) for m in mappings] == [
            ("http://blog.test/content/images/50%25.txt", "content/images/50%.txt"),
            ("http://blog.test/content/images/a%23b.css", "content/images/a#b.css"),
            ("http://blog.test/content/images/c%3Fd.png", "content/images/c?d.png"),
        ]
        assert [httpx.URL(m.url).path for m in mappings] == [
            "/content/images/50%.txt",
            "/content/images/a#b.css",
            "/content/images/c?d.png",
        ]

    def test_empty_directory(self, tmp_path: Path) -> None:
        assert crawl_directory(tmp_path, "assets", BASE_URL) == ()

    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(EnumerationError, match="not found"):
            crawl_directory(tmp_path / "nope", "assets", BASE_URL)

    def test_file_instead_of_directory(self, tmp_path: Path) -> None:
        target = tmp_path / "file"
        target.write_text("x")
        with pytest.raises(EnumerationError):
            crawl_directory(target, "assets", BASE_URL)

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_symlinks_skipped(self, tmp_path: Path) -> None:
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "secret.txt").write_text("x")
        root = tmp_path / "assets"
        root.mkdir()
        (root / "real.txt").write_text("x")
        (root / "link.txt").symlink_to(outside / "secret.txt")
        (root / "linked-dir").symlink_to(outside, target_is_directory=True)

        mappings = crawl_directory(root, "assets", BASE_URL)
        assert [m.target_path for m in mappings] == ["assets/real.txt"]

    @pytest.mark.skipif(not hasattr(socket, "AF_UNIX"), reason="unix sockets unsupported")
    def test_sockets_skipped(self, tmp_path: Path) -> None:
        root = tmp_path / "a"
        root.mkdir()
        (root / "keep.css").write_text("x")
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.bind(str(root / "s"))
            mappings = crawl_directory(root, "assets", BASE_URL)
        finally:
            sock.close()
        assert [m.target_path for m in mappings] == ["assets/keep.css"]


class TestCrawlAssets:
    @pytest.mark.asyncio
    async def test_keeps_source_order(self, tmp_site: Path) -> None:
        sources = asset_sources(SitePaths.for_root(tmp_site), "casper")
        mappings = await crawl_assets(sources, BASE_URL)
        assert [m.target_path for m in mappings] == [
            "public/ghost-sdk.js",
            "content/images/2024/cover.jpg",
            "assets/css/screen.css",
        ]

    @pytest.mark.asyncio
    async def test_one_missing_source_fails_all(self, tmp_site: Path) -> None:
        sources = asset_sources(SitePaths.for_root(tmp_site), "no-such-theme")
        with pytest.raises(EnumerationError, match="no-such-theme"):
            await crawl_assets(sources, BASE_URL)

    @pytest.mark.asyncio
    async def test_no_sources(self) -> None:
        assert await crawl_assets([], BASE_URL) == ()
