"""Shared test fixtures for sitefreeze."""

from __future__ import annotations

import json
import shutil
import subprocess
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import pytest

from sitefreeze.content.models import ContentItem, Tag
from sitefreeze.content.store import MemoryContentStore

BASE_URL = "http://blog.test/"


@pytest.fixture
def tmp_site(tmp_path: Path) -> Path:
    """Create a minimal blog installation for testing.

    Returns the site root with the three standard asset directories:
    ``core/built/public``, ``content/images`` and the ``casper`` theme's
    ``assets``.
    """
    public = tmp_path / "core" / "built" / "public"
    public.mkdir(parents=True)
    (public / "ghost-sdk.js").write_text("// sdk\n")

    images = tmp_path / "content" / "images" / "2024"
    images.mkdir(parents=True)
    (images / "cover.jpg").write_bytes(b"\xff\xd8\xff")

    theme_assets = tmp_path / "content" / "themes" / "casper" / "assets" / "css"
    theme_assets.mkdir(parents=True)
    (theme_assets / "screen.css").write_text("body { margin: 0; }\n")

    return tmp_path


def sample_items() -> list[ContentItem]:
    """Two posts sharing a tag, one static page and one draft."""
    news = Tag("news")
    return [
        ContentItem("hello", tags=(news, Tag("intro"))),
        ContentItem("second", tags=(news,)),
        ContentItem("about", is_static_page=True),
        ContentItem("wip", status="draft", tags=(Tag("secret"),)),
    ]


@pytest.fixture
def memory_store() -> MemoryContentStore:
    return MemoryContentStore(
        sample_items(),
        {"postsPerPage": "1", "activeTheme": "casper"},
    )


def write_export(path: Path, *, posts_per_page: object = 5) -> Path:
    """Write a blog JSON export holding the sample content."""
    data = {
        "db": [{
            "meta": {"version": "0.5.0"},
            "data": {
                "posts": [
                    {"id": 1, "slug": "hello", "status": "published", "page": 0},
                    {"id": 2, "slug": "second", "status": "published", "page": 0},
                    {"id": 3, "slug": "about", "status": "published", "page": 1},
                    {"id": 4, "slug": "wip", "status": "draft", "page": 0},
                ],
                "tags": [
                    {"id": 10, "slug": "news"},
                    {"id": 11, "slug": "intro"},
                ],
                "posts_tags": [
                    {"post_id": 1, "tag_id": 11, "sort_order": 1},
                    {"post_id": 1, "tag_id": 10, "sort_order": 0},
                    {"post_id": 2, "tag_id": 10, "sort_order": 0},
                ],
                "settings": [
                    {"key": "postsPerPage", "value": posts_per_page},
                    {"key": "activeTheme", "value": "casper"},
                    {"key": "title", "value": None},
                ],
            },
        }],
    }
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


async def echo_fetch(url: str) -> AsyncIterator[bytes]:
    """Fetch stand-in whose body is the requested URL."""
    yield b"<!-- "
    yield url.encode()
    yield b" -->"


class RecordingBackend:
    """In-memory backend that records every call."""

    name = "recording"

    def __init__(self, working_dir: Path, *, fail_on: str | None = None) -> None:
        self._working_dir = working_dir
        self.fail_on = fail_on
        self.calls: list[str] = []
        self.files: dict[str, bytes] = {}

    @property
    def working_dir(self) -> Path:
        return self._working_dir

    async def initialize(self) -> None:
        self.calls.append("initialize")

    async def write(self, stream: Any, target_path: str) -> int:
        from sitefreeze._errors import WriteError

        if target_path == self.fail_on:
            msg = f"cannot write {target_path}"
            raise WriteError(msg)
        if isinstance(stream, bytes):
            body = stream
        else:
            body = b"".join([chunk async for chunk in stream])
        self.files[target_path] = body
        return len(body)

    async def finalize(self) -> None:
        self.calls.append("finalize")


# ---------------------------------------------------------------------------
# git helpers
# ---------------------------------------------------------------------------

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def git(*args: str, cwd: Path) -> str:
    """Run git for test setup and return stdout."""
    completed = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=True,
    )
    return completed.stdout


@pytest.fixture
def git_identity(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Commit identity and an isolated global config for git commands."""
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test Author")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "author@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test Author")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "author@example.com")
    global_config = tmp_path / "gitconfig"
    global_config.write_text("")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(global_config))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")


@pytest.fixture
def git_remote(tmp_path: Path, git_identity: None) -> Path:
    """Bare repository with one commit on ``main``."""
    remote = tmp_path / "remote.git"
    git("init", "--bare", str(remote), cwd=tmp_path)
    git("symbolic-ref", "HEAD", "refs/heads/main", cwd=remote)

    seed = tmp_path / "seed"
    git("clone", str(remote), str(seed), cwd=tmp_path)
    git("symbolic-ref", "HEAD", "refs/heads/main", cwd=seed)
    (seed / "README.md").write_text("snapshot branch\n")
    git("add", "README.md", cwd=seed)
    git("commit", "-m", "initial", cwd=seed)
    git("push", "origin", "main", cwd=seed)
    return remote


def remote_files(remote: Path, branch: str = "main") -> set[str]:
    """Paths tracked at the tip of *branch* in *remote*."""
    out = git("ls-tree", "-r", "--name-only", branch, cwd=remote)
    return set(out.split())


def remote_log(remote: Path, branch: str = "main") -> list[str]:
    """Commit subjects on *branch*, newest first."""
    out = git("log", "--format=%s", branch, cwd=remote)
    return out.splitlines()
