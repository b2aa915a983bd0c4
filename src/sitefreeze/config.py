"""sitefreeze configuration.

FreezeConfig is the central configuration object, frozen after creation.
Backend sections are kept as raw mappings here and parsed into the typed
``GitBackendConfig`` / ``DirectoryBackendConfig`` structs when the run
resolves its backend, so that a bad section fails the run before any side
effect instead of failing at load time for an unused backend.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from sitefreeze._errors import ConfigError

DEFAULT_COMMIT_MESSAGE = "Static site generated by sitefreeze"


@dataclass(frozen=True, slots=True)
class SitePaths:
    """Filesystem locations of the served site's static content.

    Attributes:
        core_path: Application core directory (contains ``built/public``).
        images_path: Uploaded images directory.
        images_rel_path: Route under which images are served (e.g. ``content/images``).
        theme_path: Directory holding one subdirectory per installed theme.

    """

    core_path: Path
    images_path: Path
    images_rel_path: str
    theme_path: Path

    @classmethod
    def for_root(cls, root: Path) -> SitePaths:
        """Default layout of a blog installation rooted at *root*."""
        return cls(
            core_path=root / "core",
            images_path=root / "content" / "images",
            images_rel_path="content/images",
            theme_path=root / "content" / "themes",
        )


@dataclass(frozen=True, slots=True)
class GitBackendConfig:
    """Publishing target backed by a git repository.

    Attributes:
        working_dir: Local clone the snapshot is written into.
        remote_repo: URL (or path) of the repository to clone and push to.
        branch: Branch checked out, committed to, and pushed.
        bin_dir: Directory containing the ``git`` executable (PATH when None).
        remote_name: Name of the remote inside the working clone.
        commit_message: Message used for the snapshot commit.
        command_timeout: Seconds before a git command is treated as failed.

    """

    working_dir: Path
    remote_repo: str
    branch: str
    bin_dir: Path | None = None
    remote_name: str = "origin"
    commit_message: str = DEFAULT_COMMIT_MESSAGE
    command_timeout: float = 300.0
    name: str = "git"


@dataclass(frozen=True, slots=True)
class DirectoryBackendConfig:
    """Publishing target that is a plain output directory."""

    working_dir: Path
    name: str = "directory"


type BackendConfig = GitBackendConfig | DirectoryBackendConfig


@dataclass(frozen=True, slots=True)
class FreezeConfig:
    """Configuration for one generation run.

    Attributes:
        root: Site root; relative paths in the config file resolve against it.
              Always resolved to an absolute path on construction.
        base_url: URL of the live site, always ending with ``/``.
        index_filename: File written for directory-style routes.
        rss_filename: File written for the ``rss/`` route.
        max_workers: Upper bound on concurrent fetch+write operations.
        fetch_timeout: Seconds before a single page fetch is treated as failed.
        content_file: JSON export holding posts, tags and settings.
        backend: Name of the backend section to publish through.
        backends: Raw backend sections keyed by name.
        paths: Static content locations (defaults derived from ``root``).

    """

    root: Path = field(default_factory=Path.cwd)
    base_url: str = "http://localhost:2368/"
    index_filename: str = "index.html"
    rss_filename: str = "rss.xml"
    max_workers: int = 8
    fetch_timeout: float = 30.0
    content_file: Path = field(default_factory=lambda: Path("content.json"))
    backend: str | None = None
    backends: Mapping[str, Mapping[str, object]] = field(default_factory=dict)
    paths: SitePaths | None = None

    def __post_init__(self) -> None:
        if not self.root.is_absolute():
            object.__setattr__(self, "root", self.root.resolve())
        if not self.base_url:
            msg = "base_url must not be empty"
            raise ConfigError(msg)
        if not self.base_url.endswith("/"):
            object.__setattr__(self, "base_url", self.base_url + "/")
        if self.max_workers < 1:
            msg = f"max_workers must be at least 1, got {self.max_workers}"
            raise ConfigError(msg)
        if self.fetch_timeout <= 0:
            msg = f"fetch_timeout must be positive, got {self.fetch_timeout}"
            raise ConfigError(msg)
        if not self.index_filename or "/" in self.index_filename:
            msg = f"index_filename must be a plain file name, got {self.index_filename!r}"
            raise ConfigError(msg)
        if not self.rss_filename or "/" in self.rss_filename:
            msg = f"rss_filename must be a plain file name, got {self.rss_filename!r}"
            raise ConfigError(msg)

    @property
    def content_path(self) -> Path:
        """Absolute path to the content export file."""
        if self.content_file.is_absolute():
            return self.content_file
        return self.root / self.content_file

    @property
    def site_paths(self) -> SitePaths:
        """Static content locations, defaulting to the layout under ``root``."""
        if self.paths is not None:
            return self.paths
        return SitePaths.for_root(self.root)

    def resolve_path(self, value: str | Path) -> Path:
        """Resolve a configured path against ``root``."""
        path = Path(value).expanduser()
        if path.is_absolute():
            return path
        return self.root / path
