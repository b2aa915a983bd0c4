"""Asset crawling: map static asset directories to routes.

Each source directory is served by the live site under a route root
(``public/``, ``content/images/``, ``assets/``).  Every regular file below
the directory becomes one mapping whose route mirrors its relative path,
always joined with forward slashes.

Symbolic links are skipped, both links to files and links to directories
(nothing below a linked directory is visited), as are sockets, FIFOs and
other non-regular files.
"""

from __future__ import annotations

import asyncio
import stat
import urllib.parse
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import TYPE_CHECKING

from sitefreeze._concurrency import gather_fail_fast
from sitefreeze._errors import EnumerationError
from sitefreeze.routes.mapping import PageMapping

if TYPE_CHECKING:
    from sitefreeze.config import SitePaths


def normalize_route_root(route_root: str) -> str:
    """Normalise a route root to ``a/b/`` form ("" for the site root)."""
    parts = [p for p in route_root.replace("\\", "/").split("/") if p]
    if not parts:
        return ""
    return "/".join(parts) + "/"


@dataclass(frozen=True, slots=True)
class AssetSource:
    """A directory of static files and the route it is served under."""

    source_dir: Path
    route_root: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "route_root", normalize_route_root(self.route_root))


def asset_sources(paths: SitePaths, active_theme: str) -> tuple[AssetSource, ...]:
    """The standard asset directories of a blog installation.

    Built core files, uploaded images, and the active theme's assets.
    """
    return (
        AssetSource(paths.core_path / "built" / "public", "public"),
        AssetSource(paths.images_path, paths.images_rel_path),
        AssetSource(paths.theme_path / active_theme / "assets", "assets"),
    )


def crawl_directory(
    source_dir: Path,
    route_root: str,
    base_url: str,
) -> tuple[PageMapping, ...]:
    """Recursively map every regular file in *source_dir* to a route.

    Args:
        source_dir: Directory to traverse.
        route_root: Route prefix the directory is served under.
        base_url: Root URL of the live site.

    Returns:
        Mappings in sorted path order, one per regular file.

    Raises:
        EnumerationError: If the directory is missing or cannot be read.

    """
    if not base_url.endswith("/"):
        base_url += "/"
    route_root = normalize_route_root(route_root)

    if not source_dir.is_dir():
        msg = f"Asset directory not found: {source_dir}"
        raise EnumerationError(msg)

    results: list[PageMapping] = []
    try:
        for relative in _walk_regular_files(source_dir):
            results.append(PageMapping(
                url=base_url + _quote_route(route_root, relative),
                target_path=route_root + "/".join(relative.parts),
                kind="asset",
            ))
    except OSError as exc:
        msg = f"Failed to crawl asset directory {source_dir}: {exc}"
        raise EnumerationError(msg) from exc

    return tuple(results)


def _quote_route(route_root: str, relative: PurePath) -> str:
    """Percent-encode every path segment of an asset route."""
    segments = [*route_root.split("/")[:-1], *relative.parts]
    return "/".join(urllib.parse.quote(segment) for segment in segments)


def _walk_regular_files(root: Path) -> list[PurePath]:
    """Relative paths of regular files under *root*, not following links."""
    found: list[PurePath] = []
    pending = [root]
    while pending:
        directory = pending.pop()
        for entry in directory.iterdir():
            mode = entry.lstat().st_mode
            if stat.S_ISDIR(mode):
                pending.append(entry)
            elif stat.S_ISREG(mode):
                found.append(entry.relative_to(root))
            # links, sockets, fifos and devices are skipped
    return sorted(found)


async def crawl_assets(
    sources: Sequence[AssetSource],
    base_url: str,
) -> tuple[PageMapping, ...]:
    """Crawl all sources concurrently and concatenate their mappings.

    Results keep the order of *sources*.  The first failing crawl aborts
    the whole enumeration.

    Raises:
        EnumerationError: If any directory cannot be crawled.

    """
    crawls = [
        asyncio.to_thread(crawl_directory, source.source_dir, source.route_root, base_url)
        for source in sources
    ]
    per_source = await gather_fail_fast(*crawls)
    return tuple(mapping for mappings in per_source for mapping in mappings)
