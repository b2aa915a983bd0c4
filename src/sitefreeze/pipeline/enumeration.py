"""Full route enumeration for a run.

Gathers the three independent inputs concurrently (content items, the
``postsPerPage`` setting, and the asset crawl, which first reads
``activeTheme``), then builds one materialized mapping list: dynamic pages
first, static assets after.  Nothing is returned unless every input was
gathered and every target path is unique.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sitefreeze._concurrency import gather_fail_fast
from sitefreeze._errors import EnumerationError, FreezeError
from sitefreeze.routes.assets import AssetSource, asset_sources, crawl_assets
from sitefreeze.routes.mapping import PageMapping, ensure_unique_targets
from sitefreeze.routes.pages import enumerate_pages, parse_posts_per_page

if TYPE_CHECKING:
    from sitefreeze.config import FreezeConfig
    from sitefreeze.content.store import ContentStore, SettingsStore


@dataclass(frozen=True, slots=True)
class SiteRoutes:
    """Every mapping of a run plus the slugs the page routes came from."""

    mappings: tuple[PageMapping, ...]
    post_slugs: tuple[str, ...]
    tag_slugs: tuple[str, ...]

    @property
    def asset_count(self) -> int:
        return sum(1 for m in self.mappings if m.kind == "asset")


async def enumerate_site_routes(
    config: FreezeConfig,
    content: ContentStore,
    settings: SettingsStore,
    *,
    sources: Sequence[AssetSource] | None = None,
) -> SiteRoutes:
    """Enumerate every route of the site.

    Args:
        config: Run configuration (base URL, file names, site paths).
        content: Source of content items.
        settings: Source of ``postsPerPage`` and ``activeTheme``.
        sources: Asset directories to crawl instead of the standard ones.

    Raises:
        EnumerationError: If a lookup or crawl fails, or targets collide.
        ConfigError: If ``postsPerPage`` is invalid.

    """

    async def read_posts_per_page() -> int:
        setting = await _lookup("postsPerPage", settings.read, "postsPerPage")
        return parse_posts_per_page(setting.value)

    async def crawl() -> tuple[PageMapping, ...]:
        roots = sources
        if roots is None:
            theme = await _lookup("activeTheme", settings.read, "activeTheme")
            roots = asset_sources(config.site_paths, theme.value)
        return await crawl_assets(roots, config.base_url)

    items, posts_per_page, assets = await gather_fail_fast(
        _lookup("content items", content.find_all_content_items),
        read_posts_per_page(),
        crawl(),
    )

    pages = enumerate_pages(
        items,
        posts_per_page,
        config.base_url,
        index_filename=config.index_filename,
        rss_filename=config.rss_filename,
    )
    mappings = (*pages.mappings, *assets)
    ensure_unique_targets(mappings)

    return SiteRoutes(
        mappings=mappings,
        post_slugs=pages.post_slugs,
        tag_slugs=pages.tag_slugs,
    )


async def _lookup(what: str, func: Callable[..., Any], *args: Any) -> Any:
    """Run a store call in a thread, wrapping its failures."""
    try:
        return await asyncio.to_thread(func, *args)
    except FreezeError:
        raise
    except Exception as exc:
        msg = f"Failed to look up {what}: {exc}"
        raise EnumerationError(msg) from exc
