"""Route enumeration: every URL the live site serves and where it lands.

Public API::

    from sitefreeze.routes import enumerate_pages, crawl_assets

    pages = enumerate_pages(items, posts_per_page=10, base_url="http://localhost:2368/")
    assets = await crawl_assets(asset_sources(paths, "casper"), base_url)
    ensure_unique_targets([*pages.mappings, *assets])
"""

from sitefreeze.routes.assets import AssetSource, asset_sources, crawl_assets, crawl_directory
from sitefreeze.routes.mapping import PageMapping, ensure_unique_targets
from sitefreeze.routes.pages import (
    EnumeratedPages,
    enumerate_pages,
    pagination_indices,
    parse_posts_per_page,
)

__all__ = [
    "AssetSource",
    "EnumeratedPages",
    "PageMapping",
    "asset_sources",
    "crawl_assets",
    "crawl_directory",
    "ensure_unique_targets",
    "enumerate_pages",
    "pagination_indices",
    "parse_posts_per_page",
]
