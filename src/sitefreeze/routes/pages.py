"""Page enumeration: derive every dynamic route from content metadata.

Routes produced, in order:

    []                 -> /               -> index.html
    [slug]             -> /slug/          -> slug/index.html
    ["tag", slug]      -> /tag/slug/      -> tag/slug/index.html
    ["page", n]        -> /page/n/        -> page/n/index.html
    rss/               -> rss/rss.xml
    favicon.ico, robots.txt

Page 1 of the paginated index is the home page, so pagination covers
indices ``2..ceil(N / posts_per_page)`` where N counts published items
that are not static pages.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sitefreeze._errors import ConfigError, DuplicateTargetError
from sitefreeze.routes.mapping import PageMapping

if TYPE_CHECKING:
    from sitefreeze.content.models import ContentItem


@dataclass(frozen=True, slots=True)
class EnumeratedPages:
    """Dynamic page mappings plus the slugs they were derived from."""

    mappings: tuple[PageMapping, ...]
    post_slugs: tuple[str, ...]
    tag_slugs: tuple[str, ...]


def parse_posts_per_page(value: object) -> int:
    """Convert a ``postsPerPage`` setting value to a positive integer.

    Raises:
        ConfigError: If the value is not an integer or is not positive.

    """
    try:
        count = int(str(value).strip())
    except ValueError as exc:
        msg = f"postsPerPage must be an integer, got {value!r}"
        raise ConfigError(msg) from exc
    if count <= 0:
        msg = f"postsPerPage must be positive, got {count}"
        raise ConfigError(msg)
    return count


def pagination_indices(non_static_count: int, posts_per_page: int) -> range:
    """Page numbers that need their own listing page (page 1 is home)."""
    if posts_per_page <= 0:
        msg = f"postsPerPage must be positive, got {posts_per_page}"
        raise ConfigError(msg)
    page_count = -(-non_static_count // posts_per_page)
    return range(2, page_count + 1)


def enumerate_pages(
    items: Sequence[ContentItem],
    posts_per_page: int,
    base_url: str,
    *,
    index_filename: str = "index.html",
    rss_filename: str = "rss.xml",
) -> EnumeratedPages:
    """Build the ordered mapping list for all dynamic routes.

    Args:
        items: Content snapshot in store order.
        posts_per_page: Listing page size; must be positive.
        base_url: Root URL of the live site.
        index_filename: File name for directory-style routes.
        rss_filename: File name for the feed.

    Raises:
        ConfigError: If ``posts_per_page`` is not positive.
        DuplicateTargetError: If two published items share a slug.

    """
    if not base_url.endswith("/"):
        base_url += "/"

    published = [item for item in items if item.is_published]

    post_slugs: list[str] = []
    seen_posts: set[str] = set()
    for item in published:
        if item.slug in seen_posts:
            msg = f"Two published items share the slug {item.slug!r}"
            raise DuplicateTargetError(msg)
        seen_posts.add(item.slug)
        post_slugs.append(item.slug)

    # dict preserves first-seen order
    tag_slugs = list(dict.fromkeys(
        tag.slug for item in published for tag in item.tags
    ))

    non_static = sum(1 for item in published if not item.is_static_page)

    segment_lists: list[list[str]] = [[]]
    segment_lists.extend([slug] for slug in post_slugs)
    segment_lists.extend(["tag", slug] for slug in tag_slugs)
    segment_lists.extend(
        ["page", str(n)] for n in pagination_indices(non_static, posts_per_page)
    )

    mappings = [
        PageMapping(
            url=base_url + "".join(f"{segment}/" for segment in segments),
            target_path="/".join([*segments, index_filename]),
        )
        for segments in segment_lists
    ]
    mappings.append(PageMapping(
        url=base_url + "rss/", target_path=f"rss/{rss_filename}", kind="feed",
    ))
    mappings.append(PageMapping(
        url=base_url + "favicon.ico", target_path="favicon.ico", kind="file",
    ))
    mappings.append(PageMapping(
        url=base_url + "robots.txt", target_path="robots.txt", kind="file",
    ))

    return EnumeratedPages(
        mappings=tuple(mappings),
        post_slugs=tuple(post_slugs),
        tag_slugs=tuple(tag_slugs),
    )
