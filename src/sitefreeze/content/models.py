"""Content snapshot types.

These are read-only views of the content store taken once per run.  All are
frozen dataclasses, safe to share between enumeration threads.
"""

from dataclasses import dataclass

from sitefreeze._types import ContentStatus


@dataclass(frozen=True, slots=True)
class Tag:
    """A tag attached to a content item."""

    slug: str


@dataclass(frozen=True, slots=True)
class ContentItem:
    """A post or static page.

    Attributes:
        slug: URL segment the item is served under.
        status: ``"published"`` or ``"draft"``.
        tags: Tags in the order the store returned them.
        is_static_page: True for standalone pages that are not listed on
            the paginated index.

    """

    slug: str
    status: ContentStatus = "published"
    tags: tuple[Tag, ...] = ()
    is_static_page: bool = False

    @property
    def is_published(self) -> bool:
        return self.status == "published"


@dataclass(frozen=True, slots=True)
class Setting:
    """A settings-store entry, as returned by ``SettingsStore.read``."""

    key: str
    value: str
