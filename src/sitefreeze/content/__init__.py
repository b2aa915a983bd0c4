"""Content layer: read-only snapshot of posts, tags and settings.

Provides the item/tag/setting types, the store protocols consumed by the
generator, and stores backed by memory or a JSON export.
"""

from sitefreeze.content.models import ContentItem, Setting, Tag
from sitefreeze.content.store import (
    ContentStore,
    ExportFileStore,
    MemoryContentStore,
    SettingsStore,
    load_export,
)

__all__ = [
    "ContentItem",
    "ContentStore",
    "ExportFileStore",
    "MemoryContentStore",
    "Setting",
    "SettingsStore",
    "Tag",
    "load_export",
]
