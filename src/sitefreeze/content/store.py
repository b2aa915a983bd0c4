"""Content and settings stores.

The generator only needs two read operations from the blog's data layer:
``find_all_content_items()`` and ``read(key)``.  They are expressed as
protocols so any data source can be plugged in; two implementations ship
here:

- ``MemoryContentStore`` holds items and settings in memory.
- ``load_export()`` builds one from a JSON export of the blog database
  (``{"db": [{"data": {"posts": ..., "tags": ..., "posts_tags": ...,
  "settings": ...}}]}``).
- ``ExportFileStore`` reads such an export lazily, on first lookup.

"""

from __future__ import annotations

import json
import threading
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from sitefreeze._errors import EnumerationError
from sitefreeze.content.models import ContentItem, Setting, Tag


@runtime_checkable
class ContentStore(Protocol):
    """Supplies the content snapshot for a run."""

    def find_all_content_items(self) -> Sequence[ContentItem]: ...


@runtime_checkable
class SettingsStore(Protocol):
    """Supplies blog settings such as ``activeTheme`` and ``postsPerPage``."""

    def read(self, key: str) -> Setting: ...


class MemoryContentStore:
    """In-memory content and settings store.

    Args:
        items: Content items in store order.
        settings: Setting values keyed by name.

    """

    __slots__ = ("_items", "_settings")

    def __init__(
        self,
        items: Iterable[ContentItem] = (),
        settings: Mapping[str, object] | None = None,
    ) -> None:
        self._items = tuple(items)
        self._settings = {k: str(v) for k, v in (settings or {}).items()}

    def find_all_content_items(self) -> Sequence[ContentItem]:
        return self._items

    def read(self, key: str) -> Setting:
        """Return the setting for *key*.

        Raises:
            KeyError: If the setting does not exist.

        """
        if key not in self._settings:
            msg = f"Setting {key!r} is not defined"
            raise KeyError(msg)
        return Setting(key=key, value=self._settings[key])


def load_export(path: Path) -> MemoryContentStore:
    """Load a blog JSON export into a MemoryContentStore.

    Accepts the full export envelope (``{"db": [{"data": ...}]}``), a bare
    ``{"data": ...}`` object, or the data tables directly.  Posts count as
    static pages when ``page`` is truthy or ``type`` is ``"page"``.

    Raises:
        EnumerationError: If the file cannot be read or is not a valid export.

    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        msg = f"Failed to read content export {path}: {exc}"
        raise EnumerationError(msg) from exc

    data = _unwrap_export(raw)
    if data is None:
        msg = f"{path} is not a content export (no posts table found)"
        raise EnumerationError(msg)

    try:
        return _store_from_tables(data)
    except (KeyError, TypeError, ValueError) as exc:
        msg = f"Malformed content export {path}: {exc}"
        raise EnumerationError(msg) from exc


def _unwrap_export(raw: Any) -> dict[str, Any] | None:
    """Locate the data tables inside the export envelope."""
    if isinstance(raw, dict) and isinstance(raw.get("db"), list) and raw["db"]:
        raw = raw["db"][0]
    if isinstance(raw, dict) and isinstance(raw.get("data"), dict):
        raw = raw["data"]
    if isinstance(raw, dict) and isinstance(raw.get("posts"), list):
        return raw
    return None


def _store_from_tables(data: dict[str, Any]) -> MemoryContentStore:
    tags_by_id = {tag["id"]: Tag(slug=str(tag["slug"])) for tag in data.get("tags", [])}

    post_tags: dict[Any, list[Tag]] = {}
    for link in sorted(data.get("posts_tags", []), key=lambda r: r.get("sort_order", 0)):
        tag = tags_by_id.get(link["tag_id"])
        if tag is not None:
            post_tags.setdefault(link["post_id"], []).append(tag)

    items = []
    for post in data["posts"]:
        status = str(post.get("status", "draft"))
        is_page = bool(post.get("page")) or post.get("type") == "page"
        items.append(ContentItem(
            slug=str(post["slug"]),
            status="published" if status == "published" else "draft",
            tags=tuple(post_tags.get(post.get("id"), ())),
            is_static_page=is_page,
        ))

    settings = {
        str(row["key"]): "" if row.get("value") is None else row["value"]
        for row in data.get("settings", [])
    }
    return MemoryContentStore(items, settings)


class ExportFileStore:
    """Content and settings store backed by an export file, loaded on demand.

    The file is parsed on the first lookup and cached for the lifetime of
    the store, so a missing or malformed export fails the enumeration
    stage of a run rather than its construction.
    """

    __slots__ = ("_lock", "_path", "_store")

    def __init__(self, path: Path) -> None:
        self._path = path
        self._store: MemoryContentStore | None = None
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _loaded(self) -> MemoryContentStore:
        with self._lock:
            if self._store is None:
                self._store = load_export(self._path)
            return self._store

    def find_all_content_items(self) -> Sequence[ContentItem]:
        return self._loaded().find_all_content_items()

    def read(self, key: str) -> Setting:
        return self._loaded().read(key)
