"""Shared type definitions for sitefreeze."""

from collections.abc import AsyncIterable, AsyncIterator, Callable
from typing import Literal

# Absolute URL of a route on the live site (e.g., "http://localhost:2368/about/")
type Url = str

# Output path relative to the backend target, always forward-slash separated
type TargetPath = str

# Publication state of a content item
type ContentStatus = Literal["draft", "published"]

# Category of a page mapping
type MappingKind = Literal["page", "feed", "file", "asset"]

# Body of a fetched page: already-complete bytes or a chunk stream
type ByteStream = bytes | AsyncIterable[bytes]

# Page-fetch capability: URL -> chunk stream of the response body
type FetchFunc = Callable[[Url], AsyncIterator[bytes]]
