"""Backend protocol and the shared stream-to-file writer.

A backend is the publishing target of a run.  The orchestrator drives it
through exactly three calls::

    await backend.initialize()            # prepare an empty working tree
    await backend.write(stream, "a/index.html")   # once per mapping
    await backend.finalize()              # persist / publish

Re-running a whole generation against the same backend state is safe
(``initialize`` cleans up whatever a failed run left behind); individual
calls are not retried mid-run.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import AsyncIterable, AsyncIterator
from pathlib import Path, PurePosixPath
from typing import IO, Protocol, runtime_checkable

from sitefreeze._errors import WriteError
from sitefreeze._types import ByteStream


@runtime_checkable
class Backend(Protocol):
    """Publishing target for generated pages."""

    @property
    def name(self) -> str: ...

    @property
    def working_dir(self) -> Path: ...

    async def initialize(self) -> None: ...

    async def write(self, stream: ByteStream, target_path: str) -> int: ...

    async def finalize(self) -> None: ...


def resolve_target(root: Path, target_path: str) -> Path:
    """Map a forward-slash target path to a file below *root*.

    Raises:
        WriteError: If the path is empty, absolute, or escapes *root*.

    """
    relative = PurePosixPath(target_path)
    if not target_path or relative.is_absolute() or ".." in relative.parts:
        msg = f"Invalid target path {target_path!r}"
        raise WriteError(msg)
    return root.joinpath(*relative.parts)


async def write_stream(stream: ByteStream, dest: Path) -> int:
    """Copy *stream* into *dest* and return the number of bytes written.

    *stream* is either complete ``bytes`` (the source finished before the
    destination existed) or an async iterable of chunks.  Bytes go to a
    temporary sibling that is renamed over *dest* once the source is
    exhausted, so *dest* is only ever seen complete and is closed exactly
    once.  If either side fails, the other is closed: the partial file is
    removed and the source iterator is ``aclose``-d.

    Raises:
        WriteError: On any filesystem failure.  Source errors propagate
            unchanged.

    """
    source = None if isinstance(stream, bytes | bytearray | memoryview) else aiter(stream)

    try:
        # Concurrent writers may race here; exist_ok makes it idempotent.
        await asyncio.to_thread(dest.parent.mkdir, parents=True, exist_ok=True)
    except OSError as exc:
        await _close_source(source)
        msg = f"Failed to create directory {dest.parent}: {exc}"
        raise WriteError(msg) from exc

    partial = dest.with_name(f".{dest.name}.{uuid.uuid4().hex}.part")
    try:
        fh = await asyncio.to_thread(_open_destination, partial)
        with fh:
            if source is None:
                written = await asyncio.to_thread(_write_chunk, fh, bytes(stream), dest)  # type: ignore[arg-type]
            else:
                written = await _copy_chunks(source, fh, dest)
            await asyncio.to_thread(_flush, fh, dest)
        try:
            await asyncio.to_thread(partial.replace, dest)
        except OSError as exc:
            msg = f"Failed to write {dest}: {exc}"
            raise WriteError(msg) from exc
    except BaseException:
        partial.unlink(missing_ok=True)
        await _close_source(source)
        raise
    return written


def _open_destination(partial: Path) -> IO[bytes]:
    try:
        return partial.open("wb")
    except OSError as exc:
        msg = f"Failed to open {partial}: {exc}"
        raise WriteError(msg) from exc


def _write_chunk(fh: IO[bytes], chunk: bytes, dest: Path) -> int:
    try:
        fh.write(chunk)
    except OSError as exc:
        msg = f"Failed to write {dest}: {exc}"
        raise WriteError(msg) from exc
    return len(chunk)


def _flush(fh: IO[bytes], dest: Path) -> None:
    try:
        fh.flush()
    except OSError as exc:
        msg = f"Failed to write {dest}: {exc}"
        raise WriteError(msg) from exc


async def _copy_chunks(source: AsyncIterator[bytes], fh: IO[bytes], dest: Path) -> int:
    written = 0
    async for chunk in source:
        written += await asyncio.to_thread(_write_chunk, fh, chunk, dest)
    return written


async def _close_source(source: AsyncIterable[bytes] | None) -> None:
    aclose = getattr(source, "aclose", None)
    if aclose is not None:
        await aclose()
