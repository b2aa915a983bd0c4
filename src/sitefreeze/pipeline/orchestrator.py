"""Generation run coordinator.

Drives one run through its states::

    idle -> backend_resolved -> initialized -> enumerated
         -> writing -> finalized -> done

with ``failed`` reachable from any non-terminal state.  The run is an
explicit ordered list of stages; each stage either completes (moving the
run to its next state) or raises a ``FreezeError`` that ends the run.

Failure semantics:
    - Configuration and lock errors fail the run before the backend is
      touched.
    - Enumeration is all-or-nothing: every mapping is computed before the
      first fetch, so a lookup or crawl error leaves the backend as
      ``initialize`` left it.
    - On the first fetch or write error no further mappings are
      dispatched, in-flight ones drain, and ``finalize`` is skipped.
      Files already written stay in the working tree; the next run's
      ``initialize`` cleans them up.

The event log is returned with every result, failed runs included.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from sitefreeze._errors import FreezeError
from sitefreeze.backends import create_backend
from sitefreeze.observability.collector import RunCollector
from sitefreeze.observability.log import EventLog
from sitefreeze.pipeline.enumeration import enumerate_site_routes
from sitefreeze.pipeline.lock import RunLock, lock_path_for

if TYPE_CHECKING:
    from sitefreeze._types import FetchFunc
    from sitefreeze.backends.base import Backend
    from sitefreeze.backends.runner import CommandRunner
    from sitefreeze.config import FreezeConfig
    from sitefreeze.content.store import ContentStore, SettingsStore
    from sitefreeze.routes.assets import AssetSource
    from sitefreeze.routes.mapping import PageMapping


class RunState(StrEnum):
    """States of a generation run."""

    IDLE = "idle"
    BACKEND_RESOLVED = "backend_resolved"
    INITIALIZED = "initialized"
    ENUMERATED = "enumerated"
    WRITING = "writing"
    FINALIZED = "finalized"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class RunResult:
    """Outcome of one generation run.

    Attributes:
        state: ``DONE`` on success, ``FAILED`` otherwise.
        log: Every event recorded during the run.
        posts: Post slugs that were generated.
        tags: Tag slugs that were generated.
        mapping_count: Number of mappings enumerated.
        pages_written: Number of mappings fetched and written.
        error: The error that ended a failed run.
        failed_in: State the run was in when it failed.
        duration_ms: Wall-clock time of the run.

    """

    state: RunState
    log: EventLog
    posts: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    mapping_count: int = 0
    pages_written: int = 0
    error: FreezeError | None = None
    failed_in: RunState | None = None
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.state is RunState.DONE

    def summary(self) -> dict[str, Any]:
        """``{"posts", "tags"}`` on success, ``{"code", "message"}`` on failure."""
        if self.error is not None:
            return self.error.to_dict()
        return {"posts": list(self.posts), "tags": list(self.tags)}


@dataclass(slots=True)
class _RunContext:
    """Mutable state threaded through the stages of one run."""

    collector: RunCollector
    backend: Backend | None = None
    lock: RunLock | None = None
    mappings: tuple[PageMapping, ...] = ()
    posts: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    pages_written: int = 0
    failures: list[Exception] = field(default_factory=list)

    def require_backend(self) -> Backend:
        """The resolved backend; stages after resolution rely on it."""
        if self.backend is None:
            msg = "Backend used before it was resolved"
            raise RuntimeError(msg)
        return self.backend


type _Stage = Callable[[_RunContext], Awaitable[None]]


class SiteGenerator:
    """Runs the enumerate-fetch-write-publish pipeline.

    Args:
        config: Validated run configuration.
        content: Source of content items.
        settings: Source of ``postsPerPage`` and ``activeTheme``.
        fetch: Page-fetch capability (URL to body chunk stream).
        backend: Use this backend instead of resolving one from config.
            Pass the same *collector* to it so its events share the log.
        collector: Recorder to use for every run (a fresh log per run
            when omitted).
        sources: Asset directories to crawl instead of the standard ones
            derived from the active theme.
        runner: Command runner handed to resolved backends.
        use_lock: Hold the working-directory lock for the run.

    """

    def __init__(
        self,
        config: FreezeConfig,
        content: ContentStore,
        settings: SettingsStore,
        fetch: FetchFunc,
        *,
        backend: Backend | None = None,
        collector: RunCollector | None = None,
        sources: Sequence[AssetSource] | None = None,
        runner: CommandRunner | None = None,
        use_lock: bool = True,
    ) -> None:
        self._config = config
        self._content = content
        self._settings = settings
        self._fetch = fetch
        self._backend = backend
        self._collector = collector
        self._sources = tuple(sources) if sources is not None else None
        self._runner = runner
        self._use_lock = use_lock
        self._state = RunState.IDLE

    @property
    def state(self) -> RunState:
        """State of the current (or last) run."""
        return self._state

    async def run(self) -> RunResult:
        """Execute one generation run and return its result.

        ``FreezeError`` subclasses end the run in ``FAILED`` and are
        reported in the result.  Any other exception is a bug and
        propagates.
        """
        t0 = time.perf_counter()
        collector = self._collector or RunCollector(EventLog())
        ctx = _RunContext(collector=collector)
        self._state = RunState.IDLE
        collector.record_stage(RunState.IDLE)

        try:
            for stage, next_state in self._stages():
                await stage(ctx)
                if next_state is not None:
                    self._transition(ctx, next_state)
        except FreezeError as exc:
            failed_in = self._state
            collector.record_failure(failed_in, exc.code, str(exc))
            self._transition(ctx, RunState.FAILED)
            return RunResult(
                state=RunState.FAILED,
                log=collector.log,
                mapping_count=len(ctx.mappings),
                pages_written=ctx.pages_written,
                error=exc,
                failed_in=failed_in,
                duration_ms=(time.perf_counter() - t0) * 1000,
            )
        finally:
            if ctx.lock is not None:
                ctx.lock.release()

        self._transition(ctx, RunState.DONE)
        return RunResult(
            state=RunState.DONE,
            log=collector.log,
            posts=ctx.posts,
            tags=ctx.tags,
            mapping_count=len(ctx.mappings),
            pages_written=ctx.pages_written,
            duration_ms=(time.perf_counter() - t0) * 1000,
        )

    def _stages(self) -> tuple[tuple[_Stage, RunState | None], ...]:
        """Ordered stages paired with the state each one leads to."""
        return (
            (self._resolve_backend, RunState.BACKEND_RESOLVED),
            (self._initialize_backend, RunState.INITIALIZED),
            (self._enumerate_routes, RunState.ENUMERATED),
            # enters WRITING itself before the first fetch
            (self._write_pages, None),
            (self._finalize_backend, RunState.FINALIZED),
        )

    def _transition(self, ctx: _RunContext, state: RunState) -> None:
        self._state = state
        ctx.collector.record_stage(state)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def _resolve_backend(self, ctx: _RunContext) -> None:
        if self._backend is not None:
            backend = self._backend
        else:
            backend = create_backend(
                self._config.backend,
                self._config.backends,
                ctx.collector,
                resolve_path=self._config.resolve_path,
                runner=self._runner,
            )
        if self._use_lock:
            lock = RunLock(lock_path_for(backend.working_dir))
            lock.acquire()
            ctx.lock = lock
        ctx.backend = backend

    async def _initialize_backend(self, ctx: _RunContext) -> None:
        await ctx.require_backend().initialize()

    async def _enumerate_routes(self, ctx: _RunContext) -> None:
        routes = await enumerate_site_routes(
            self._config, self._content, self._settings, sources=self._sources,
        )
        ctx.mappings = routes.mappings
        ctx.posts = routes.post_slugs
        ctx.tags = routes.tag_slugs

    async def _write_pages(self, ctx: _RunContext) -> None:
        self._transition(ctx, RunState.WRITING)
        backend = ctx.require_backend()
        pending = iter(ctx.mappings)

        async def worker() -> None:
            # Shared iterator: mappings are dispatched in list order.
            for mapping in pending:
                if ctx.failures:
                    return
                try:
                    await self._write_one(ctx, backend, mapping)
                except Exception as exc:
                    ctx.failures.append(exc)
                    return

        worker_count = max(1, min(self._config.max_workers, len(ctx.mappings)))
        await asyncio.gather(*(worker() for _ in range(worker_count)))

        if ctx.failures:
            raise ctx.failures[0]

    async def _finalize_backend(self, ctx: _RunContext) -> None:
        await ctx.require_backend().finalize()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _write_one(
        self,
        ctx: _RunContext,
        backend: Backend,
        mapping: PageMapping,
    ) -> None:
        t0 = time.perf_counter()
        size = await backend.write(self._fetch(mapping.url), mapping.target_path)
        ctx.pages_written += 1
        ctx.collector.record_write(
            mapping.url,
            mapping.target_path,
            size_bytes=size,
            duration_ms=(time.perf_counter() - t0) * 1000,
        )
