"""Tests for sitefreeze.pipeline.orchestrator: the generation run state machine."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from pathlib import Path

import pytest

from sitefreeze._errors import FetchError, LockError
from sitefreeze.config import FreezeConfig
from sitefreeze.content.store import MemoryContentStore
from sitefreeze.observability.collector import RunCollector
from sitefreeze.observability.events import PageWritten, RunFailed, StageEntered
from sitefreeze.pipeline.lock import lock_path_for
from sitefreeze.pipeline.orchestrator import RunState, SiteGenerator, _RunContext
from tests.conftest import BASE_URL, RecordingBackend, echo_fetch, sample_items


def _config(root: Path, **kwargs: object) -> FreezeConfig:
    return FreezeConfig(root=root, base_url=BASE_URL, **kwargs)  # type: ignore[arg-type]


def _states(log: object) -> list[str]:
    return [e.state for e in log.query(event_type=StageEntered)]  # type: ignore[attr-defined]


class TestSuccessfulRun:
    @pytest.mark.asyncio
    async def test_full_run(self, tmp_site: Path, memory_store: MemoryContentStore) -> None:
        backend = RecordingBackend(tmp_site / "out")
        generator = SiteGenerator(
            _config(tmp_site), memory_store, memory_store, echo_fetch, backend=backend,
        )

        result = await generator.run()

        assert result.ok
        assert result.state is RunState.DONE
        assert generator.state is RunState.DONE
        assert backend.calls == ["initialize", "finalize"]
        assert result.summary() == {
            "posts": ["hello", "second", "about"],
            "tags": ["news", "intro"],
        }
        assert result.pages_written == result.mapping_count == len(backend.files)
        assert backend.files["hello/index.html"] == b"<!-- http://blog.test/hello/ -->"
        assert "assets/css/screen.css" in backend.files

    @pytest.mark.asyncio
    async def test_state_sequence(self, tmp_site: Path, memory_store: MemoryContentStore) -> None:
        result = await SiteGenerator(
            _config(tmp_site), memory_store, memory_store, echo_fetch,
            backend=RecordingBackend(tmp_site / "out"),
        ).run()

        assert _states(result.log) == [
            "idle",
            "backend_resolved",
            "initialized",
            "enumerated",
            "writing",
            "finalized",
            "done",
        ]

    @pytest.mark.asyncio
    async def test_every_write_logged(self, tmp_site: Path, memory_store: MemoryContentStore) -> None:
        result = await SiteGenerator(
            _config(tmp_site), memory_store, memory_store, echo_fetch,
            backend=RecordingBackend(tmp_site / "out"),
        ).run()

        written = result.log.query(event_type=PageWritten)
        assert len(written) == result.mapping_count
        assert {e.target for e in written} >= {"index.html", "rss/rss.xml"}  # type: ignore[union-attr]

    @pytest.mark.asyncio
    async def test_concurrency_bounded(self, tmp_site: Path, memory_store: MemoryContentStore) -> None:
        active = 0
        peak = 0

        async def counting_fetch(url: str) -> AsyncIterator[bytes]:
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            yield url.encode()

        result = await SiteGenerator(
            _config(tmp_site, max_workers=2), memory_store, memory_store, counting_fetch,
            backend=RecordingBackend(tmp_site / "out"),
        ).run()

        assert result.ok
        assert peak <= 2

    @pytest.mark.asyncio
    async def test_shared_collector(self, tmp_site: Path, memory_store: MemoryContentStore) -> None:
        collector = RunCollector()
        result = await SiteGenerator(
            _config(tmp_site), memory_store, memory_store, echo_fetch,
            backend=RecordingBackend(tmp_site / "out"), collector=collector,
        ).run()
        assert result.log is collector.log

    @pytest.mark.asyncio
    async def test_lock_released(self, tmp_site: Path, memory_store: MemoryContentStore) -> None:
        backend = RecordingBackend(tmp_site / "out")
        await SiteGenerator(
            _config(tmp_site), memory_store, memory_store, echo_fetch, backend=backend,
        ).run()
        assert not lock_path_for(backend.working_dir).exists()

    @pytest.mark.asyncio
    async def test_resolves_backend_from_config(self, tmp_site: Path, memory_store: MemoryContentStore) -> None:
        config = _config(
            tmp_site,
            backend="preview",
            backends={"preview": {"name": "directory", "working_dir": "out"}},
        )
        result = await SiteGenerator(config, memory_store, memory_store, echo_fetch).run()

        assert result.ok
        assert (tmp_site / "out" / "index.html").read_bytes() == b"<!-- http://blog.test/ -->"
        assert (tmp_site / "out" / "content" / "images" / "2024" / "cover.jpg").exists()


class TestFailedRun:
    @pytest.mark.asyncio
    async def test_config_error_before_backend(self, tmp_site: Path, memory_store: MemoryContentStore) -> None:
        result = await SiteGenerator(
            _config(tmp_site), memory_store, memory_store, echo_fetch,
        ).run()

        assert result.state is RunState.FAILED
        assert result.failed_in is RunState.IDLE
        assert result.summary()["code"] == 10
        assert _states(result.log) == ["idle", "failed"]

    @pytest.mark.asyncio
    async def test_lock_held(self, tmp_site: Path, memory_store: MemoryContentStore) -> None:
        backend = RecordingBackend(tmp_site / "out")
        lock = lock_path_for(backend.working_dir)
        lock.write_text("99999\n")

        result = await SiteGenerator(
            _config(tmp_site), memory_store, memory_store, echo_fetch, backend=backend,
        ).run()

        assert isinstance(result.error, LockError)
        assert backend.calls == []
        # another run's lock is left alone
        assert lock.exists()

    @pytest.mark.asyncio
    async def test_enumeration_error_skips_writes(self, tmp_site: Path) -> None:
        store = MemoryContentStore(sample_items(), {"postsPerPage": "5", "activeTheme": "missing"})
        backend = RecordingBackend(tmp_site / "out")

        result = await SiteGenerator(
            _config(tmp_site), store, store, echo_fetch, backend=backend,
        ).run()

        assert result.failed_in is RunState.INITIALIZED
        assert result.summary()["code"] == 20
        assert backend.calls == ["initialize"]
        assert backend.files == {}

    @pytest.mark.asyncio
    async def test_fetch_error_skips_finalize(self, tmp_site: Path, memory_store: MemoryContentStore) -> None:
        async def flaky_fetch(url: str) -> AsyncIterator[bytes]:
            if url.endswith("/second/"):
                raise FetchError(url, "connection reset")
            yield b"ok"

        backend = RecordingBackend(tmp_site / "out")
        result = await SiteGenerator(
            _config(tmp_site, max_workers=1), memory_store, memory_store, flaky_fetch,
            backend=backend,
        ).run()

        assert not result.ok
        assert result.failed_in is RunState.WRITING
        assert result.summary() == {
            "code": 30,
            "message": "Failed to fetch http://blog.test/second/: connection reset",
        }
        assert "finalize" not in backend.calls
        # dispatch stops at the first failure with a single worker
        assert set(backend.files) == {"index.html", "hello/index.html"}
        assert result.pages_written == 2

    @pytest.mark.asyncio
    async def test_write_error_recorded(self, tmp_site: Path, memory_store: MemoryContentStore) -> None:
        backend = RecordingBackend(tmp_site / "out", fail_on="rss/rss.xml")
        result = await SiteGenerator(
            _config(tmp_site), memory_store, memory_store, echo_fetch, backend=backend,
        ).run()

        assert result.summary()["code"] == 40
        [failure] = result.log.query(event_type=RunFailed)
        assert failure.state == "writing"  # type: ignore[union-attr]
        assert _states(result.log)[-1] == "failed"
        assert "finalize" not in backend.calls

    @pytest.mark.asyncio
    async def test_generator_reusable_after_failure(self, tmp_site: Path, memory_store: MemoryContentStore) -> None:
        backend = RecordingBackend(tmp_site / "out", fail_on="index.html")
        generator = SiteGenerator(
            _config(tmp_site), memory_store, memory_store, echo_fetch, backend=backend,
        )
        assert not (await generator.run()).ok

        backend.fail_on = None
        second = await generator.run()
        assert second.ok
        assert backend.calls == ["initialize", "initialize", "finalize"]


class TestRunContext:
    def test_backend_required_after_resolution(self) -> None:
        ctx = _RunContext(collector=RunCollector())
        with pytest.raises(RuntimeError, match="before it was resolved"):
            ctx.require_backend()

    def test_resolved_backend_returned(self, tmp_path: Path) -> None:
        backend = RecordingBackend(tmp_path / "out")
        ctx = _RunContext(collector=RunCollector(), backend=backend)
        assert ctx.require_backend() is backend
