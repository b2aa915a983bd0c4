"""Sitefreeze application entry points.

``generate`` runs the full pipeline against a site root: load the config,
open the content export, fetch every route from the live site and publish
the snapshot through the configured backend.  ``enumerate_site`` stops
after enumeration and touches no backend.
"""

import asyncio
import sys
import time
from pathlib import Path

from sitefreeze._errors import FreezeError
from sitefreeze.config import FreezeConfig
from sitefreeze.config_loader import load_config
from sitefreeze.content.store import ExportFileStore
from sitefreeze.fetch import PageFetcher
from sitefreeze.observability.log import EventLog
from sitefreeze.pipeline.enumeration import SiteRoutes, enumerate_site_routes
from sitefreeze.pipeline.orchestrator import RunResult, RunState, SiteGenerator


def _config_failure(exc: FreezeError, t0: float) -> RunResult:
    """Result for a run that never got past loading its configuration."""
    return RunResult(
        state=RunState.FAILED,
        log=EventLog(),
        error=exc,
        failed_in=RunState.IDLE,
        duration_ms=(time.perf_counter() - t0) * 1000,
    )


async def _run(config: FreezeConfig) -> RunResult:
    store = ExportFileStore(config.content_path)
    async with PageFetcher(timeout=config.fetch_timeout) as fetcher:
        generator = SiteGenerator(config, store, store, fetcher.stream)
        return await generator.run()


def generate(root: str | Path = ".", *, quiet: bool = False, **kwargs: object) -> RunResult:
    """Generate and publish a static snapshot of the site.

    Args:
        root: Path to the site root directory.
        quiet: Suppress the banner and summary on stderr.
        **kwargs: Override FreezeConfig fields.

    Returns:
        The run result.  Failures, configuration errors included, are
        reported in the result rather than raised.

    """
    from sitefreeze.banner import print_banner, print_run_summary

    t0 = time.perf_counter()
    try:
        config = load_config(Path(root), **kwargs)
    except FreezeError as exc:
        result = _config_failure(exc, t0)
        if not quiet:
            print_run_summary(result)
        return result

    if not quiet:
        print_banner(config, mode="generate")

    result = asyncio.run(_run(config))

    if not quiet:
        print_run_summary(result)
    return result


def enumerate_site(root: str | Path = ".", **kwargs: object) -> SiteRoutes:
    """Enumerate every route of the site without fetching or publishing.

    Args:
        root: Path to the site root directory.
        **kwargs: Override FreezeConfig fields.

    Raises:
        FreezeError: If the config is invalid or enumeration fails.

    """
    config = load_config(Path(root), **kwargs)
    store = ExportFileStore(config.content_path)
    return asyncio.run(enumerate_site_routes(config, store, store))


def print_event_log(log: EventLog) -> None:
    """Dump every recorded event to stderr, one line each."""
    for line in log.lines():
        print(line, file=sys.stderr)
