"""Generation pipeline: one locked run from enumeration to publish."""

from sitefreeze.pipeline.enumeration import SiteRoutes, enumerate_site_routes
from sitefreeze.pipeline.lock import RunLock, lock_path_for
from sitefreeze.pipeline.orchestrator import RunResult, RunState, SiteGenerator

__all__ = [
    "RunLock",
    "RunResult",
    "RunState",
    "SiteGenerator",
    "SiteRoutes",
    "enumerate_site_routes",
    "lock_path_for",
]
