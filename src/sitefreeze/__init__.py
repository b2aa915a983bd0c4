"""sitefreeze: publish a static snapshot of a live blog.

Enumerates every route the blog serves (home, posts, tag pages,
pagination, feed, static assets), fetches each one from the running site,
and publishes the result through a pluggable backend: a git branch or a
plain output directory.

Quick start::

    import sitefreeze

    result = sitefreeze.generate("my-blog/")
    print(result.summary())

Routes only (no fetch, no publish)::

    routes = sitefreeze.enumerate_site("my-blog/")

"""

__version__ = "0.1.0"
__all__ = [
    "FreezeConfig",
    "FreezeError",
    "SiteGenerator",
    "__version__",
    "enumerate_site",
    "generate",
]


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import sitefreeze`` fast while providing a clean top-level API.
    """
    if name == "FreezeConfig":
        from sitefreeze.config import FreezeConfig

        return FreezeConfig

    if name == "FreezeError":
        from sitefreeze._errors import FreezeError

        return FreezeError

    if name == "SiteGenerator":
        from sitefreeze.pipeline.orchestrator import SiteGenerator

        return SiteGenerator

    if name == "generate":
        from sitefreeze.app import generate

        return generate

    if name == "enumerate_site":
        from sitefreeze.app import enumerate_site

        return enumerate_site

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
