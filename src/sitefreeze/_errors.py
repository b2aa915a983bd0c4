"""sitefreeze error hierarchy.

All sitefreeze-specific errors inherit from FreezeError for easy catching.
Each class carries a stable integer ``code`` used in structured run results.
"""


class FreezeError(Exception):
    """Base error for all sitefreeze operations."""

    code: int = 1

    def to_dict(self) -> dict[str, object]:
        """Return the structured ``{code, message}`` form of this error."""
        return {"code": self.code, "message": str(self)}


class ConfigError(FreezeError):
    """Invalid or missing configuration."""

    code = 10


class LockError(FreezeError):
    """Another generation run holds the working directory."""

    code = 11


class EnumerationError(FreezeError):
    """Route enumeration failed (content lookup, settings, asset crawl)."""

    code = 20


class DuplicateTargetError(EnumerationError):
    """Two page mappings resolve to the same target path."""

    code = 21


class FetchError(FreezeError):
    """A page could not be fetched from the site server."""

    code = 30

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url


class WriteError(FreezeError):
    """A page could not be written to the backend target."""

    code = 40


class BackendProcessError(FreezeError):
    """An external backend command exited non-zero, timed out, or is missing."""

    code = 50

    def __init__(
        self,
        argv: tuple[str, ...],
        returncode: int | None,
        stderr: str = "",
    ) -> None:
        command = " ".join(argv)
        if returncode is None:
            msg = f"Command did not complete: {command}"
        else:
            msg = f"Command exited with status {returncode}: {command}"
        detail = stderr.strip()
        if detail:
            msg = f"{msg}\n{detail}"
        super().__init__(msg)
        self.argv = argv
        self.returncode = returncode
        self.stderr = stderr
