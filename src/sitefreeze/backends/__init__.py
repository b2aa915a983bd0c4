"""Publishing backends.

The set of variants is closed: ``BACKEND_TYPES`` maps each ``name`` a
backend section may declare to its implementation.  ``create_backend``
parses the selected section into its typed config and constructs the
backend; every configuration problem surfaces here as ``ConfigError``,
before any backend method runs.

Public API::

    from sitefreeze.backends import create_backend

    backend = create_backend("production", config.backends, collector,
                             resolve_path=config.resolve_path)
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING

from sitefreeze._errors import ConfigError
from sitefreeze.backends.base import Backend, resolve_target, write_stream
from sitefreeze.backends.directory import DirectoryBackend
from sitefreeze.backends.git import GitBackend
from sitefreeze.backends.runner import CommandResult, CommandRunner
from sitefreeze.config import (
    DEFAULT_COMMIT_MESSAGE,
    BackendConfig,
    DirectoryBackendConfig,
    GitBackendConfig,
)

if TYPE_CHECKING:
    from sitefreeze.observability.collector import RunCollector

__all__ = [
    "BACKEND_TYPES",
    "Backend",
    "CommandResult",
    "CommandRunner",
    "DirectoryBackend",
    "GitBackend",
    "create_backend",
    "parse_backend_config",
    "resolve_target",
    "write_stream",
]

BACKEND_TYPES: dict[str, type] = {
    "git": GitBackend,
    "directory": DirectoryBackend,
}

_GIT_REQUIRED = ("working_dir", "remote_repo", "branch")
_GIT_OPTIONAL = ("git_bin_dir", "remote_name", "commit_message", "command_timeout")
_DIRECTORY_REQUIRED = ("working_dir",)


def parse_backend_config(
    section: Mapping[str, object],
    resolve_path: Callable[[str | Path], Path] = Path,
) -> BackendConfig:
    """Validate one backend section into its typed config.

    Args:
        section: Raw settings including the ``name`` type tag.
        resolve_path: Turns configured paths into absolute paths.

    Raises:
        ConfigError: On a missing or unknown name, missing required
            fields, unknown fields, or values of the wrong type.

    """
    if not isinstance(section, Mapping):
        msg = "Backend configuration must be a mapping"
        raise ConfigError(msg)

    name = section.get("name")
    if not name:
        msg = "Backend configuration has no 'name'"
        raise ConfigError(msg)
    if not isinstance(name, str) or name not in BACKEND_TYPES:
        known = ", ".join(sorted(BACKEND_TYPES))
        msg = f"Unknown backend {name!r} (expected one of: {known})"
        raise ConfigError(msg)

    if name == "git":
        _check_fields(name, section, _GIT_REQUIRED, _GIT_OPTIONAL)
        bin_dir = section.get("git_bin_dir")
        timeout = section.get("command_timeout", 300.0)
        if isinstance(timeout, bool) or not isinstance(timeout, int | float) or timeout <= 0:
            msg = f"Backend 'git': command_timeout must be a positive number, got {timeout!r}"
            raise ConfigError(msg)
        return GitBackendConfig(
            working_dir=resolve_path(_str_field(name, section, "working_dir")),
            remote_repo=_str_field(name, section, "remote_repo"),
            branch=_str_field(name, section, "branch"),
            bin_dir=resolve_path(_str_field(name, section, "git_bin_dir")) if bin_dir else None,
            remote_name=_str_field(name, section, "remote_name", "origin"),
            commit_message=_str_field(
                name, section, "commit_message", DEFAULT_COMMIT_MESSAGE,
            ),
            command_timeout=float(timeout),
        )

    _check_fields(name, section, _DIRECTORY_REQUIRED, ())
    return DirectoryBackendConfig(
        working_dir=resolve_path(_str_field(name, section, "working_dir")),
    )


def create_backend(
    selected: str | None,
    backends: Mapping[str, Mapping[str, object]],
    collector: RunCollector,
    *,
    resolve_path: Callable[[str | Path], Path] = Path,
    runner: CommandRunner | None = None,
) -> Backend:
    """Resolve the selected backend section and construct the backend.

    Args:
        selected: Key of the section in *backends* to use.
        backends: Raw backend sections keyed by name.
        collector: Recorder handed to the backend.
        resolve_path: Turns configured paths into absolute paths.
        runner: Command runner for backends that spawn processes.

    Raises:
        ConfigError: If nothing is selected, the section is missing, or
            the section is invalid.

    """
    if not selected:
        msg = "No backend selected (set 'backend' in the configuration)"
        raise ConfigError(msg)
    section = backends.get(selected)
    if section is None:
        msg = f"Backend {selected!r} is not configured"
        raise ConfigError(msg)

    config = parse_backend_config(section, resolve_path)
    if isinstance(config, GitBackendConfig):
        return GitBackend(config, collector, runner)
    return DirectoryBackend(config, collector)


def _check_fields(
    name: str,
    section: Mapping[str, object],
    required: tuple[str, ...],
    optional: tuple[str, ...],
) -> None:
    missing = [key for key in required if not section.get(key)]
    if missing:
        msg = f"Backend {name!r} is missing: {', '.join(missing)}"
        raise ConfigError(msg)
    unknown = sorted(set(section) - {"name", *required, *optional})
    if unknown:
        msg = f"Backend {name!r} has unknown settings: {', '.join(unknown)}"
        raise ConfigError(msg)


def _str_field(
    name: str,
    section: Mapping[str, object],
    key: str,
    default: str | None = None,
) -> str:
    value = section.get(key, default)
    if not isinstance(value, str) or not value:
        msg = f"Backend {name!r}: {key} must be a non-empty string, got {value!r}"
        raise ConfigError(msg)
    return value
