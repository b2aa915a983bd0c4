"""Run banner and summary: mode-aware status output on stderr.

Detects ``NO_COLOR`` / ``TERM`` for safe fallback.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sitefreeze.config import FreezeConfig
    from sitefreeze.pipeline.orchestrator import RunResult


# ---------------------------------------------------------------------------
# ANSI helpers (https://no-color.org)
# ---------------------------------------------------------------------------

def _supports_color() -> bool:
    """Return True if the terminal supports ANSI colors."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


_COLOR = _supports_color()

_RESET = "\033[0m" if _COLOR else ""
_BOLD = "\033[1m" if _COLOR else ""
_DIM = "\033[2m" if _COLOR else ""
_CYAN = "\033[36m" if _COLOR else ""
_GREEN = "\033[32m" if _COLOR else ""
_RED = "\033[31m" if _COLOR else ""
_YELLOW = "\033[33m" if _COLOR else ""


# ---------------------------------------------------------------------------
# Mode badges
# ---------------------------------------------------------------------------

_MODE_STYLES: dict[str, tuple[str, str]] = {
    "generate": (_GREEN, "generate"),
    "routes": (_CYAN, "routes"),
}


def _mode_badge(mode: str) -> str:
    """Return a styled [mode] badge."""
    color, label = _MODE_STYLES.get(mode, (_DIM, mode))
    return f"{color}[{label}]{_RESET}"


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def print_banner(
    config: FreezeConfig,
    mode: str,
    *,
    warnings: list[str] | None = None,
) -> None:
    """Print the sitefreeze banner to stderr.

    Args:
        config: Resolved FreezeConfig.
        mode: One of ``"generate"``, ``"routes"``.
        warnings: Optional list of warning messages to display.

    """
    from sitefreeze import __version__

    badge = _mode_badge(mode)
    lines: list[str] = [
        "",
        f"  {_BOLD}sitefreeze{_RESET} {_DIM}v{__version__}{_RESET}  {badge}",
        f"  {_DIM}{'─' * 43}{_RESET}",
        f"  {_DIM}├─{_RESET} site: {_DIM}{config.base_url}{_RESET}",
        f"  {_DIM}├─{_RESET} content: {_DIM}{config.content_path}{_RESET}",
    ]

    if mode == "generate":
        lines.append(f"  {_DIM}├─{_RESET} workers: {config.max_workers}")
        backend = config.backend or "(none)"
        lines.append(f"  {_DIM}└─{_RESET} backend: {_YELLOW}{backend}{_RESET}")

    if warnings:
        lines.append("")
        lines.extend(f"  {_YELLOW}!{_RESET} {w}" for w in warnings)

    lines.append("")

    print("\n".join(lines), file=sys.stderr)


def print_run_summary(result: RunResult) -> None:
    """Print run completion summary to stderr."""
    lines = ["", "─" * 41]

    if result.ok:
        lines.append(f"  {_GREEN}Published{_RESET} {_plural(result.pages_written, 'file')}")
        lines.append(
            f"  {_plural(len(result.posts), 'post')}, {_plural(len(result.tags), 'tag')}"
        )
    else:
        error = result.error
        code = error.code if error is not None else "?"
        lines.append(f"  {_RED}Failed{_RESET} in {result.failed_in} (code {code})")
        if error is not None:
            lines.append(f"  {error}")
        if result.pages_written:
            lines.append(
                f"  {_plural(result.pages_written, 'file')} written before the failure"
            )

    lines.append(f"  Done in {result.duration_ms:.0f}ms")

    print("\n".join(lines), file=sys.stderr)
