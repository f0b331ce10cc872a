"""Startup banner.

Printed once the listener is bound. Respects TTY detection: no ANSI
codes when piped or redirected.

Example output::

    You can now view my-site in the browser.

      Local:            http://localhost:9000/
      On Your Network:  http://192.168.1.5:9000/

"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from perch.server.urls import PreparedUrls


def _use_color(stream: object | None = None) -> bool:
    """True if the output stream supports ANSI color."""
    s = stream or sys.stdout
    try:
        return s.isatty()  # type: ignore[union-attr]
    except Exception:
        return False


class _Palette:
    """ANSI escape sequences. Empty strings when color is disabled."""

    __slots__ = ("bold", "reset")

    def __init__(self, *, enabled: bool) -> None:
        if enabled:
            self.reset = "\033[0m"
            self.bold = "\033[1m"
        else:
            self.reset = ""
            self.bold = ""


def format_instructions(app_name: str, urls: PreparedUrls, *, color: bool = False) -> str:
    """The banner text for *app_name*."""
    c = _Palette(enabled=color)
    lines = [
        "",
        f"You can now view {c.bold}{app_name}{c.reset} in the browser.",
        "",
    ]
    if urls.lan_url_for_terminal:
        lines.append(f"  {c.bold}Local:{c.reset}            {urls.local_url_for_terminal}")
        lines.append(f"  {c.bold}On Your Network:{c.reset}  {urls.lan_url_for_terminal}")
    else:
        lines.append(f"  {urls.local_url_for_terminal}")
    lines.append("")
    return "\n".join(lines)


def print_instructions(app_name: str, urls: PreparedUrls, *, stream: TextIO | None = None) -> None:
    """Write the banner to *stream* (stdout by default)."""
    out = stream or sys.stdout
    out.write(format_instructions(app_name, urls, color=_use_color(out)) + "\n")
    out.flush()
