"""Progress estimate against historical run time, and the terminal status line."""

import re
import sys
from typing import TextIO

__all__ = [
    "BAR_EMPTY",
    "BAR_FILL",
    "StatusLine",
    "estimate_percentage",
    "estimate_progress",
    "render_bar",
]

BAR_LEFT = "["
BAR_RIGHT = "]"
BAR_FILL = "█"
BAR_EMPTY = " "

_ANSI_RE = re.compile(r"\033\[[0-9;]*[A-Za-z]")


def estimate_percentage(elapsed: int, longest_elapsed: int, median: int, pending: int) -> int | None:
    """Percent complete assuming the run takes `median` seconds.

    None without a median. Never 100 while checks are pending, always 100
    once none are.
    """
    if median <= 0:
        return None
    effective = min(max(elapsed, longest_elapsed), median)
    pct = 100 * effective // median
    if pending == 0:
        return 100
    return min(pct, 99)


def render_bar(pct: int, width: int) -> str:
    """Fixed width bar followed by the percentage, e.g. "[████      ]  40%"."""
    filled = pct * width // 100
    return f"{BAR_LEFT}{BAR_FILL * filled}{BAR_EMPTY * (width - filled)}{BAR_RIGHT}{pct:>3}%"


def estimate_progress(
    elapsed: int, longest_elapsed: int, median: int, pending: int, width: int
) -> tuple[int, str] | None:
    """Percentage and rendered bar, None when there is nothing to estimate against."""
    pct = estimate_percentage(elapsed, longest_elapsed, median, pending)
    if pct is None:
        return None
    return pct, render_bar(pct, width)


class StatusLine:
    """Single status line on stderr.

    On a tty the line is redrawn in place; otherwise every update is written
    as its own line without color codes.
    """

    def __init__(self, stream: TextIO | None = None, quiet: bool = False):
        self.stream = stream if stream is not None else sys.stderr
        self.quiet = quiet
        self.active = self.stream.isatty()
        self._dirty = False

    def _write(self, text: str):
        if not self.active:
            text = _ANSI_RE.sub("", text)
        self.stream.write(text)
        self.stream.flush()

    def update(self, text: str):
        """Replace the current status line."""
        if self.quiet:
            return
        if self.active:
            self._write(f"\r\x1b[2K{text}")
            self._dirty = True
        else:
            self._write(f"{text}\n")

    def print(self, text: str):
        """Write a permanent line below the status line."""
        if self.quiet:
            return
        self.finish()
        self._write(f"{text}\n")

    def finish(self):
        """Move off the status line so later output starts on a fresh line."""
        if self._dirty:
            self._write("\n")
            self._dirty = False
