"""Elapsed time formatting, duration statistics and the session summary."""

import re
import sys
from collections.abc import Iterable
from dataclasses import dataclass

__all__ = [
    "SessionSummary",
    "format_elapsed",
    "low_median",
    "parse_elapsed",
]

_ELAPSED_RE = re.compile(r"^\s*(?:(\d+)h\s*)?(?:(\d+)m)?\s*(\d+)s\s*$")


def format_elapsed(seconds: int) -> str:
    """Format seconds as "<m>m <ss>s", minutes unbounded."""
    m, s = divmod(max(0, int(seconds)), 60)
    return f"{m}m {s:02d}s"


def parse_elapsed(text: str | None) -> int:
    """Parse "3m 45s", "3m45s", "45s" (or gh's "1h2m3s") into seconds.

    Returns 0 for anything unrecognized.
    """
    if not text:
        return 0
    m = _ELAPSED_RE.match(text)
    if not m:
        return 0
    h, mins, secs = m.groups()
    return int(h or 0) * 3600 + int(mins or 0) * 60 + int(secs)


def low_median(values: Iterable[int]) -> int:
    """Value at ascending rank max(1, n // 2) (1-indexed), 0 when empty.

    Biased low compared to a true median: [1, 2, 3, 4, 5] gives 2. Poll
    thresholds are tuned against this, keep it.
    """
    ordered = sorted(values)
    if not ordered:
        return 0
    rank = max(1, len(ordered) // 2)
    return ordered[rank - 1]


@dataclass
class SessionSummary:
    """Final line printed when polling ends."""

    target: str
    state: str
    elapsed: int
    iterations: int
    passed: int = 0
    total: int = 0
    median: int | None = None

    def print_summary(self, stream=None):
        """Print a one-liner summary to stream (stderr by default), colored on a tty."""
        stream = stream if stream is not None else sys.stderr
        ok = self.state == "COMPLETED_SUCCESS"
        color = "\033[32m" if ok else "\033[31m"
        label = self.state.lower().replace("_", " ")
        median_fmt = (
            f"\033[2m • typical run \033[0m{format_elapsed(self.median)}"
            if self.median
            else ""
        )
        msg = (
            f"\n\033[36m[ci-wait]\033[0m {self.target} {color}\033[1m{label}\033[0m"
            f" {self.passed}/{self.total} passed in \033[1m{format_elapsed(self.elapsed)}"
            f"\033[0m\033[2m ({self.iterations} polls)\033[0m{median_fmt}\n"
        )

        if not stream.isatty():
            msg = re.sub(r"\033\[[0-9;]*m", "", msg)

        stream.write(msg)
