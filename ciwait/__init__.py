"""ci-wait - Wait for CI checks with adaptive polling and progress estimates.

Polls `gh pr checks` for one branch or pull request, shows progress against
the typical duration of past runs, and announces the result.
"""

from ciwait.checks import CheckSetSnapshot, parse_checks
from ciwait.config import Config
from ciwait.history import HistoryStore
from ciwait.progress import estimate_progress
from ciwait.scheduler import next_sleep
from ciwait.stats import format_elapsed, low_median, parse_elapsed

try:
    from ciwait._version import __version__
except ImportError:
    __version__ = "0.0.0.dev0"

__all__ = [
    "CheckSetSnapshot",
    "Config",
    "HistoryStore",
    "__version__",
    "estimate_progress",
    "format_elapsed",
    "low_median",
    "next_sleep",
    "parse_checks",
    "parse_elapsed",
]
