"""Rolling history of CI run durations, one bounded sequence per outcome."""

import logging
from collections import deque
from typing import Protocol

from ciwait.stats import low_median

__all__ = [
    "CATEGORIES",
    "FAILURE",
    "SUCCESS",
    "HistoryStore",
    "KeyValueStore",
]

SUCCESS = "success"
FAILURE = "failure"
CATEGORIES = (SUCCESS, FAILURE)


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str): ...
    def unset(self, key: str): ...


class HistoryStore:
    """Durations of past runs (seconds), kept under rolling-elapsed-<category>.

    At most `size` values are kept per category, oldest dropped first.
    A size of 0 disables tracking altogether.
    """

    def __init__(self, store: KeyValueStore, size: int = 10):
        self.store = store
        self.size = size

    @staticmethod
    def key(category: str) -> str:
        if category not in CATEGORIES:
            raise ValueError(f"Unknown history category: {category}")
        return f"rolling-elapsed-{category}"

    def fetch(self, category: str) -> deque[int]:
        """Stored durations, oldest first; empty if nothing is stored."""
        raw = self.store.get(self.key(category)) or ""
        values: deque[int] = deque()
        for token in raw.split():
            try:
                value = int(token)
            except ValueError:
                logging.debug("Skipping malformed %s history entry %r", category, token)
                continue
            if value >= 0:
                values.append(value)
        return values

    def median(self, category: str) -> int:
        if self.size == 0:
            return 0
        return low_median(self.fetch(category))

    def clear(self, category: str):
        self.store.unset(self.key(category))

    def clear_all(self):
        for category in CATEGORIES:
            self.clear(category)

    def update(
        self, category: str, duration: int | None, also_return_median: bool = False
    ) -> int | None:
        """Append a duration, dropping the oldest beyond `size`, and persist.

        Returns the new median only if also_return_median is set.
        """
        if self.size == 0:
            return 0 if also_return_median else None
        if duration is None:
            return self.median(category) if also_return_median else None
        values = deque(self.fetch(category), maxlen=self.size)
        values.append(int(duration))
        self.store.set(self.key(category), " ".join(str(v) for v in values))
        if also_return_median:
            return low_median(values)
        return None
