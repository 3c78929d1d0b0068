"""Settings persisted in git config under the ci-wait.* namespace."""

import dataclasses
import logging
import subprocess
from dataclasses import dataclass

from ciwait.io import run
from ciwait.utils import parse_bool, parse_int

__all__ = [
    "NAMESPACE",
    "Config",
    "GitConfigStore",
]

NAMESPACE = "ci-wait"


class GitConfigStore:
    """Key-value store scoped to the current repository (`git config --local`).

    Keys are given without the namespace prefix, e.g. "slow-poll-seconds".
    """

    def __init__(self, namespace: str = NAMESPACE):
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self.namespace}.{key}"

    def get_all(self) -> dict[str, str]:
        """All values in the namespace, read with a single git call."""
        try:
            proc = run(["git", "config", "--local", "--get-regexp", rf"^{self.namespace}\."])
        except (OSError, subprocess.SubprocessError) as e:
            logging.warning("Cannot read git config: %s", e)
            return {}
        # Exit status 1 just means no keys are set
        values = {}
        prefix = f"{self.namespace}."
        for line in proc.stdout.splitlines():
            name, _, value = line.partition(" ")
            if name.startswith(prefix):
                values[name[len(prefix) :]] = value
        return values

    def get(self, key: str) -> str | None:
        try:
            proc = run(["git", "config", "--local", "--get", self._key(key)])
        except (OSError, subprocess.SubprocessError) as e:
            logging.warning("Cannot read git config %s: %s", self._key(key), e)
            return None
        if proc.returncode != 0:
            return None
        return proc.stdout.rstrip("\n")

    def set(self, key: str, value: str):
        proc = run(["git", "config", "--local", self._key(key), value])
        if proc.returncode != 0:
            logging.warning("Cannot write git config %s: %s", self._key(key), proc.stderr.strip())

    def unset(self, key: str):
        """Remove a key; a missing key is not an error."""
        run(["git", "config", "--local", "--unset-all", self._key(key)])


@dataclass(frozen=True)
class Config:
    """Settings for one run, built once by `Config.load` and passed around.

    Field names map to config keys by replacing underscores with dashes.
    """

    before_poll_seconds: int = 5
    slow_poll_seconds: int = 60
    fast_poll_seconds: int = 10
    fast_poll_percent: int = 90
    timeout_seconds: int = 3600  # 0 disables
    exit_early_on_fail: bool = True
    progress_bar_width: int = 40
    rolling_history_size: int = 10  # 0 disables history
    try_progress_bar: bool = True
    try_emit_bell: bool = True
    try_sound_player: bool = True
    try_desktop_notify: bool = True
    try_hooks: bool = True

    # Lower bounds keep the load on the provider in check
    FLOORS = {
        "slow_poll_seconds": 20,
        "fast_poll_seconds": 5,
        "fast_poll_percent": 75,
        "progress_bar_width": 10,
    }

    @staticmethod
    def config_key(field_name: str) -> str:
        return field_name.replace("_", "-")

    @classmethod
    def from_values(cls, values: dict[str, str]) -> "Config":
        """Defaults overlaid with string values keyed by config key."""
        overrides = {}
        for f in dataclasses.fields(cls):
            key = cls.config_key(f.name)
            raw = values.get(key)
            if raw is None:
                continue
            if f.type in (bool, "bool"):
                parsed = parse_bool(raw)
            else:
                parsed = parse_int(raw)
            if parsed is None:
                logging.warning("Ignoring invalid %s.%s = %r", NAMESPACE, key, raw)
                continue
            overrides[f.name] = parsed
        for name, floor in cls.FLOORS.items():
            if name in overrides and overrides[name] < floor:
                logging.debug("Raising %s to its minimum %d", cls.config_key(name), floor)
                overrides[name] = floor
        return cls(**overrides)

    @classmethod
    def load(cls, store: GitConfigStore) -> "Config":
        return cls.from_values(store.get_all())
