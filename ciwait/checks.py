"""Check-set snapshots parsed from `gh pr checks` output."""

import logging
import subprocess
from dataclasses import dataclass

from ciwait.io import run
from ciwait.stats import parse_elapsed

__all__ = [
    "CheckQuery",
    "CheckSetSnapshot",
    "GhChecksProvider",
    "parse_checks",
]


@dataclass(frozen=True)
class CheckSetSnapshot:
    """Counts of all checks for a target at one point in time.

    pending + failed + passed may be less than total when the provider
    reports other states (skipped, cancelled).
    """

    total: int = 0
    pending: int = 0
    failed: int = 0
    passed: int = 0
    longest_elapsed: int = 0  # slowest single check, seconds


@dataclass(frozen=True)
class CheckQuery:
    """Raw result of one provider call."""

    returncode: int
    output: str = ""


def parse_checks(text: str | None) -> CheckSetSnapshot:
    """Count checks in tab-separated rows: name, status, elapsed, ...

    Status "pending" (exact) is pending, anything containing "fail" is a
    failure and anything containing "pass" a pass (case insensitive).
    """
    if not text:
        return CheckSetSnapshot()
    total = pending = failed = passed = 0
    durations = []
    for line in text.splitlines():
        fields = line.split("\t")
        if len(fields) < 2 or not fields[0].strip():
            continue
        total += 1
        status = fields[1].strip()
        lowered = status.lower()
        if status == "pending":
            pending += 1
        elif "fail" in lowered:
            failed += 1
        elif "pass" in lowered:
            passed += 1
        if len(fields) > 2:
            durations.append(parse_elapsed(fields[2].strip()))
    longest = max(durations, default=0)
    return CheckSetSnapshot(total, pending, failed, passed, longest)


class GhChecksProvider:
    """Status provider backed by the GitHub CLI."""

    def __init__(self, timeout: float = 60):
        self.timeout = timeout

    def command(self, target: str) -> list[str]:
        cmd = ["gh", "pr", "checks"]
        if target:
            cmd.append(target)
        return cmd

    def query(self, target: str) -> CheckQuery:
        """One best-effort call; failures come back as an empty result."""
        try:
            proc = run(self.command(target), timeout=self.timeout)
        except (OSError, subprocess.SubprocessError) as e:
            logging.warning("Status query failed: %s", e)
            return CheckQuery(returncode=1)
        if proc.returncode not in (0, 8) and proc.stderr.strip():
            # 1 is also returned for failed checks, so stderr is only informative
            logging.debug("gh pr checks exited %d: %s", proc.returncode, proc.stderr.strip())
        return CheckQuery(proc.returncode, proc.stdout)
