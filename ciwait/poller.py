"""Poll loop: query CI until the checks finish, fail or time out."""

import enum
import logging
import subprocess
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from ciwait.checks import CheckQuery, CheckSetSnapshot, parse_checks
from ciwait.config import Config
from ciwait.history import FAILURE, SUCCESS, HistoryStore
from ciwait.notify import Event, NullDispatcher
from ciwait.progress import StatusLine, estimate_progress
from ciwait.scheduler import next_sleep
from ciwait.stats import format_elapsed

__all__ = [
    "PollOutcome",
    "PollSession",
    "PollState",
    "Poller",
]


class PollState(enum.Enum):
    AWAITING_START = "awaiting start"
    IN_PROGRESS = "in progress"
    COMPLETED_SUCCESS = "completed"
    COMPLETED_FAILED_OR_INCOMPLETE = "failed"
    TIMED_OUT = "timed out"

    @property
    def terminal(self) -> bool:
        return self not in (PollState.AWAITING_START, PollState.IN_PROGRESS)


@dataclass
class PollSession:
    """Mutable state of one polling run."""

    target: str
    start_time: float
    median: int = 0
    iteration: int = 0
    last_passed: int = 0
    snapshot: CheckSetSnapshot = field(default_factory=CheckSetSnapshot)
    returncode: int = 0
    elapsed: int = 0


@dataclass
class PollOutcome:
    state: PollState
    iterations: int
    snapshot: CheckSetSnapshot
    returncode: int
    elapsed: int
    median: int | None = None  # updated median, if history was written

    @property
    def category(self) -> str:
        return SUCCESS if self.state is PollState.COMPLETED_SUCCESS else FAILURE


class Poller:
    """Runs one polling session against a status provider.

    provider must have `query(target) -> CheckQuery`. clock and sleep are
    injectable so the loop can run without waiting.
    """

    def __init__(
        self,
        config: Config,
        provider,
        history: HistoryStore,
        notifier=None,
        status: StatusLine | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.provider = provider
        self.history = history
        self.notifier = notifier if notifier is not None else NullDispatcher()
        self.status = status if status is not None else StatusLine()
        self.clock = clock
        self.sleep = sleep

    def classify(self, session: PollSession, elapsed: int) -> PollState:
        snap = session.snapshot
        if snap.total > 0 and snap.pending == 0:
            if snap.failed == 0:
                return PollState.COMPLETED_SUCCESS
            return PollState.COMPLETED_FAILED_OR_INCOMPLETE
        if snap.failed > 0 and self.config.exit_early_on_fail:
            return PollState.COMPLETED_FAILED_OR_INCOMPLETE
        if self.config.timeout_seconds and elapsed > self.config.timeout_seconds:
            return PollState.TIMED_OUT
        if snap.total == 0:
            return PollState.AWAITING_START
        return PollState.IN_PROGRESS

    def _query(self, target: str) -> CheckQuery:
        try:
            return self.provider.query(target)
        except (OSError, subprocess.SubprocessError) as e:
            logging.warning("Status query failed: %s", e)
            return CheckQuery(returncode=1)

    def _render(self, session: PollSession, elapsed: int):
        snap = session.snapshot
        if snap.total == 0:
            counts = "\033[2mwaiting for checks to start\033[0m"
        else:
            failed = f"\033[31m{snap.failed} failed\033[0m" if snap.failed else "0 failed"
            counts = (
                f"\033[32m{snap.passed}\033[0m/{snap.total} passed, "
                f"{snap.pending} pending, {failed}"
            )
        bar = ""
        show_bar = self.config.try_progress_bar and not (
            session.iteration == 1 and snap.pending == 0
        )
        if show_bar:
            progress = estimate_progress(
                elapsed,
                snap.longest_elapsed,
                session.median,
                snap.pending,
                self.config.progress_bar_width,
            )
            if progress is not None:
                bar = f"\033[33m{progress[1]}\033[0m  "
        self.status.update(
            f"\033[36m{session.target}\033[0m {bar}{counts}"
            f"  \033[2m{format_elapsed(elapsed)}\033[0m"
        )

    def step(self, session: PollSession) -> PollState:
        """One iteration: query, render, notify. Returns the resulting state."""
        session.iteration += 1
        query = self._query(session.target)
        session.returncode = query.returncode
        session.snapshot = parse_checks(query.output)
        elapsed = session.elapsed = int(self.clock() - session.start_time)
        state = self.classify(session, elapsed)
        logging.debug(
            "Poll %d: %s %s (exit %d)",
            session.iteration,
            state.name,
            session.snapshot,
            query.returncode,
        )
        self._render(session, elapsed)

        passed = session.snapshot.passed
        if session.iteration > 1 and passed > session.last_passed:
            self.notifier.notify(Event.INCREMENT, session.target, f"{passed} checks passed")
        session.last_passed = passed
        return state

    def run(self, target: str) -> PollOutcome:
        session = PollSession(
            target=target,
            start_time=self.clock(),
            median=self.history.median(SUCCESS),
        )
        while True:
            state = self.step(session)
            if state.terminal:
                break
            self.sleep(
                next_sleep(
                    session.elapsed,
                    session.median,
                    session.snapshot.total,
                    self.config.fast_poll_seconds,
                    self.config.slow_poll_seconds,
                    self.config.fast_poll_percent,
                )
            )
        self.status.finish()

        outcome = PollOutcome(
            state=state,
            iterations=session.iteration,
            snapshot=session.snapshot,
            returncode=session.returncode,
            elapsed=session.elapsed,
        )
        if session.iteration > 1:
            self._finish(session, outcome)
        return outcome

    def _finish(self, session: PollSession, outcome: PollOutcome):
        """Record the run duration and announce the result."""
        category = outcome.category
        longest = outcome.snapshot.longest_elapsed
        outcome.median = self.history.update(category, longest or None, also_return_median=True)
        if outcome.median:
            self.status.print(
                f"\033[2mMedian {category} run time:\033[0m {format_elapsed(outcome.median)}"
            )
        snap = outcome.snapshot
        if category == SUCCESS:
            event = Event.SUCCESS
            message = f"All {snap.total} checks passed"
        else:
            event = Event.FAILURE
            message = (
                f"{snap.failed} of {snap.total} checks failed"
                if snap.failed
                else f"Gave up after {format_elapsed(outcome.elapsed)}"
            )
        self.notifier.notify(event, session.target, message)
