"""Command-line interface for ci-wait."""

import argparse
import logging
import sys
import time

import tracerite

from ciwait import __version__
from ciwait.checks import GhChecksProvider
from ciwait.config import NAMESPACE, Config, GitConfigStore
from ciwait.history import HistoryStore
from ciwait.io import (
    CiWaitError,
    hooks_dir,
    require_gh_auth,
    require_pull_request,
    require_repository,
    require_tools,
    resolve_target,
)
from ciwait.notify import Dispatcher, Event
from ciwait.poller import Poller
from ciwait.progress import StatusLine, estimate_progress
from ciwait.stats import SessionSummary, format_elapsed

tracerite.load()

__all__ = ["main"]

SELF_TEST_TARGET = "self-test"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ci-wait",
        description="Wait for GitHub CI checks to finish, showing progress against past runs",
        epilog=f"Settings are read from git config keys {NAMESPACE}.*",
    )
    parser.add_argument(
        "target",
        nargs="?",
        help="PR number, URL or owner:branch (default: current branch)",
    )
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--clear-history",
        action="store_true",
        help="Forget stored run durations and exit",
    )
    parser.add_argument(
        "--test-notify",
        action="store_true",
        help="Exercise progress bar, bell, sound, desktop and hook notifications and exit",
    )
    parser.add_argument(
        "--no-delay",
        action="store_true",
        help="Skip the wait before the first poll",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose mode: log every poll",
    )
    return parser


def self_test(config: Config, status: StatusLine) -> int:
    """Show sample bars and fire every notification without querying CI."""
    median = 300
    if config.try_progress_bar:
        for elapsed, pending in [(0, 3), (75, 3), (150, 2), (299, 1), (400, 1), (400, 0)]:
            _, bar = estimate_progress(elapsed, 0, median, pending, config.progress_bar_width)
            status.print(f"{bar}  {format_elapsed(elapsed)} of {format_elapsed(median)}, {pending} pending")

    dispatcher = Dispatcher(config, hooks_dir())
    try:
        dispatcher.notify(Event.INCREMENT, SELF_TEST_TARGET, "Check passed")
        dispatcher.notify(Event.SUCCESS, SELF_TEST_TARGET, "Notification test: success")
        dispatcher.notify(Event.FAILURE, SELF_TEST_TARGET, "Notification test: failure")
    finally:
        dispatcher.close(timeout=5.0)
    status.print("Notifications sent")
    return 0


def _main(argv=None) -> int:
    """Internal main function that may raise exceptions."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    require_tools("git")
    require_repository()
    store = GitConfigStore()
    config = Config.load(store)
    logging.debug("Settings: %s", config)
    status = StatusLine()

    if args.test_notify:
        return self_test(config, status)

    history = HistoryStore(store, config.rolling_history_size)
    if args.clear_history:
        history.clear_all()
        status.print("Cleared stored run durations")
        return 0

    require_tools("gh")
    require_gh_auth()
    target = resolve_target(args.target)
    require_pull_request(target)

    if config.before_poll_seconds and not args.no_delay:
        # A just-pushed commit may not be visible to CI yet
        status.update(f"Waiting {config.before_poll_seconds}s before polling {target}")
        time.sleep(config.before_poll_seconds)

    dispatcher = Dispatcher(config, hooks_dir())
    poller = Poller(config, GhChecksProvider(), history, dispatcher, status)
    try:
        outcome = poller.run(target)
    finally:
        status.finish()
        dispatcher.close()

    SessionSummary(
        target=target,
        state=outcome.state.name,
        elapsed=outcome.elapsed,
        iterations=outcome.iterations,
        passed=outcome.snapshot.passed,
        total=outcome.snapshot.total,
        median=outcome.median,
    ).print_summary(status.stream)
    return outcome.returncode


def main(argv=None):
    """Main entry point for the CLI with exception handling."""
    try:
        sys.exit(_main(argv))
    except (KeyboardInterrupt, BrokenPipeError):
        sys.exit(1)
    except CiWaitError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
