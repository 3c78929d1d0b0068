"""Subprocess helpers for git and gh, target resolution and precondition checks."""

import logging
import os
import re
import shutil
import subprocess
from collections.abc import Sequence

__all__ = [
    "CiWaitError",
    "PreconditionError",
    "hooks_dir",
    "remote_owner",
    "require_gh_auth",
    "require_pull_request",
    "require_repository",
    "require_tools",
    "resolve_target",
    "run",
    "spawn",
]

# Matches owner in git@github.com:owner/repo.git and https://github.com/owner/repo
_REMOTE_OWNER_RE = re.compile(r"[:/]([^/:]+)/[^/]+?(?:\.git)?/?$")


class CiWaitError(Exception):
    """Base class for errors reported to the user."""


class PreconditionError(CiWaitError):
    """Environment is not usable; raised before any polling starts."""


def run(cmd: Sequence[str], timeout: float | None = 60) -> subprocess.CompletedProcess:
    """Run a command and capture its text output. Never raises on exit status."""
    return subprocess.run(
        list(cmd),
        stdin=subprocess.DEVNULL,
        capture_output=True,
        text=True,
        timeout=timeout,
    )


def spawn(cmd: Sequence[str]) -> subprocess.Popen:
    """Start a detached process whose outcome nobody waits for."""
    return subprocess.Popen(
        list(cmd),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )


def require_tools(*names: str):
    """Raise PreconditionError naming the first program not found on PATH."""
    for name in names:
        if shutil.which(name) is None:
            raise PreconditionError(f"Required program not found: {name}")


def require_repository():
    try:
        proc = run(["git", "rev-parse", "--is-inside-work-tree"])
    except (OSError, subprocess.SubprocessError) as e:
        raise PreconditionError(f"Cannot run git: {e}") from e
    if proc.returncode != 0 or proc.stdout.strip() != "true":
        raise PreconditionError("Not inside a git repository")


def require_gh_auth():
    try:
        proc = run(["gh", "auth", "status"])
    except (OSError, subprocess.SubprocessError) as e:
        raise PreconditionError(f"Cannot run gh: {e}") from e
    if proc.returncode != 0:
        raise PreconditionError("gh is not authenticated: run `gh auth login`")


def _git(*args: str) -> str | None:
    """Output of a git command, None if it failed."""
    try:
        proc = run(["git", *args])
    except (OSError, subprocess.SubprocessError) as e:
        logging.debug("git %s failed: %s", " ".join(args), e)
        return None
    if proc.returncode != 0:
        return None
    return proc.stdout.strip()


def remote_owner(remote: str) -> str | None:
    """GitHub owner of a remote's URL, None if there is no such remote."""
    url = _git("remote", "get-url", remote)
    if not url:
        return None
    m = _REMOTE_OWNER_RE.search(url)
    return m.group(1) if m else None


def resolve_target(ref: str | None) -> str:
    """Target for `gh pr checks`.

    An explicit reference (PR number, URL or owner:branch) is passed through
    unchanged. Otherwise the current branch is used, qualified as owner:branch
    when working from a fork (an `upstream` remote owned by someone else).
    """
    if ref:
        return ref
    branch = _git("rev-parse", "--abbrev-ref", "HEAD")
    if not branch or branch == "HEAD":
        raise PreconditionError("Cannot determine current branch; pass a target explicitly")
    upstream = remote_owner("upstream")
    origin = remote_owner("origin")
    if upstream and origin and upstream != origin:
        return f"{origin}:{branch}"
    return branch


def require_pull_request(target: str):
    """Raise PreconditionError unless gh finds a pull request for the target."""
    try:
        proc = run(["gh", "pr", "view", target, "--json", "number"])
    except (OSError, subprocess.SubprocessError) as e:
        raise PreconditionError(f"Cannot run gh: {e}") from e
    if proc.returncode != 0:
        logging.debug("gh pr view %s: %s", target, proc.stderr.strip())
        raise PreconditionError(f"No pull request found for {target}")


def hooks_dir() -> str | None:
    """Absolute path of the repository's hooks directory."""
    path = _git("rev-parse", "--git-path", "hooks")
    if not path:
        return None
    return os.path.abspath(path)
