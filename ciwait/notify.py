"""Fire-and-forget notifications: terminal bell, sounds, desktop popups and hooks.

The poll loop only enqueues intents. A daemon thread performs them, and every
failure is logged at debug level and otherwise ignored so that notifications
never influence polling or the exit status.
"""

import enum
import logging
import os
import queue
import shutil
import sys
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import TextIO

from ciwait.config import Config
from ciwait.io import spawn

__all__ = [
    "Dispatcher",
    "Event",
    "Notification",
    "NullDispatcher",
]


class Event(enum.Enum):
    INCREMENT = "increment"  # another check passed
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class Notification:
    event: Event
    target: str
    message: str = ""


# Candidate players in order of preference: (program, args per event)
SOUND_PLAYERS = [
    (
        "paplay",
        {
            Event.SUCCESS: ["/usr/share/sounds/freedesktop/stereo/complete.oga"],
            Event.FAILURE: ["/usr/share/sounds/freedesktop/stereo/dialog-error.oga"],
        },
    ),
    (
        "canberra-gtk-play",
        {
            Event.SUCCESS: ["--id=complete"],
            Event.FAILURE: ["--id=dialog-error"],
        },
    ),
    (
        "afplay",
        {
            Event.SUCCESS: ["/System/Library/Sounds/Glass.aiff"],
            Event.FAILURE: ["/System/Library/Sounds/Basso.aiff"],
        },
    ),
]


def _desktop_command(title: str, message: str) -> list[str] | None:
    if shutil.which("notify-send"):
        return ["notify-send", "--app-name=ci-wait", title, message]
    if shutil.which("osascript"):
        script = f"display notification {_applescript_str(message)} with title {_applescript_str(title)}"
        return ["osascript", "-e", script]
    return None


def _applescript_str(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


class NullDispatcher:
    """Dispatcher that drops every notification."""

    def notify(self, event: Event, target: str, message: str = ""):
        pass

    def close(self, timeout: float = 0):
        pass


class Dispatcher:
    """Performs notifications on a background thread, started on first use."""

    def __init__(
        self,
        config: Config,
        hooks_dir: str | None = None,
        stream: TextIO | None = None,
        spawner: Callable = spawn,
    ):
        self.config = config
        self.hooks_dir = hooks_dir
        self.stream = stream if stream is not None else sys.stderr
        self.spawner = spawner
        self._queue: queue.Queue[Notification | None] = queue.Queue()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    def notify(self, event: Event, target: str, message: str = ""):
        """Enqueue a notification and return immediately."""
        with self._lock:
            if self._thread is None:
                self._thread = threading.Thread(target=self._run, daemon=True)
                self._thread.start()
        self._queue.put(Notification(event, target, message))

    def close(self, timeout: float = 1.0):
        """Let queued notifications go out, waiting at most `timeout` seconds."""
        if self._thread is None:
            return
        self._queue.put(None)
        self._thread.join(timeout=timeout)

    def _run(self):
        while True:
            item = self._queue.get()
            if item is None:
                return
            self.dispatch(item)

    def dispatch(self, note: Notification):
        """Perform one notification synchronously, ignoring every failure."""
        actions = [self._bell]
        if note.event is not Event.INCREMENT:
            actions += [self._sound, self._desktop, self._hook]
        for action in actions:
            try:
                action(note)
            except Exception as e:
                logging.debug("Notification %s via %s failed: %s", note.event.value, action.__name__, e)

    def _bell(self, note: Notification):
        if not self.config.try_emit_bell:
            return
        self.stream.write("\a")
        self.stream.flush()

    def _sound(self, note: Notification):
        if not self.config.try_sound_player:
            return
        for program, args in SOUND_PLAYERS:
            if shutil.which(program):
                self.spawner([program, *args[note.event]])
                return
        logging.debug("No sound player found")

    def _desktop(self, note: Notification):
        if not self.config.try_desktop_notify:
            return
        title = f"CI {note.event.value}: {note.target}"
        cmd = _desktop_command(title, note.message or title)
        if cmd is None:
            logging.debug("No desktop notifier found")
            return
        self.spawner(cmd)

    def _hook(self, note: Notification):
        if not self.config.try_hooks or not self.hooks_dir:
            return
        path = os.path.join(self.hooks_dir, f"ci-wait-{note.event.value}")
        if not os.access(path, os.X_OK):
            logging.debug("No executable hook at %s", path)
            return
        self.spawner([path, note.target])
