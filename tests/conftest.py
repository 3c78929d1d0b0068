import io

import pytest

from ciwait.checks import CheckQuery
from ciwait.progress import StatusLine


class FakeStore:
    """Dict-backed stand-in for GitConfigStore."""

    def __init__(self, values=None):
        self.values = dict(values or {})

    def get_all(self):
        return dict(self.values)

    def get(self, key):
        return self.values.get(key)

    def set(self, key, value):
        self.values[key] = value

    def unset(self, key):
        self.values.pop(key, None)


class ScriptedProvider:
    """Returns queued outputs in order, repeating the last one."""

    def __init__(self, *outputs, returncode=8):
        self.outputs = list(outputs)
        self.returncode = returncode
        self.targets = []

    def query(self, target):
        self.targets.append(target)
        item = self.outputs.pop(0) if len(self.outputs) > 1 else self.outputs[0]
        if isinstance(item, Exception):
            raise item
        if isinstance(item, CheckQuery):
            return item
        return CheckQuery(self.returncode, item)


class FakeClock:
    """Clock that only moves when sleep is called."""

    def __init__(self):
        self.now = 1000.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class RecordingNotifier:
    def __init__(self):
        self.events = []

    def notify(self, event, target, message=""):
        self.events.append((event, target, message))

    def close(self, timeout=0):
        pass


def rows(*checks):
    """Tab-separated provider output from (name, status, elapsed) tuples."""
    return "".join(f"{name}\t{status}\t{elapsed}\thttps://ci.example/{name}\n" for name, status, elapsed in checks)


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def status(output):
    return StatusLine(output)
