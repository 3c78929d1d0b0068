import io
import os
import stat

from ciwait import notify
from ciwait.config import Config
from ciwait.notify import Dispatcher, Event, Notification


class Spawner:
    def __init__(self, fail=False):
        self.commands = []
        self.fail = fail

    def __call__(self, cmd):
        self.commands.append(cmd)
        if self.fail:
            raise OSError("cannot start")


def only_programs(monkeypatch, *available):
    monkeypatch.setattr(notify.shutil, "which", lambda name: f"/usr/bin/{name}" if name in available else None)


def test_increment_rings_bell_only(monkeypatch):
    only_programs(monkeypatch, "paplay", "notify-send")
    out, spawner = io.StringIO(), Spawner()
    Dispatcher(Config(), stream=out, spawner=spawner).dispatch(Notification(Event.INCREMENT, "t"))
    assert out.getvalue() == "\a"
    assert spawner.commands == []


def test_success_runs_everything(monkeypatch, tmp_path):
    only_programs(monkeypatch, "paplay", "notify-send")
    hook = tmp_path / "ci-wait-success"
    hook.write_text("#!/bin/sh\n")
    hook.chmod(hook.stat().st_mode | stat.S_IXUSR)
    out, spawner = io.StringIO(), Spawner()
    dispatcher = Dispatcher(Config(), hooks_dir=str(tmp_path), stream=out, spawner=spawner)
    dispatcher.dispatch(Notification(Event.SUCCESS, "feature", "All 3 checks passed"))

    assert out.getvalue() == "\a"
    programs = [cmd[0] for cmd in spawner.commands]
    assert programs == ["paplay", "notify-send", str(hook)]
    assert spawner.commands[1][-1] == "All 3 checks passed"
    assert spawner.commands[2] == [str(hook), "feature"]


def test_settings_disable_actions(monkeypatch, tmp_path):
    only_programs(monkeypatch, "paplay", "notify-send")
    config = Config(
        try_emit_bell=False, try_sound_player=False, try_desktop_notify=False, try_hooks=False
    )
    out, spawner = io.StringIO(), Spawner()
    Dispatcher(config, hooks_dir=str(tmp_path), stream=out, spawner=spawner).dispatch(
        Notification(Event.FAILURE, "feature")
    )
    assert out.getvalue() == ""
    assert spawner.commands == []


def test_failures_are_swallowed(monkeypatch, tmp_path):
    """A failing player does not stop the desktop notification"""
    only_programs(monkeypatch, "afplay", "osascript")
    spawner = Spawner(fail=True)
    Dispatcher(Config(), hooks_dir=str(tmp_path), stream=io.StringIO(), spawner=spawner).dispatch(
        Notification(Event.FAILURE, "feature", 'say "hi"')
    )
    assert [cmd[0] for cmd in spawner.commands] == ["afplay", "osascript"]
    assert spawner.commands[0][1].endswith("Basso.aiff")
    assert '\\"hi\\"' in spawner.commands[1][2]


def test_missing_programs_and_hooks(monkeypatch, tmp_path):
    only_programs(monkeypatch)
    (tmp_path / "ci-wait-failure").write_text("not executable")
    os.chmod(tmp_path / "ci-wait-failure", 0o644)
    spawner = Spawner()
    Dispatcher(Config(), hooks_dir=str(tmp_path), stream=io.StringIO(), spawner=spawner).dispatch(
        Notification(Event.FAILURE, "feature")
    )
    assert spawner.commands == []


def test_background_thread_delivers(monkeypatch):
    only_programs(monkeypatch, "paplay")
    out, spawner = io.StringIO(), Spawner()
    dispatcher = Dispatcher(Config(try_desktop_notify=False), stream=out, spawner=spawner)
    dispatcher.notify(Event.INCREMENT, "feature")
    dispatcher.notify(Event.SUCCESS, "feature")
    dispatcher.close(timeout=5)
    assert out.getvalue() == "\a\a"
    assert [cmd[0] for cmd in spawner.commands] == ["paplay"]


def test_close_without_notifications():
    Dispatcher(Config()).close()
