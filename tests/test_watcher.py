"""Tests for perflog/watcher.py"""

from types import SimpleNamespace

from perflog.watcher import DEBOUNCE_SECONDS, ReloadHandler


def _event(path, is_directory=False):
    return SimpleNamespace(src_path=path, is_directory=is_directory)


class TestReloadHandler:
    def test_reloads_on_modify(self, tmp_path):
        target = tmp_path / "app.log"
        calls = []
        handler = ReloadHandler(str(target), calls.append)
        handler.on_modified(_event(str(target)))
        assert calls == [str(target)]

    def test_ignores_other_files(self, tmp_path):
        calls = []
        handler = ReloadHandler(str(tmp_path / "app.log"), calls.append)
        handler.on_modified(_event(str(tmp_path / "other.log")))
        handler.on_created(_event(str(tmp_path), is_directory=True))
        assert calls == []

    def test_debounces_bursts(self, tmp_path, monkeypatch):
        target = str(tmp_path / "app.log")
        calls = []
        handler = ReloadHandler(target, calls.append)

        now = [1000.0]
        monkeypatch.setattr("perflog.watcher.time.time", lambda: now[0])
        handler.on_modified(_event(target))
        handler.on_modified(_event(target))
        now[0] += DEBOUNCE_SECONDS + 0.1
        handler.on_created(_event(target))
        assert len(calls) == 2

    def test_watch_dir(self, tmp_path):
        handler = ReloadHandler(str(tmp_path / "app.log"), lambda p: None)
        assert handler.watch_dir == str(tmp_path)
