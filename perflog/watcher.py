"""File watcher: re-runs the analysis whenever the watched log file changes."""

import logging
import os
import time
from typing import Callable

from watchdog.events import FileSystemEventHandler

logger = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 0.5


class ReloadHandler(FileSystemEventHandler):
    """Calls on_reload(path) for create/modify events on a single file."""

    def __init__(self, filepath: str, on_reload: Callable[[str], None]):
        super().__init__()
        self._filepath = os.path.abspath(filepath)
        self._on_reload = on_reload
        self._last_processed = 0.0

    def on_created(self, event):
        self._maybe_reload(event)

    def on_modified(self, event):
        self._maybe_reload(event)

    def _maybe_reload(self, event):
        if event.is_directory or os.path.abspath(event.src_path) != self._filepath:
            return
        now = time.time()
        if now - self._last_processed < DEBOUNCE_SECONDS:
            return
        self._last_processed = now
        logger.info("Change detected: %s", self._filepath)
        self._on_reload(self._filepath)

    @property
    def watch_dir(self) -> str:
        return os.path.dirname(self._filepath)
