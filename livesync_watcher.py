"""
livesync_watcher.py - watchdog-backed watcher for livereload's Server.

livereload drives its watcher through a small protocol: watch(), start(),
examine() plus the _tasks, _changes and filepath attributes. LiveWatcher
speaks that protocol, but takes its change events from a watchdog Observer
so they can be told apart (add / change / unlink ...) and filtered, then
pushes reloads through ReloadScheduler instead of livereload's own polling.
"""

import logging
import os
from collections import deque, namedtuple
from datetime import datetime, timezone

from livereload.handlers import LiveReloadHandler
from tornado.ioloop import IOLoop
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from livesync_errors import StartupError
from livesync_scheduler import ReloadScheduler

log = logging.getLogger(__name__)

ChangeEvent = namedtuple("ChangeEvent", ["event", "path"])

HISTORY_SIZE = 50


def classify(fs_event):
    """Map a watchdog event to zero or more ChangeEvents (absolute paths)."""
    added, removed = ("addDir", "unlinkDir") if fs_event.is_directory else ("add", "unlink")
    src = os.fsdecode(fs_event.src_path)

    if fs_event.event_type == "created":
        return [ChangeEvent(added, src)]
    if fs_event.event_type == "deleted":
        return [ChangeEvent(removed, src)]
    if fs_event.event_type == "modified" and not fs_event.is_directory:
        return [ChangeEvent("change", src)]
    if fs_event.event_type == "moved":
        return [
            ChangeEvent(removed, src),
            ChangeEvent(added, os.fsdecode(fs_event.dest_path)),
        ]
    return []


class EventRouter(FileSystemEventHandler):
    """Runs on the observer thread; hands accepted events to the IOLoop."""

    def __init__(self, root, events, loop, callback):
        super().__init__()
        self.root = root
        self.events = frozenset(events)
        self._loop = loop
        self._callback = callback

    def on_any_event(self, event):
        for change in classify(event):
            if change.event not in self.events:
                continue
            rel = os.path.relpath(change.path, self.root).replace(os.sep, "/")
            self._loop.add_callback(self._callback, ChangeEvent(change.event, rel))


class LiveWatcher:

    def __init__(self, config, loop=None):
        self.config = config
        self.filepath = None
        self.history = deque(maxlen=HISTORY_SIZE)

        # livereload's Server reads and writes these directly
        self._tasks = []
        self._changes = []

        self._loop = loop
        self._observer = None
        self._scheduler = None

    @property
    def clients(self):
        return len(LiveReloadHandler.waiters)

    def watch(self, path, func=None, delay=None, ignore=None):
        """Add a directory to watch. Change handling is fixed by the config."""
        if func is not None or ignore is not None or delay:
            raise StartupError("LiveWatcher does not run per-path tasks, delays or ignores")
        path = os.path.abspath(path)
        if not os.path.isdir(path):
            raise StartupError(f"Can only watch directories: {path}")
        if path not in self._tasks:
            self._tasks.append(path)

    def start(self, callback):
        """Start watching. Returns False so livereload keeps calling examine()."""
        loop = self._loop or IOLoop.current()
        self._loop = loop
        self._scheduler = ReloadScheduler(
            self.broadcast,
            loop,
            delay_ms=self.config.reload_delay,
            debounce_ms=self.config.reload_debounce,
            throttle_ms=self.config.reload_throttle,
        )

        if not self.config.watch:
            log.info("File watching disabled")
            return False

        self._observer = Observer()
        for path in self._tasks:
            router = EventRouter(path, self.config.watch_events, loop, self._on_change)
            self._observer.schedule(router, path, recursive=True)
            if not self.config.ignore_initial:
                self._scan(path)
        self._observer.start()
        log.info("Watching %s for %s", ", ".join(self._tasks),
                 "/".join(self.config.watch_events))
        return False

    def examine(self):
        """Polled by livereload; only carries its reload-on-restart signal."""
        if self._changes:
            filepath, delay = self._changes.pop()
            if self.config.reload_on_restart:
                self.filepath = filepath
                # livereload sends this one itself, and only to connected browsers
                if self.clients:
                    self._record(filepath, [filepath])
                return filepath, delay
        return None, None

    def stop(self):
        if self._scheduler is not None:
            self._scheduler.cancel()
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None

    def reload(self, path="*"):
        """Reload every connected browser now, skipping the scheduler."""
        self.broadcast([path])

    def broadcast(self, paths):
        # a single non-CSS path forces a full page reload
        path = next((p for p in paths if not p.endswith(".css")), paths[-1])
        self.filepath = path
        self._record(path, paths)
        LiveReloadHandler.reload_waiters(path)

    def _record(self, path, paths):
        clients = self.clients
        if self.config.notify:
            log.info("Reloading %d browser(s): %s", clients, path)
        self.history.appendleft({
            "time": datetime.now(timezone.utc).isoformat(),
            "path": path,
            "changed": list(paths),
            "clients": clients,
        })

    def _on_change(self, change):
        if self.config.log_file_changes:
            log.info("File event [%s] : %s", change.event, change.path)
        self._scheduler.notify(change.path)

    def _scan(self, root):
        events = self.config.watch_events
        for dirpath, dirnames, filenames in os.walk(root):
            names = []
            if "addDir" in events:
                names += [("addDir", d) for d in dirnames]
            if "add" in events:
                names += [("add", f) for f in filenames]
            for event, name in names:
                rel = os.path.relpath(os.path.join(dirpath, name), root)
                self._on_change(ChangeEvent(event, rel.replace(os.sep, "/")))
