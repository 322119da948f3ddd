"""
livesync_scheduler.py - Collapses bursts of file changes into single reloads.

Pipeline per batch: debounce (trailing) -> throttle (leading) -> delay -> fire.
All timers run on a tornado IOLoop, or anything offering its
call_later / remove_timeout / time methods.
"""

import logging

log = logging.getLogger(__name__)


class ReloadScheduler:

    def __init__(self, fire, loop, delay_ms=0, debounce_ms=500, throttle_ms=0):
        self._fire = fire
        self._loop = loop
        self.delay = delay_ms / 1000.0
        self.debounce = debounce_ms / 1000.0
        self.throttle = throttle_ms / 1000.0

        self._pending = []
        self._debounce_handle = None
        self._delay_handles = set()
        self._last_emit = None

    @property
    def pending(self):
        return list(self._pending)

    def notify(self, path):
        """Queue `path` for the next reload."""
        if path not in self._pending:
            self._pending.append(path)

        if not self.debounce:
            self._flush()
            return

        if self._debounce_handle is not None:
            self._loop.remove_timeout(self._debounce_handle)
        self._debounce_handle = self._loop.call_later(self.debounce, self._flush)

    def cancel(self):
        if self._debounce_handle is not None:
            self._loop.remove_timeout(self._debounce_handle)
            self._debounce_handle = None
        for handle in self._delay_handles:
            self._loop.remove_timeout(handle)
        self._delay_handles.clear()
        self._pending = []

    def _flush(self):
        self._debounce_handle = None
        batch, self._pending = self._pending, []
        if not batch:
            return

        now = self._loop.time()
        if (self.throttle and self._last_emit is not None
                and now - self._last_emit < self.throttle):
            log.info("Throttled reload for %s", ", ".join(batch))
            return
        self._last_emit = now

        if not self.delay:
            self._fire(batch)
            return

        handle = None

        def emit():
            self._delay_handles.discard(handle)
            self._fire(batch)

        handle = self._loop.call_later(self.delay, emit)
        self._delay_handles.add(handle)
