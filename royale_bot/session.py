"""Fixed-interval polling session for the board view."""

import logging
import threading

from .config import POLL_INTERVAL

logger = logging.getLogger(__name__)

COLORS = [
    "red", "blue", "green", "yellow", "magenta", "cyan",
    "bright_red", "bright_blue", "bright_green", "bright_yellow", "bright_magenta", "bright_cyan",
]


def actor_color(actor: str) -> str:
    """Deterministic colour: sum of the lower-case address's char codes."""
    return COLORS[sum(ord(c) for c in actor.lower()) % len(COLORS)]


class PollingSession:
    """Refreshes the reconciler every `interval` seconds between start() and stop().

    `on_snapshot` is called with each snapshot that differs from the last one
    it was given. The colour cache lives here, not at module level, so it
    goes away with the session.
    """

    def __init__(self, reconciler, interval: float = POLL_INTERVAL, on_snapshot=None):
        self.reconciler = reconciler
        self.interval = interval
        self.on_snapshot = on_snapshot
        self.colors = {}
        self._last = None
        self._stop = threading.Event()
        self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def color_for(self, actor: str) -> str:
        if actor not in self.colors:
            self.colors[actor] = actor_color(actor)
        return self.colors[actor]

    def poll_once(self):
        snapshot = self.reconciler.refresh()
        if snapshot is None or snapshot == self._last:
            return snapshot
        self._last = snapshot
        for actor in snapshot.players:
            self.color_for(actor)
        if self.on_snapshot is not None:
            self.on_snapshot(snapshot)
        return snapshot

    def _run(self):
        while not self._stop.is_set():
            self.poll_once()
            self._stop.wait(self.interval)

    def start(self):
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="poller", daemon=True)
        self._thread.start()
        logger.info("Polling every %.1fs", self.interval)

    def stop(self):
        self._stop.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=self.interval + 1)
        self._thread = None
