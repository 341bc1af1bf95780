"""
Autonomous agent loop.

Consumes the gateway's event channel. Anything that happens to or because
of the agent wakes it up; if a scripted command has been set, it refreshes
state and hands the command to the dispatcher, then goes back to idle
whatever the outcome.
"""

import logging
import threading
from enum import Enum

from .models import ActionIntent, normalize_actor, short_address

logger = logging.getLogger(__name__)


class AgentState(str, Enum):
    IDLE = "idle"
    AWAITING_COMMAND = "awaiting_command"
    DISPATCHING = "dispatching"


class AutonomousAgent:
    def __init__(self, actor, subscription, dispatcher, reconciler=None, tick: float = 1.0):
        self.actor = normalize_actor(actor)
        self.subscription = subscription
        self.dispatcher = dispatcher
        self.reconciler = reconciler or dispatcher.reconciler
        self.tick = tick
        self.state = AgentState.IDLE
        self.last_result = None
        self._command = None
        self._command_lock = threading.Lock()
        self._stop = threading.Event()
        self._thread = None

    # ── command slot (set out-of-band) ───────────────────────────────────────

    def set_command(self, intent: ActionIntent):
        with self._command_lock:
            self._command = intent
        logger.info("Next command: %s", intent.describe())

    @property
    def pending_command(self):
        with self._command_lock:
            return self._command

    def _take_command(self):
        with self._command_lock:
            command, self._command = self._command, None
        return command

    # ── state machine ────────────────────────────────────────────────────────

    def handle(self, event) -> AgentState:
        if not event.involves(self.actor):
            logger.info("[event] %s", event)
            return self.state
        logger.info("[event] (%s) %s", short_address(self.actor), event)
        if self.state == AgentState.IDLE:
            self.state = AgentState.AWAITING_COMMAND
        return self.state

    def step(self):
        """Dispatch the pending command if we're waiting for one. Returns the result or None."""
        if self.state != AgentState.AWAITING_COMMAND:
            return None
        command = self._take_command()
        if command is None:
            return None
        self.state = AgentState.DISPATCHING
        try:
            self.reconciler.refresh()
            result = self.dispatcher.dispatch(self.actor, command)
        finally:
            self.state = AgentState.IDLE
        self.last_result = result
        if result.submitted:
            logger.info("✓ %s submitted tx=%s", command.describe(), result.tx_hash)
        else:
            logger.info("✗ %s dropped: %s", command.describe(), result.detail)
        return result

    # ── lifecycle ────────────────────────────────────────────────────────────

    def run(self):
        """Consume events until stop(). Blocks."""
        command = self.pending_command
        logger.info("Agent %s listening (state %s, next command: %s)", self.actor, self.state.value,
                    command.describe() if command else "none")
        while not self._stop.is_set():
            event = self.subscription.get(timeout=self.tick)
            if event is not None:
                self.handle(event)
            self.step()

    def start(self):
        self._thread = threading.Thread(target=self.run, name="agent", daemon=True)
        self._thread.start()

    def stop(self):
        self._stop.set()
        self.subscription.close()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=self.tick + 1)
        self._thread = None
