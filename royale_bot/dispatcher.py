"""
Action dispatcher: one intent in, at most one contract write out.

Local checks (eligibility, the per-actor in-flight guard) run before any
write and never reach the chain. Failures are reported once; retrying is
the caller's call.
"""

import logging
import threading
from functools import partial

from .engine import can_register, eligible_actions, resolve_target
from .errors import DispatchInProgress, IneligibleAction, RemoteRejected
from .models import ActionIntent, ActionKind, DispatchResult, normalize_actor

logger = logging.getLogger(__name__)


class ActionDispatcher:
    def __init__(self, gateway, reconciler):
        self.gateway = gateway
        self.reconciler = reconciler
        self._lock = threading.Lock()
        self._in_flight = set()

    def in_flight(self, actor) -> bool:
        try:
            actor = normalize_actor(actor)
        except ValueError:
            return False
        with self._lock:
            return actor in self._in_flight

    def dispatch(self, actor, intent: ActionIntent) -> DispatchResult:
        try:
            actor = normalize_actor(actor)
        except ValueError:
            return self._failed(actor, intent, IneligibleAction(f"{actor!r} is not an actor address"))
        try:
            write = self._plan(actor, intent)
        except IneligibleAction as exc:
            return self._failed(actor, intent, exc)

        with self._lock:
            if actor in self._in_flight:
                return self._failed(actor, intent, DispatchInProgress(
                    f"{actor} already has an action in flight"))
            self._in_flight.add(actor)
        try:
            tx_hash = write()
        except RemoteRejected as exc:
            return self._failed(actor, intent, exc)
        finally:
            with self._lock:
                self._in_flight.discard(actor)

        logger.info("%s submitted %s tx=%s", actor, intent.describe(), tx_hash)
        return DispatchResult(submitted=True, detail=intent.describe(), tx_hash=tx_hash)

    def _plan(self, actor: str, intent: ActionIntent):
        snapshot = self.reconciler.snapshot
        if snapshot is None:
            raise IneligibleAction("no game state observed yet")
        gw = self.gateway

        if intent.kind == ActionKind.REGISTER:
            if not can_register(snapshot, actor):
                raise IneligibleAction(
                    f"cannot register: phase {snapshot.phase.label}, "
                    f"registered={actor in snapshot.roster}")
            return gw.register

        if intent.kind not in eligible_actions(snapshot, actor):
            raise IneligibleAction(
                f"cannot {intent.kind.value}: phase {snapshot.phase.label}, "
                f"registered={actor in snapshot.players}, alive={actor in snapshot.alive}")

        if intent.kind == ActionKind.MOVE:
            return partial(gw.submit_move, intent.direction)
        if intent.kind == ActionKind.ATTACK:
            if intent.target is not None:
                x, y = intent.target
                if not snapshot.in_bounds(x, y):
                    raise IneligibleAction(f"target ({x}, {y}) is off the {snapshot.size}x{snapshot.size} map")
            else:
                x, y = resolve_target(snapshot, actor, intent.direction)
            return partial(gw.submit_attack, x, y)
        return gw.submit_defend

    @staticmethod
    def _failed(actor: str, intent: ActionIntent, exc) -> DispatchResult:
        logger.warning("%s %s not submitted (%s): %s", actor, intent.describe(), exc.kind.value, exc)
        return DispatchResult(submitted=False, error_kind=exc.kind, detail=str(exc))
