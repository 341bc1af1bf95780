"""
Eligibility & targeting.

Pure functions of a snapshot: no I/O, so they can be exercised against
hand-built snapshots. Ids that aren't addresses are simply not players.
"""

from .errors import IneligibleAction
from .models import COMBAT_ACTIONS, Direction, GameSnapshot, Phase, normalize_actor

NO_ACTIONS = frozenset()


def _key(actor):
    """Normalized id, or None when `actor` isn't an address."""
    if actor is None:
        return None
    try:
        return normalize_actor(actor)
    except ValueError:
        return None


def is_actor(value, actor) -> bool:
    value, actor = _key(value), _key(actor)
    return value is not None and value == actor


def eligible_actions(snapshot: GameSnapshot, actor) -> frozenset:
    """Combat actions the actor may submit right now (empty if none)."""
    if snapshot is None or snapshot.phase != Phase.ACTIVE:
        return NO_ACTIONS
    actor = _key(actor)
    if actor not in snapshot.players or actor not in snapshot.alive:
        return NO_ACTIONS
    return COMBAT_ACTIONS


def can_register(snapshot: GameSnapshot, actor) -> bool:
    if snapshot is None or snapshot.phase != Phase.REGISTRATION:
        return False
    actor = _key(actor)
    return actor is not None and actor not in snapshot.roster


def clamp(value: int, size: int) -> int:
    return min(size - 1, max(0, value))


def resolve_target(snapshot: GameSnapshot, actor, direction) -> tuple:
    """The cell one step from the actor in `direction`, clamped to the grid.

    Attacking out from an edge targets the edge cell itself; coordinates
    never wrap.
    """
    record = snapshot.player(actor)
    if record is None:
        raise IneligibleAction(f"{actor} has no position in round {snapshot.round}")
    if snapshot.size == 0:
        raise IneligibleAction("map is empty")
    dx, dy = Direction.parse(direction).delta
    return clamp(record.x + dx, snapshot.size), clamp(record.y + dy, snapshot.size)
