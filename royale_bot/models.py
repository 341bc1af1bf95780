"""
Typed game state.

Everything the contract returns is decoded into these types at the gateway
boundary. Snapshots and records are frozen: a refresh builds new objects
instead of touching the ones a renderer may be reading.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from types import MappingProxyType
from typing import Mapping, Optional

from web3 import Web3

from .errors import ErrorKind

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


# ── Enums (ordinals match the contract) ──────────────────────────────────────

class Phase(IntEnum):
    INACTIVE = 0
    REGISTRATION = 1
    ACTIVE = 2
    COMPLETED = 3

    @property
    def label(self) -> str:
        return {
            Phase.INACTIVE: "Inactive",
            Phase.REGISTRATION: "Registration Open",
            Phase.ACTIVE: "Active",
            Phase.COMPLETED: "Completed",
        }[self]


class Direction(IntEnum):
    UP = 0
    DOWN = 1
    LEFT = 2
    RIGHT = 3

    @property
    def delta(self) -> tuple:
        # grid is indexed [x][y]; y grows downwards
        return {
            Direction.UP: (0, -1),
            Direction.DOWN: (0, 1),
            Direction.LEFT: (-1, 0),
            Direction.RIGHT: (1, 0),
        }[self]

    @classmethod
    def parse(cls, value) -> "Direction":
        if isinstance(value, Direction):
            return value
        if isinstance(value, int):
            return cls(value)
        text = str(value).strip().upper()
        if text.isdigit():
            return cls(int(text))
        try:
            return cls[text]
        except KeyError:
            raise ValueError(f"Unknown direction: {value!r}") from None


class ActionKind(str, Enum):
    MOVE = "move"
    ATTACK = "attack"
    DEFEND = "defend"
    REGISTER = "register"


COMBAT_ACTIONS = frozenset({ActionKind.MOVE, ActionKind.ATTACK, ActionKind.DEFEND})


# ── Identifiers ──────────────────────────────────────────────────────────────

def normalize_actor(value) -> str:
    """Return the canonical key for an address: validated, lower-case hex."""
    text = str(value).strip()
    if not Web3.is_address(text):
        raise ValueError(f"Not an address: {value!r}")
    if not text.startswith("0x"):
        text = "0x" + text
    return text.lower()


def decode_occupant(value) -> Optional[str]:
    """Grid cell → actor id, or None for the zero address."""
    actor = normalize_actor(value)
    return None if actor == ZERO_ADDRESS else actor


def short_address(actor: str) -> str:
    return f"{actor[:5]}...{actor[-4:]}"


# ── State ────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PlayerRecord:
    id: str
    x: int
    y: int
    health: int
    last_action_block: int
    is_alive: bool
    has_pending_action: bool

    @property
    def position(self) -> tuple:
        return (self.x, self.y)


@dataclass(frozen=True)
class GameSnapshot:
    phase: Phase
    round: int
    grid: tuple
    roster: tuple = ()
    players: Mapping = field(default_factory=dict)
    alive: frozenset = frozenset()

    def __post_init__(self):
        # read-only view over a private copy; a published snapshot never changes
        object.__setattr__(self, "players", MappingProxyType(dict(self.players)))
        object.__setattr__(self, "alive", frozenset(self.alive))

    def _key(self) -> tuple:
        return (self.phase, self.round, self.grid, self.roster,
                tuple(self.players.items()), self.alive)

    def __eq__(self, other):
        if not isinstance(other, GameSnapshot):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    @property
    def size(self) -> int:
        return len(self.grid)

    def player(self, actor) -> Optional[PlayerRecord]:
        try:
            return self.players.get(normalize_actor(actor))
        except ValueError:
            return None

    def occupant(self, x: int, y: int) -> Optional[str]:
        return self.grid[x][y]

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.size and 0 <= y < self.size


# ── Actions ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ActionIntent:
    kind: ActionKind
    direction: Optional[Direction] = None
    target: Optional[tuple] = None

    def __post_init__(self):
        if self.kind == ActionKind.MOVE and self.direction is None:
            raise ValueError("move needs a direction")
        if self.kind == ActionKind.ATTACK and self.direction is None and self.target is None:
            raise ValueError("attack needs a direction or a target")

    def describe(self) -> str:
        if self.kind == ActionKind.MOVE:
            return f"move {self.direction.name}"
        if self.kind == ActionKind.ATTACK:
            if self.target is not None:
                return f"attack ({self.target[0]}, {self.target[1]})"
            return f"attack {self.direction.name}"
        return self.kind.value


@dataclass(frozen=True)
class DispatchResult:
    submitted: bool
    error_kind: Optional[ErrorKind] = None
    detail: str = ""
    tx_hash: Optional[str] = None
