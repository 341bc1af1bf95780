"""Typed contract events.

Each event knows which actors it names, so the agent can tell "something
happened to or because of me" apart from everybody else's moves.
"""

from dataclasses import dataclass

from .engine import is_actor
from .errors import ReadFailure
from .models import normalize_actor


@dataclass(frozen=True)
class GameEvent:
    round: int

    @property
    def actors(self) -> tuple:
        return ()

    def involves(self, actor: str) -> bool:
        return any(is_actor(named, actor) for named in self.actors)


@dataclass(frozen=True)
class ActorMoved(GameEvent):
    actor: str
    from_x: int
    from_y: int
    to_x: int
    to_y: int

    @property
    def actors(self) -> tuple:
        return (self.actor,)

    def __str__(self) -> str:
        return f"{self.actor} moved ({self.from_x}, {self.from_y}) -> ({self.to_x}, {self.to_y})"


@dataclass(frozen=True)
class ActorAttacked(GameEvent):
    attacker: str
    target: str
    damage: int
    remaining_health: int

    @property
    def actors(self) -> tuple:
        return (self.attacker, self.target)

    def __str__(self) -> str:
        return (f"{self.attacker} hit {self.target} for {self.damage} "
                f"({self.remaining_health} HP left)")


@dataclass(frozen=True)
class ActorDefended(GameEvent):
    actor: str

    @property
    def actors(self) -> tuple:
        return (self.actor,)

    def __str__(self) -> str:
        return f"{self.actor} defended"


@dataclass(frozen=True)
class ActorEliminated(GameEvent):
    actor: str

    @property
    def actors(self) -> tuple:
        return (self.actor,)

    def __str__(self) -> str:
        return f"{self.actor} was eliminated"


@dataclass(frozen=True)
class RoundEnded(GameEvent):
    winner: str

    @property
    def actors(self) -> tuple:
        return (self.winner,)

    def __str__(self) -> str:
        return f"round {self.round} ended, winner {self.winner}"


def decode_event(name: str, args) -> GameEvent:
    """Contract log (event name + decoded args) → typed event."""
    try:
        rnd = int(args["round"])
        if name == "PlayerMoved":
            return ActorMoved(rnd, normalize_actor(args["player"]), int(args["fromX"]),
                              int(args["fromY"]), int(args["toX"]), int(args["toY"]))
        if name == "PlayerAttacked":
            return ActorAttacked(rnd, normalize_actor(args["attacker"]), normalize_actor(args["target"]),
                                 int(args["damage"]), int(args["targetRemainingHealth"]))
        if name == "PlayerDefended":
            return ActorDefended(rnd, normalize_actor(args["player"]))
        if name == "PlayerEliminated":
            return ActorEliminated(rnd, normalize_actor(args["player"]))
        if name == "GameEnded":
            return RoundEnded(rnd, normalize_actor(args["winner"]))
    except (KeyError, TypeError, ValueError) as exc:
        raise ReadFailure(f"Malformed {name} event: {exc}") from exc
    raise ReadFailure(f"Unknown event: {name}")
