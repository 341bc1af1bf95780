"""
Battle Royale console client
============================
Watches an on-chain BattleRoyale game and plays it, by hand or as a bot.
Configure with RPC_URL, CHAIN_ID, GAME_ADDRESS and PRIVATE_KEY (env or .env).

Commands:
  royale-bot status              # Board, players and what you can do
  royale-bot watch               # Redraw the board every POLL_INTERVAL seconds
  royale-bot monitor             # Stream game events
  royale-bot register            # Join the current round (registration phase)
  royale-bot move up             # Move (up/down/left/right)
  royale-bot attack left         # Attack the neighbouring cell
  royale-bot attack-at 4 7       # Attack a specific cell
  royale-bot defend              # Defend this turn
  royale-bot agent attack left   # AUTONOMOUS MODE: submit this command next time
                                 # something happens to us
Add -v for debug logging.
"""

import logging
import sys
import time

from .agent import AutonomousAgent
from .config import ClientConfig
from .dispatcher import ActionDispatcher
from .engine import can_register, eligible_actions
from .errors import ConfigError, ReadFailure
from .gateway import ContractGateway
from .models import ActionIntent, ActionKind, Direction, Phase, short_address
from .reconciler import StateReconciler
from .session import PollingSession


ANSI = {
    "red": 31, "green": 32, "yellow": 33, "blue": 34, "magenta": 35, "cyan": 36,
    "bright_red": 91, "bright_green": 92, "bright_yellow": 93,
    "bright_blue": 94, "bright_magenta": 95, "bright_cyan": 96,
}
MARKERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"


# ── Rendering ────────────────────────────────────────────────────────────────

def _paint(text: str, color, use_color: bool) -> str:
    if not use_color or color not in ANSI:
        return text
    return f"\033[{ANSI[color]}m{text}\033[0m"


def render_board(snapshot, colors=None, me=None, use_color=False) -> str:
    """Text view of a snapshot: grid (rows are y), then the player table."""
    colors = colors or {}
    markers = {actor: MARKERS[i % len(MARKERS)] for i, actor in enumerate(snapshot.roster)}
    lines = [f"═══ ROUND {snapshot.round} | {snapshot.phase.label.upper()} ═══"]

    if snapshot.size == 0:
        lines.append("  No game map data available")
    for y in range(snapshot.size):
        row = []
        for x in range(snapshot.size):
            occupant = snapshot.grid[x][y]
            if occupant is None:
                row.append(".")
            else:
                row.append(_paint(markers.get(occupant, "?"), colors.get(occupant), use_color))
        lines.append("  " + " ".join(row))
    lines.append("")

    if not snapshot.roster:
        lines.append("  No players registered yet")
    for actor in snapshot.roster:
        record = snapshot.players.get(actor)
        alive = actor in snapshot.alive
        status = "Alive" if alive else "Dead"
        hp = record.health if (record and alive) else 0
        pos = f"({record.x}, {record.y})" if record else "(?, ?)"
        tag = " ← you" if actor == me else ""
        marker = _paint(markers[actor], colors.get(actor), use_color)
        lines.append(f"  {marker} {short_address(actor)}  {status:5s}  HP {hp:>3}  {pos}{tag}")
    lines.append(f"  Players: {len(snapshot.roster)} | Alive: {len(snapshot.alive)}")
    return "\n".join(lines)


def describe_options(snapshot, me) -> str:
    if me is None:
        return "  Read-only (no PRIVATE_KEY)"
    if can_register(snapshot, me):
        return "  ✓ Registration open, run: register"
    actions = eligible_actions(snapshot, me)
    if actions:
        return "  ✓ You can: " + ", ".join(sorted(a.value for a in actions))
    if snapshot.phase == Phase.REGISTRATION:
        return "  Already registered, waiting for the game to start"
    return f"  No actions available ({snapshot.phase.label})"


# ── Wiring ───────────────────────────────────────────────────────────────────

class Client:
    """Gateway + reconciler + dispatcher for one config."""

    def __init__(self, config: ClientConfig, gateway=None):
        self.config = config
        self.gateway = gateway or ContractGateway(config)
        self.reconciler = StateReconciler(self.gateway, timeout=config.rpc_timeout)
        self.dispatcher = ActionDispatcher(self.gateway, self.reconciler)

    @property
    def me(self):
        return self.gateway.address

    def close(self):
        self.reconciler.close()


def parse_intent(args: list) -> ActionIntent:
    """['attack', 'left'] / ['attack-at', '3', '4'] / ['move', 'up'] / ['defend'] / ['register']."""
    if not args:
        raise ValueError("missing action")
    verb = args[0].lower()
    if verb == "attack-at":
        if len(args) < 3:
            raise ValueError("attack-at needs x and y")
        return ActionIntent(ActionKind.ATTACK, target=(int(args[1]), int(args[2])))
    kind = ActionKind(verb)
    if kind in (ActionKind.MOVE, ActionKind.ATTACK):
        if len(args) < 2:
            raise ValueError(f"{verb} needs a direction (up/down/left/right)")
        if len(args) >= 3 and kind == ActionKind.ATTACK:
            return ActionIntent(kind, target=(int(args[1]), int(args[2])))
        return ActionIntent(kind, direction=Direction.parse(args[1]))
    return ActionIntent(kind)


# ── Commands ─────────────────────────────────────────────────────────────────

def cmd_status(client: Client) -> int:
    snapshot = client.reconciler.refresh()
    if snapshot is None:
        print("  ✗ Could not read game state (see log)")
        return 1
    print(render_board(snapshot, me=client.me, use_color=sys.stdout.isatty()))
    print(describe_options(snapshot, client.me))
    return 0


def cmd_watch(client: Client) -> int:
    use_color = sys.stdout.isatty()
    session = PollingSession(client.reconciler, client.config.poll_interval)

    def show(snapshot):
        print(render_board(snapshot, session.colors, me=client.me, use_color=use_color))
        print(describe_options(snapshot, client.me))
        print()

    session.on_snapshot = show
    session.start()
    print("Press Ctrl+C to stop\n")
    try:
        while session.running:
            time.sleep(0.5)
    except KeyboardInterrupt:
        pass
    finally:
        session.stop()
    return 0


def cmd_monitor(client: Client) -> int:
    snapshot = client.reconciler.refresh()
    if snapshot is not None:
        print(f"Current Round: {snapshot.round}")
        print(f"Game State: {snapshot.phase.name}")
        record = snapshot.player(client.me) if client.me else None
        if record:
            print(f"  Position: ({record.x}, {record.y})")
            print(f"  Health: {record.health}")
            print(f"  Is Alive: {client.me in snapshot.alive}")
            print(f"  Last Action Block: {record.last_action_block}")
        elif client.me:
            print("  Not registered for this round")

    sub = client.gateway.subscribe()
    print("\nListening for events... Press Ctrl+C to stop")
    try:
        while True:
            event = sub.get(timeout=1.0)
            if event is None:
                continue
            mine = " ★" if client.me and event.involves(client.me) else ""
            print(f"[{time.strftime('%H:%M:%S')}] {event}{mine}")
    except KeyboardInterrupt:
        pass
    finally:
        sub.close()
    return 0


def cmd_act(client: Client, intent: ActionIntent) -> int:
    client.config.require_signing()
    print(f"[{time.strftime('%H:%M:%S')}] {intent.describe()} as {short_address(client.me)}...")
    client.reconciler.refresh()
    result = client.dispatcher.dispatch(client.me, intent)
    if result.submitted:
        print(f"  ✓ TX: {result.tx_hash}")
        return 0
    print(f"  ✗ {result.error_kind.value}: {result.detail}")
    return 1


def cmd_agent(client: Client, intent: ActionIntent) -> int:
    client.config.require_signing()
    print("═══ BATTLE ROYALE AUTONOMOUS MODE ═══")
    print(f"  Agent {client.me}")
    print(f"  Next command: {intent.describe()}")
    print("  Press Ctrl+C to stop\n")
    agent = AutonomousAgent(client.me, client.gateway.subscribe(), client.dispatcher,
                            tick=client.config.event_poll_interval)
    agent.set_command(intent)
    try:
        agent.run()
    except KeyboardInterrupt:
        pass
    finally:
        agent.stop()
    return 0


# ── Main ─────────────────────────────────────────────────────────────────────

def main(argv=None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    verbose = "-v" in args
    args = [a for a in args if a != "-v"]
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    command = args[0].lower() if args else "status"
    try:
        config = ClientConfig.from_env()
        client = Client(config)
    except (ConfigError, ValueError) as exc:
        # bad key or game address
        print(f"ERROR: {exc}")
        return 1

    try:
        if command == "status":
            return cmd_status(client)
        if command == "watch":
            return cmd_watch(client)
        if command == "monitor":
            return cmd_monitor(client)
        if command in ("register", "move", "attack", "attack-at", "defend"):
            return cmd_act(client, parse_intent(args))
        if command == "agent":
            return cmd_agent(client, parse_intent(args[1:]))
        print(f"Unknown command: {command}")
        print("Commands: status, watch, monitor, register, move, attack, attack-at, defend, agent")
        return 2
    except ValueError as exc:
        print(f"ERROR: {exc}")
        return 2
    except (ConfigError, ReadFailure) as exc:
        print(f"ERROR: {exc}")
        return 1
    finally:
        client.close()
