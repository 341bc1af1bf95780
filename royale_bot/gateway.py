"""
Contract gateway: the only module that talks to the chain.

Reads come back as typed values (or raise ReadFailure), writes come back as
a tx hash (or raise RemoteRejected), and events are delivered on a FIFO
subscription channel. No game logic lives here.
"""

import logging
import queue
import threading
import time

from eth_account import Account
from web3 import Web3

from .abi import BATTLE_ROYALE_ABI, EVENT_NAMES
from .config import ClientConfig
from .errors import ReadFailure, RemoteRejected
from .events import decode_event
from .models import Phase, PlayerRecord, decode_occupant, normalize_actor

logger = logging.getLogger(__name__)


# ── Decoding ─────────────────────────────────────────────────────────────────

def decode_grid(raw) -> tuple:
    """address[][] → square tuple-of-tuples indexed [x][y]."""
    try:
        grid = tuple(tuple(decode_occupant(cell) for cell in column) for column in raw)
    except (TypeError, ValueError) as exc:
        raise ReadFailure(f"Malformed map: {exc}") from exc
    size = len(grid)
    if any(len(column) != size for column in grid):
        raise ReadFailure(f"Map is not square ({size} columns)")
    return grid


def decode_player(raw) -> PlayerRecord:
    """getPlayer tuple (addr, x, y, health, lastActionBlock, isAlive, actionSubmittedForBlock)."""
    try:
        addr, x, y, health, last_block, is_alive, pending = raw
        return PlayerRecord(
            id=normalize_actor(addr),
            x=int(x),
            y=int(y),
            health=int(health),
            last_action_block=int(last_block),
            is_alive=bool(is_alive),
            has_pending_action=bool(pending),
        )
    except (TypeError, ValueError) as exc:
        raise ReadFailure(f"Malformed player record: {exc}") from exc


def decode_actors(raw) -> tuple:
    try:
        return tuple(normalize_actor(a) for a in raw)
    except (TypeError, ValueError) as exc:
        raise ReadFailure(f"Malformed address list: {exc}") from exc


def decode_phase(raw) -> Phase:
    try:
        return Phase(int(raw))
    except (TypeError, ValueError) as exc:
        raise ReadFailure(f"Unknown game state: {raw!r}") from exc


# ── Gateway ──────────────────────────────────────────────────────────────────

class ContractGateway:
    """Typed binding to the BattleRoyale contract."""

    def __init__(self, config: ClientConfig, w3=None):
        self.config = config
        self.w3 = w3 or Web3(Web3.HTTPProvider(
            config.rpc_url, request_kwargs={"timeout": config.rpc_timeout}))
        self.contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(config.game_address), abi=BATTLE_ROYALE_ABI)
        self.account = Account.from_key(config.private_key) if config.can_sign else None

    @property
    def address(self):
        """Our own actor id, or None when running read-only."""
        return normalize_actor(self.account.address) if self.account else None

    def _read(self, name: str, *args):
        try:
            return getattr(self.contract.functions, name)(*args).call()
        except Exception as exc:
            raise ReadFailure(f"{name} failed: {exc}") from exc

    # reads

    def read_round(self) -> int:
        raw = self._read("currentRound")
        try:
            return int(raw)
        except (TypeError, ValueError) as exc:
            raise ReadFailure(f"Malformed round: {raw!r}") from exc

    def read_phase(self) -> Phase:
        return decode_phase(self._read("gameState"))

    def read_map(self) -> tuple:
        return decode_grid(self._read("getGameMap"))

    def read_player_ids(self, round_number: int) -> tuple:
        return decode_actors(self._read("getPlayers", round_number))

    def read_alive_ids(self) -> tuple:
        return decode_actors(self._read("getAlivePlayers"))

    def read_player(self, round_number: int, actor: str) -> PlayerRecord:
        return decode_player(self._read(
            "getPlayer", round_number, Web3.to_checksum_address(actor)))

    # writes

    def _send(self, name: str, *args) -> str:
        """Simulate, build, sign and send one write.

        All steps share one rpc_timeout deadline, checked before each RPC.
        Once it has passed nothing is sent, so a write takes at most about
        twice rpc_timeout (the last RPC may start just before the deadline).
        """
        self.config.require_signing()
        fn = getattr(self.contract.functions, name)(*args)
        sender = self.account.address
        deadline = time.monotonic() + self.config.rpc_timeout

        def before(step):
            if time.monotonic() > deadline:
                raise RemoteRejected(f"{name} timed out before {step}")

        try:
            # surface contract reverts before paying for them
            fn.call({"from": sender})
            before("nonce")
            nonce = self.w3.eth.get_transaction_count(sender, "pending")
            before("gas price")
            gas_price = self.w3.eth.gas_price
            tx = fn.build_transaction({
                "from": sender,
                "nonce": nonce,
                "gasPrice": gas_price,
                "gas": self.config.gas_limit,
                "chainId": self.config.chain_id,
            })
            signed = self.account.sign_transaction(tx)
            before("send")
            tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        except RemoteRejected:
            raise
        except Exception as exc:
            raise RemoteRejected(f"{name} rejected: {exc}") from exc
        tx_hash = Web3.to_hex(tx_hash)
        logger.info("Sent %s%s tx=%s", name, args, tx_hash)
        return tx_hash

    def register(self) -> str:
        return self._send("register")

    def submit_move(self, direction: int) -> str:
        return self._send("submitMove", int(direction))

    def submit_attack(self, x: int, y: int) -> str:
        return self._send("submitAttack", int(x), int(y))

    def submit_defend(self) -> str:
        return self._send("submitDefend")

    # events

    def poll_events(self, from_block: int) -> tuple:
        """Fetch every game event in [from_block, latest].

        Returns (events in chain order, next block to poll from).
        """
        try:
            latest = self.w3.eth.block_number
            if latest < from_block:
                return [], from_block
            logs = []
            for name in EVENT_NAMES:
                event = getattr(self.contract.events, name)()
                logs.extend(event.get_logs(from_block=from_block, to_block=latest))
        except Exception as exc:
            raise ReadFailure(f"Log poll failed: {exc}") from exc
        logs.sort(key=lambda log: (log["blockNumber"], log["logIndex"]))
        events = []
        for log in logs:
            try:
                events.append(decode_event(log["event"], log["args"]))
            except ReadFailure as exc:
                # skip it, or the window would never move past this log
                logger.warning("Skipping log %s/%s: %s", log["blockNumber"], log["logIndex"], exc)
        return events, latest + 1

    def subscribe(self, from_block=None) -> "EventSubscription":
        if from_block is None:
            try:
                from_block = self.w3.eth.block_number + 1
            except Exception as exc:
                raise ReadFailure(f"Could not read block number: {exc}") from exc
        sub = EventSubscription(self.poll_events, from_block, self.config.event_poll_interval)
        sub.start()
        return sub


class EventSubscription:
    """FIFO channel of game events fed by a background log poller.

    Consumers call get(); close() stops the poller and unblocks readers.
    """

    def __init__(self, poll, from_block: int, interval: float):
        self._poll = poll
        self._next_block = from_block
        self._interval = interval
        self._queue = queue.Queue()
        self._stop = threading.Event()
        self._thread = None

    @property
    def closed(self) -> bool:
        return self._stop.is_set()

    def start(self):
        self._thread = threading.Thread(target=self._run, name="event-poller", daemon=True)
        self._thread.start()

    def _run(self):
        while not self._stop.is_set():
            self.pump()
            self._stop.wait(self._interval)

    def pump(self) -> int:
        """Poll once and enqueue whatever arrived. Returns the number of events."""
        try:
            events, self._next_block = self._poll(self._next_block)
        except ReadFailure as exc:
            # window doesn't advance, so nothing is lost; retried next tick
            logger.warning("Event poll failed: %s", exc)
            return 0
        for event in events:
            self._queue.put(event)
        return len(events)

    def get(self, timeout=None):
        """Next event, or None if nothing arrived within timeout or the channel closed."""
        if self._stop.is_set() and self._queue.empty():
            return None
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def close(self):
        self._stop.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=self._interval + 1)
        self._thread = None
