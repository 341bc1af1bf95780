"""
State reconciler.

Merges the independent contract reads into one GameSnapshot. A failed core
read keeps the previous snapshot (stale-but-valid, never torn); a failed
per-player read only drops that player.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, wait

from .config import RPC_TIMEOUT
from .errors import ReadFailure
from .models import GameSnapshot

logger = logging.getLogger(__name__)


class StateReconciler:
    def __init__(self, gateway, timeout: float = RPC_TIMEOUT, max_workers: int = 8):
        self.gateway = gateway
        self.timeout = timeout
        self._snapshot = None
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="reconcile")

    @property
    def snapshot(self):
        """Last good snapshot, or None before the first successful refresh."""
        return self._snapshot

    def refresh(self):
        """Read everything and return the new snapshot, or the previous one on failure."""
        started = time.monotonic()
        try:
            snapshot = self._fetch(started + self.timeout)
        except ReadFailure as exc:
            logger.warning("Refresh failed, keeping previous snapshot: %s", exc)
            return self._snapshot
        self._snapshot = snapshot
        logger.debug("Refreshed round %d (%s) in %.2fs: %d players, %d alive",
                     snapshot.round, snapshot.phase.name, time.monotonic() - started,
                     len(snapshot.players), len(snapshot.alive))
        return snapshot

    def close(self):
        self._pool.shutdown(wait=False, cancel_futures=True)

    # ── internals ────────────────────────────────────────────────────────────

    def _gather(self, calls: dict, deadline: float) -> dict:
        """Run calls concurrently; each result is a value or the ReadFailure it raised."""
        if not calls:
            return {}
        futures = {self._pool.submit(fn, *args): key for key, (fn, args) in calls.items()}
        done, pending = wait(futures, timeout=max(0.0, deadline - time.monotonic()))
        results = {}
        for future in pending:
            future.cancel()
            results[futures[future]] = ReadFailure(f"{futures[future]} timed out")
        for future in done:
            try:
                results[futures[future]] = future.result()
            except ReadFailure as exc:
                results[futures[future]] = exc
        return results

    @staticmethod
    def _require(results: dict) -> dict:
        failures = [f"{key}: {value}" for key, value in results.items()
                    if isinstance(value, ReadFailure)]
        if failures:
            raise ReadFailure("; ".join(sorted(failures)))
        return results

    def _fetch(self, deadline: float) -> GameSnapshot:
        gw = self.gateway
        # getPlayers is keyed by round, so the round goes first
        round_number = self._require(self._gather({"round": (gw.read_round, ())}, deadline))["round"]
        core = self._require(self._gather({
            "map": (gw.read_map, ()),
            "phase": (gw.read_phase, ()),
            "players": (gw.read_player_ids, (round_number,)),
            "alive": (gw.read_alive_ids, ()),
        }, deadline))

        grid = core["map"]
        size = len(grid)
        roster = tuple(sorted(set(core["players"])))
        details = self._gather(
            {actor: (gw.read_player, (round_number, actor)) for actor in roster}, deadline)

        players = {}
        for actor in roster:
            record = details[actor]
            if isinstance(record, ReadFailure):
                logger.info("Dropping %s from round %d: %s", actor, round_number, record)
                continue
            if record.id != actor:
                logger.info("Dropping %s: detail read returned %s", actor, record.id)
                continue
            if not (0 <= record.x < size and 0 <= record.y < size):
                logger.info("Dropping %s: position (%d, %d) off a %dx%d map",
                            actor, record.x, record.y, size, size)
                continue
            players[actor] = record

        alive = frozenset(core["alive"])
        strays = alive.difference(roster)
        if strays:
            logger.debug("Ignoring %d alive ids not registered in round %d", len(strays), round_number)

        return GameSnapshot(
            phase=core["phase"],
            round=round_number,
            grid=grid,
            roster=roster,
            players=players,
            alive=alive.intersection(roster),
        )
