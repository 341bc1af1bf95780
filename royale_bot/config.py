"""
Client configuration.

All secrets and endpoints come from environment variables. Set them in a
.env file next to where you run the bot, or export them.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .errors import ConfigError

DEFAULT_RPC_URL = "https://sandbox-rpc-testnet.appchain.base.org"
DEFAULT_CHAIN_ID = 8453200058
DEFAULT_GAME_ADDRESS = "0x61c36a8d610163660E21a8b7359e1Cac0C9133e1"

POLL_INTERVAL = 1.0        # seconds, visual refresh cadence
RPC_TIMEOUT = 10.0         # seconds, bound on every read/write
EVENT_POLL_INTERVAL = 2.0  # seconds between log polls
GAS_LIMIT = 800_000


def _number(env: dict, name: str, default, cast):
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class ClientConfig:
    rpc_url: str = DEFAULT_RPC_URL
    chain_id: int = DEFAULT_CHAIN_ID
    game_address: str = DEFAULT_GAME_ADDRESS
    private_key: str = ""
    poll_interval: float = POLL_INTERVAL
    rpc_timeout: float = RPC_TIMEOUT
    event_poll_interval: float = EVENT_POLL_INTERVAL
    gas_limit: int = GAS_LIMIT

    @classmethod
    def from_env(cls, env=None, dotenv_path=None) -> "ClientConfig":
        if env is None:
            load_dotenv(dotenv_path)
            env = os.environ
        key = env.get("PRIVATE_KEY", "").strip()
        if key and not key.startswith("0x"):
            key = "0x" + key
        return cls(
            rpc_url=env.get("RPC_URL", DEFAULT_RPC_URL),
            chain_id=_number(env, "CHAIN_ID", DEFAULT_CHAIN_ID, int),
            game_address=env.get("GAME_ADDRESS", DEFAULT_GAME_ADDRESS),
            private_key=key,
            poll_interval=_number(env, "POLL_INTERVAL", POLL_INTERVAL, float),
            rpc_timeout=_number(env, "RPC_TIMEOUT", RPC_TIMEOUT, float),
            event_poll_interval=_number(env, "EVENT_POLL_INTERVAL", EVENT_POLL_INTERVAL, float),
            gas_limit=_number(env, "GAS_LIMIT", GAS_LIMIT, int),
        )

    @property
    def can_sign(self) -> bool:
        return bool(self.private_key)

    def require_signing(self):
        if not self.can_sign:
            raise ConfigError(
                "PRIVATE_KEY environment variable not set. "
                "Export it or put it in a .env file."
            )

    def __repr__(self) -> str:
        # never print the key
        return (
            f"ClientConfig(rpc_url={self.rpc_url!r}, chain_id={self.chain_id}, "
            f"game_address={self.game_address!r}, can_sign={self.can_sign})"
        )
