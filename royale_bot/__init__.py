"""On-chain Battle Royale client: state sync, eligibility, action dispatch and an event-driven bot."""

from .agent import AgentState, AutonomousAgent
from .config import ClientConfig
from .dispatcher import ActionDispatcher
from .engine import can_register, eligible_actions, resolve_target
from .errors import (
    ConfigError,
    DispatchInProgress,
    ErrorKind,
    GatewayError,
    IneligibleAction,
    ReadFailure,
    RemoteRejected,
    RoyaleError,
)
from .gateway import ContractGateway, EventSubscription
from .models import (
    ActionIntent,
    ActionKind,
    Direction,
    DispatchResult,
    GameSnapshot,
    Phase,
    PlayerRecord,
    normalize_actor,
)
from .reconciler import StateReconciler
from .session import PollingSession

__version__ = "0.1.0"
