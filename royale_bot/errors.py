"""Error taxonomy shared by the gateway, reconciler and dispatcher."""

from enum import Enum


class ErrorKind(str, Enum):
    READ_FAILURE = "ReadFailure"
    INELIGIBLE_ACTION = "IneligibleAction"
    DISPATCH_IN_PROGRESS = "DispatchInProgress"
    REMOTE_REJECTED = "RemoteRejected"
    CONFIG = "ConfigError"


class RoyaleError(Exception):
    kind = None


class ConfigError(RoyaleError):
    kind = ErrorKind.CONFIG


class GatewayError(RoyaleError):
    """Anything that went wrong talking to the game contract."""


class ReadFailure(GatewayError):
    """A read failed, timed out or came back in a shape we can't decode.

    Never escapes the reconciler; callers only see an unchanged snapshot.
    """
    kind = ErrorKind.READ_FAILURE


class RemoteRejected(GatewayError):
    """The node or the contract refused a write, or the write timed out."""
    kind = ErrorKind.REMOTE_REJECTED


class IneligibleAction(RoyaleError):
    kind = ErrorKind.INELIGIBLE_ACTION


class DispatchInProgress(RoyaleError):
    kind = ErrorKind.DISPATCH_IN_PROGRESS
