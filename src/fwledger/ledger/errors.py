"""Ledger error taxonomy and the table that classifies client failures.

Chain adapters raise subclasses of ``LedgerClientError``; the coordinator
turns them into a ``LedgerError`` value with a stable ``LedgerErrorKind`` so
callers can render one specific message per kind. The same table serves
both the create and the update path.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum


class LedgerErrorKind(str, Enum):
    NOT_CONNECTED = "not_connected"
    NOT_CONFIGURED = "not_configured"
    INVALID_INPUT = "invalid_input"
    USER_REJECTED = "user_rejected"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    DUPLICATE_CREATE = "duplicate_create"
    CONFIRMATION_TIMEOUT = "confirmation_timeout"
    NETWORK_ERROR = "network_error"
    UNKNOWN = "unknown"


# -- Client exceptions raised by chain adapters --


class LedgerClientError(Exception):
    """Base for failures reported by a wallet or ledger contract client."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class TransportError(LedgerClientError):
    """The chain node could not be reached or the transport failed mid-call."""


class RpcError(LedgerClientError):
    """A JSON-RPC error object (EIP-1193 codes, e.g. 4001 for user rejection)."""

    def __init__(self, code: int | None, message: str = "") -> None:
        super().__init__(message)
        self.code = code

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}" if self.code is not None else self.message


class ContractRevert(LedgerClientError):
    """The contract rejected the call; ``reason`` is the revert string if any."""

    def __init__(self, reason: str = "") -> None:
        super().__init__(reason or "execution reverted")
        self.reason = reason


class ConfigurationError(Exception):
    """Malformed configuration that should have been rejected earlier."""


# -- Outcome value --


@dataclass(frozen=True)
class LedgerError:
    kind: LedgerErrorKind
    message: str
    tx_hash: str | None = None
    detail: str | None = None

    ok = False

    @classmethod
    def of(
        cls,
        kind: LedgerErrorKind,
        *,
        tx_hash: str | None = None,
        detail: str | None = None,
    ) -> LedgerError:
        return cls(kind=kind, message=user_message(kind), tx_hash=tx_hash, detail=detail)

    @property
    def retryable(self) -> bool:
        return self.kind is LedgerErrorKind.NETWORK_ERROR

    @property
    def is_terminal(self) -> bool:
        """False for outcomes where the write may still land or can simply be re-run."""
        return self.kind not in (
            LedgerErrorKind.USER_REJECTED,
            LedgerErrorKind.CONFIRMATION_TIMEOUT,
            LedgerErrorKind.NETWORK_ERROR,
        )


USER_MESSAGES: dict[LedgerErrorKind, str] = {
    LedgerErrorKind.NOT_CONNECTED: "Connect a wallet before logging analyses to the ledger.",
    LedgerErrorKind.NOT_CONFIGURED: (
        "No ledger contract address is configured. Set one with 'fwledger contract set'."
    ),
    LedgerErrorKind.INVALID_INPUT: (
        "Analysis metadata is invalid: crypto function count must be between 0 and the total."
    ),
    LedgerErrorKind.USER_REJECTED: "Transaction cancelled in the wallet. Nothing was written.",
    LedgerErrorKind.INSUFFICIENT_FUNDS: (
        "The connected account cannot pay for gas. Fund the account and try again."
    ),
    LedgerErrorKind.DUPLICATE_CREATE: (
        "The ledger already holds this analysis. Re-check and submit it as an update."
    ),
    LedgerErrorKind.CONFIRMATION_TIMEOUT: (
        "Transaction submitted but not yet confirmed. It may still be included; poll it later."
    ),
    LedgerErrorKind.NETWORK_ERROR: "Could not reach the chain node. Retry shortly.",
    LedgerErrorKind.UNKNOWN: "Ledger write failed for an unexpected reason.",
}


def user_message(kind: LedgerErrorKind) -> str:
    return USER_MESSAGES[kind]


# -- Classification table --

_REJECTED_RE = re.compile(r"user (rejected|denied)|action_rejected|rejected by user", re.I)
_FUNDS_RE = re.compile(r"insufficient funds|insufficient balance", re.I)
_DUPLICATE_RE = re.compile(r"already (exists|logged|registered)|duplicate", re.I)

USER_REJECTED_CODE = 4001

Rule = Callable[[BaseException, bool], bool]


def _message(exc: BaseException) -> str:
    return getattr(exc, "message", "") or str(exc)


def _user_rejected(exc: BaseException, is_update: bool) -> bool:
    if isinstance(exc, RpcError) and exc.code == USER_REJECTED_CODE:
        return True
    return bool(_REJECTED_RE.search(_message(exc)))


def _insufficient_funds(exc: BaseException, is_update: bool) -> bool:
    return bool(_FUNDS_RE.search(_message(exc)))


def _duplicate_create(exc: BaseException, is_update: bool) -> bool:
    return (
        not is_update
        and isinstance(exc, ContractRevert)
        and bool(_DUPLICATE_RE.search(exc.reason))
    )


def _network(exc: BaseException, is_update: bool) -> bool:
    return isinstance(exc, (TransportError, OSError, TimeoutError))


# Order matters: first match wins.
CLASSIFICATION_RULES: list[tuple[LedgerErrorKind, Rule]] = [
    (LedgerErrorKind.USER_REJECTED, _user_rejected),
    (LedgerErrorKind.INSUFFICIENT_FUNDS, _insufficient_funds),
    (LedgerErrorKind.DUPLICATE_CREATE, _duplicate_create),
    (LedgerErrorKind.NETWORK_ERROR, _network),
]


def classify_error(exc: BaseException, *, is_update: bool = False) -> LedgerErrorKind:
    for kind, rule in CLASSIFICATION_RULES:
        if rule(exc, is_update):
            return kind
    return LedgerErrorKind.UNKNOWN


def to_ledger_error(
    exc: BaseException, *, is_update: bool = False, tx_hash: str | None = None
) -> LedgerError:
    """Classify ``exc`` and keep its raw message for diagnostics."""
    kind = classify_error(exc, is_update=is_update)
    return LedgerError.of(kind, tx_hash=tx_hash, detail=str(exc) or type(exc).__name__)
