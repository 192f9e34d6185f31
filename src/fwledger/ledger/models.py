"""Analysis records, their ledger lifecycle, and write/receipt value types.

An ``AnalysisRecord`` starts ``unlogged`` when the off-chain analysis
completes. Submitting a ledger write moves it to ``pending``; obtaining the
receipt moves it to ``confirmed`` and fixes ``tx_hash``, ``block_number`` and
``logged_at`` for good. Later on-chain updates only refresh the function
counts and are appended as ``LedgerUpdateEvent`` entries. A failed write
leaves the record ``failed``, from which it may be retried.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum


class LedgerState(str, Enum):
    UNLOGGED = "unlogged"
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class LedgerStateError(ValueError):
    """Raised for a lifecycle transition the record's state does not allow."""


def check_counts(crypto_count: int, total_count: int) -> bool:
    return 0 <= crypto_count <= total_count


@dataclass(frozen=True)
class LedgerUpdateEvent:
    tx_hash: str
    block_number: int
    logged_at: datetime
    crypto_function_count: int
    total_function_count: int


@dataclass(frozen=True)
class AnalysisRecord:
    id: str
    filename: str
    crypto_function_count: int = 0
    total_function_count: int = 0
    ledger_state: LedgerState = LedgerState.UNLOGGED
    tx_hash: str | None = None
    block_number: int | None = None
    logged_at: datetime | None = None
    chain_id: int | None = None
    updates: tuple[LedgerUpdateEvent, ...] = ()

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("analysis id must be non-empty")
        if not self.filename:
            raise ValueError("filename must be non-empty")
        if not check_counts(self.crypto_function_count, self.total_function_count):
            raise ValueError(
                f"invalid function counts: crypto={self.crypto_function_count} "
                f"total={self.total_function_count}"
            )
        state = LedgerState(self.ledger_state)
        object.__setattr__(self, "ledger_state", state)
        if state is LedgerState.CONFIRMED:
            if self.tx_hash is None or self.block_number is None or self.logged_at is None:
                raise ValueError("confirmed record requires tx_hash, block_number and logged_at")
        elif self.block_number is not None or self.logged_at is not None:
            raise ValueError(f"{state.value} record cannot carry block_number or logged_at")
        if state in (LedgerState.UNLOGGED, LedgerState.FAILED) and self.tx_hash is not None:
            raise ValueError(f"{state.value} record cannot carry tx_hash")

    @classmethod
    def new(
        cls, analysis_id: str, filename: str, crypto_count: int, total_count: int
    ) -> AnalysisRecord:
        return cls(
            id=analysis_id,
            filename=filename,
            crypto_function_count=crypto_count,
            total_function_count=total_count,
        )

    @property
    def is_confirmed(self) -> bool:
        return self.ledger_state is LedgerState.CONFIRMED

    def with_counts(self, crypto_count: int, total_count: int) -> AnalysisRecord:
        """Refresh counts before a write; confirmed records change counts via ``record_update``."""
        if self.is_confirmed:
            raise LedgerStateError("confirmed record counts change only through an on-chain update")
        return replace(
            self, crypto_function_count=crypto_count, total_function_count=total_count
        )

    def mark_pending(self, tx_hash: str | None = None) -> AnalysisRecord:
        if self.is_confirmed:
            raise LedgerStateError("confirmed record cannot re-enter pending")
        return replace(self, ledger_state=LedgerState.PENDING, tx_hash=tx_hash)

    def confirm(
        self,
        tx_hash: str,
        block_number: int,
        logged_at: datetime,
        chain_id: int | None = None,
    ) -> AnalysisRecord:
        if self.is_confirmed:
            raise LedgerStateError("ledger fields of a confirmed record are immutable")
        return replace(
            self,
            ledger_state=LedgerState.CONFIRMED,
            tx_hash=tx_hash,
            block_number=block_number,
            logged_at=logged_at,
            chain_id=chain_id if chain_id is not None else self.chain_id,
        )

    def record_update(
        self,
        tx_hash: str,
        block_number: int,
        logged_at: datetime,
        crypto_count: int,
        total_count: int,
    ) -> AnalysisRecord:
        """Append an on-chain update; the creation ledger fields stay untouched."""
        if not self.is_confirmed:
            raise LedgerStateError("only a confirmed record can receive an update event")
        event = LedgerUpdateEvent(
            tx_hash=tx_hash,
            block_number=block_number,
            logged_at=logged_at,
            crypto_function_count=crypto_count,
            total_function_count=total_count,
        )
        return replace(
            self,
            crypto_function_count=crypto_count,
            total_function_count=total_count,
            updates=(*self.updates, event),
        )

    def mark_failed(self) -> AnalysisRecord:
        if self.is_confirmed:
            raise LedgerStateError("confirmed record cannot be marked failed")
        return replace(self, ledger_state=LedgerState.FAILED, tx_hash=None)

    @property
    def last_tx_hash(self) -> str | None:
        if self.updates:
            return self.updates[-1].tx_hash
        return self.tx_hash


@dataclass(frozen=True)
class LedgerWriteIntent:
    """One write attempt, rebuilt from current metadata and a fresh existence check."""

    analysis_id: str
    filename: str
    crypto_count: int
    total_count: int
    is_update: bool

    @property
    def path(self) -> str:
        return "update" if self.is_update else "create"


@dataclass(frozen=True)
class Receipt:
    tx_hash: str
    block_number: int
    gas_used: int = 0


@dataclass(frozen=True)
class LedgerResult:
    tx_hash: str
    block_number: int
    gas_used: int = 0
    is_update: bool = False
    chain_id: int | None = None

    ok = True

    @classmethod
    def from_receipt(
        cls, receipt: Receipt, is_update: bool, chain_id: int | None = None
    ) -> LedgerResult:
        return cls(
            tx_hash=receipt.tx_hash,
            block_number=receipt.block_number,
            gas_used=receipt.gas_used,
            is_update=is_update,
            chain_id=chain_id,
        )


@dataclass(frozen=True)
class LedgerFields:
    """The ledger-owned slice of an ``AnalysisRecord``."""

    ledger_state: LedgerState
    tx_hash: str | None = None
    block_number: int | None = None
    logged_at: datetime | None = None
    chain_id: int | None = None

    @classmethod
    def from_record(cls, record: AnalysisRecord) -> LedgerFields:
        return cls(
            ledger_state=record.ledger_state,
            tx_hash=record.tx_hash,
            block_number=record.block_number,
            logged_at=record.logged_at,
            chain_id=record.chain_id,
        )

    def apply_to(self, record: AnalysisRecord) -> AnalysisRecord:
        return replace(
            record,
            ledger_state=self.ledger_state,
            tx_hash=self.tx_hash,
            block_number=self.block_number,
            logged_at=self.logged_at,
            chain_id=self.chain_id,
        )
