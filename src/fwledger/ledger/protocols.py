"""Capability contracts consumed by the coordinator and its callers."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Callable, Protocol, runtime_checkable

from fwledger.ledger.models import AnalysisRecord, LedgerFields


@runtime_checkable
class PendingTransaction(Protocol):
    """Handle returned right after broadcast, before confirmation."""

    @property
    def tx_hash(self) -> str: ...

    async def wait(self) -> Any:
        """Block until included; returns the raw receipt."""
        ...


@runtime_checkable
class LedgerContractClient(Protocol):
    async def analysis_exists(self, analysis_id: str) -> bool: ...

    async def log_analysis(
        self, analysis_id: str, filename: str, crypto_count: int, total_count: int
    ) -> PendingTransaction: ...

    async def update_analysis(
        self, analysis_id: str, crypto_count: int, total_count: int
    ) -> PendingTransaction: ...

    async def transaction_receipt(self, tx_hash: str) -> Any | None:
        """Raw receipt if the transaction is included, else None."""
        ...


@runtime_checkable
class WalletCapability(Protocol):
    async def get_connected_account(self) -> str | None: ...

    async def get_active_chain_id(self) -> int | None: ...

    async def get_signer(self) -> Any:
        """Signing capability handed to the contract client; never used directly."""
        ...


# (contract_address, signer) -> client bound to that signer
ClientFactory = Callable[[str, Any], LedgerContractClient]


class RecordStore(Protocol):
    def get(self, analysis_id: str) -> AnalysisRecord | None: ...

    def save(self, record: AnalysisRecord) -> None: ...

    def update_ledger_fields(self, analysis_id: str, fields: LedgerFields) -> None:
        """Overwrite only the ledger-owned fields of a stored record."""
        ...

    def list_logged(self, limit: int | None = None) -> Sequence[AnalysisRecord]: ...
