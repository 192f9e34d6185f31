"""Mirror ledger outcomes into the off-chain record store."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from fwledger.config.models import RetryConfig
from fwledger.ledger.coordinator import AnalysisLedgerCoordinator, LedgerOutcome
from fwledger.ledger.errors import LedgerError, LedgerErrorKind
from fwledger.ledger.models import AnalysisRecord, LedgerFields, LedgerResult, LedgerState
from fwledger.ledger.protocols import RecordStore, WalletCapability
from fwledger.ledger.retry import log_with_retry
from fwledger.utils.logging import get_logger

log = get_logger(__name__)

# Outcomes where nothing reached the chain; the record keeps its prior state.
_NOT_ATTEMPTED = frozenset(
    {
        LedgerErrorKind.NOT_CONNECTED,
        LedgerErrorKind.NOT_CONFIGURED,
        LedgerErrorKind.INVALID_INPUT,
        LedgerErrorKind.USER_REJECTED,
    }
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecordNotFoundError(KeyError):
    pass


@dataclass(frozen=True)
class ReconcileResult:
    outcome: LedgerOutcome | None
    record: AnalysisRecord


class LedgerReconciler:
    """Drives a record through pending -> confirmed/failed around a ledger write."""

    def __init__(
        self,
        store: RecordStore,
        coordinator: AnalysisLedgerCoordinator,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._coordinator = coordinator
        self._clock = clock

    def _load(self, analysis_id: str) -> AnalysisRecord:
        record = self._store.get(analysis_id)
        if record is None:
            raise RecordNotFoundError(analysis_id)
        return record

    def _put_ledger_fields(self, record: AnalysisRecord) -> AnalysisRecord:
        self._store.update_ledger_fields(record.id, LedgerFields.from_record(record))
        return record

    async def log_record(
        self,
        wallet: WalletCapability,
        analysis_id: str,
        *,
        confirmation_timeout: float | None = None,
        crypto_count: int | None = None,
        total_count: int | None = None,
        retry_policy: RetryConfig | None = None,
    ) -> ReconcileResult:
        """Write the stored record to the ledger and persist the outcome.

        ``crypto_count`` / ``total_count`` override the stored counts; for a
        confirmed record they are what the on-chain update carries. With a
        ``retry_policy`` network failures are retried with backoff.
        """
        original = self._load(analysis_id)
        crypto = original.crypto_function_count if crypto_count is None else crypto_count
        total = original.total_function_count if total_count is None else total_count

        if original.is_confirmed:
            # an update is in flight; the confirmed state is never left
            working = original
        else:
            working = original.mark_pending()
            self._put_ledger_fields(working)

        try:
            if retry_policy is not None:
                outcome = await log_with_retry(
                    self._coordinator,
                    wallet,
                    analysis_id,
                    original.filename,
                    crypto,
                    total,
                    policy=retry_policy,
                    confirmation_timeout=confirmation_timeout,
                )
            else:
                outcome = await self._coordinator.log_analysis(
                    wallet,
                    analysis_id,
                    original.filename,
                    crypto,
                    total,
                    confirmation_timeout=confirmation_timeout,
                )
        except BaseException:
            # no outcome to record; put the stored ledger fields back
            if not original.is_confirmed:
                self._put_ledger_fields(original)
                log.warning("record_restored_after_error", analysis_id=original.id)
            raise
        record = self._apply(original, working, outcome, crypto, total)
        return ReconcileResult(outcome=outcome, record=record)

    def _apply(
        self,
        original: AnalysisRecord,
        working: AnalysisRecord,
        outcome: LedgerOutcome,
        crypto: int,
        total: int,
    ) -> AnalysisRecord:
        if isinstance(outcome, LedgerResult):
            now = self._clock()
            if working.is_confirmed:
                updated = working.record_update(
                    outcome.tx_hash, outcome.block_number, now, crypto, total
                )
                self._store.save(updated)
                log.info("record_update_appended", analysis_id=updated.id, tx_hash=outcome.tx_hash)
                return updated
            # a create or a first-time update of a record logged elsewhere
            confirmed = working.with_counts(crypto, total).confirm(
                outcome.tx_hash, outcome.block_number, now, outcome.chain_id
            )
            self._store.save(confirmed)
            log.info("record_confirmed", analysis_id=confirmed.id, tx_hash=outcome.tx_hash)
            return confirmed

        if original.is_confirmed:
            log.info("record_update_not_applied", analysis_id=original.id, kind=outcome.kind.value)
            return original

        if outcome.kind in _NOT_ATTEMPTED:
            log.info(
                "record_restored",
                analysis_id=original.id,
                state=original.ledger_state.value,
                kind=outcome.kind.value,
            )
            return self._put_ledger_fields(original)

        if outcome.kind is LedgerErrorKind.CONFIRMATION_TIMEOUT:
            pending = working.mark_pending(outcome.tx_hash)
            log.info("record_awaiting_confirmation", analysis_id=pending.id, tx_hash=outcome.tx_hash)
            return self._put_ledger_fields(pending)

        failed = working.mark_failed()
        log.info("record_failed", analysis_id=failed.id, kind=outcome.kind.value)
        return self._put_ledger_fields(failed)

    async def poll_record(self, wallet: WalletCapability, analysis_id: str) -> ReconcileResult:
        """Confirm a pending record once its transaction is included."""
        record = self._load(analysis_id)
        if record.ledger_state is not LedgerState.PENDING or record.tx_hash is None:
            return ReconcileResult(outcome=None, record=record)

        outcome = await self._coordinator.poll_transaction(wallet, record.tx_hash)
        if outcome is None:
            return ReconcileResult(outcome=None, record=record)
        if isinstance(outcome, LedgerResult):
            confirmed = record.confirm(
                outcome.tx_hash, outcome.block_number, self._clock(), outcome.chain_id
            )
            self._put_ledger_fields(confirmed)
            log.info("record_confirmed_by_poll", analysis_id=analysis_id, tx_hash=outcome.tx_hash)
            return ReconcileResult(outcome=outcome, record=confirmed)
        if isinstance(outcome, LedgerError) and outcome.is_terminal:
            failed = record.mark_failed()
            self._put_ledger_fields(failed)
            return ReconcileResult(outcome=outcome, record=failed)
        return ReconcileResult(outcome=outcome, record=record)
