"""Tests for mirroring ledger outcomes into the record store."""

from datetime import datetime, timezone

import pytest

from conftest import FakeWallet
from fwledger.ledger.errors import LedgerErrorKind, RpcError, TransportError
from fwledger.ledger.models import LedgerState
from fwledger.ledger.reconcile import LedgerReconciler, RecordNotFoundError

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def reconciler(record_store, coordinator):
    return LedgerReconciler(record_store, coordinator, clock=lambda: NOW)


@pytest.mark.asyncio
async def test_successful_write_confirms_record(reconciler, record_store, wallet):
    result = await reconciler.log_record(wallet, "abc-123")

    assert result.outcome.ok
    record = record_store.get("abc-123")
    assert record.ledger_state is LedgerState.CONFIRMED
    assert record.tx_hash == result.outcome.tx_hash
    assert record.block_number == result.outcome.block_number
    assert record.logged_at == NOW
    assert record.chain_id == 11155111


@pytest.mark.asyncio
async def test_update_appends_event(reconciler, record_store, wallet):
    first = await reconciler.log_record(wallet, "abc-123")
    second = await reconciler.log_record(wallet, "abc-123", crypto_count=7)

    assert second.outcome.is_update
    record = record_store.get("abc-123")
    assert record.tx_hash == first.outcome.tx_hash
    assert record.crypto_function_count == 7
    assert [u.tx_hash for u in record.updates] == [second.outcome.tx_hash]


@pytest.mark.asyncio
async def test_user_rejection_restores_record(reconciler, record_store, wallet, fake_chain):
    fake_chain.submit_error = RpcError(4001, "User rejected the request.")
    result = await reconciler.log_record(wallet, "abc-123")

    assert result.outcome.kind is LedgerErrorKind.USER_REJECTED
    assert record_store.get("abc-123").ledger_state is LedgerState.UNLOGGED


@pytest.mark.asyncio
async def test_timeout_leaves_record_pending_with_hash(reconciler, record_store, wallet, fake_chain):
    fake_chain.confirm_delay = 5.0
    result = await reconciler.log_record(wallet, "abc-123", confirmation_timeout=0.01)

    record = record_store.get("abc-123")
    assert record.ledger_state is LedgerState.PENDING
    assert record.tx_hash == result.outcome.tx_hash

    # not mined yet
    polled = await reconciler.poll_record(wallet, "abc-123")
    assert polled.outcome is None
    assert polled.record.ledger_state is LedgerState.PENDING

    fake_chain.mine(record.tx_hash)
    polled = await reconciler.poll_record(wallet, "abc-123")
    assert polled.record.ledger_state is LedgerState.CONFIRMED
    assert record_store.get("abc-123").tx_hash == result.outcome.tx_hash


@pytest.mark.asyncio
async def test_other_failure_marks_failed(reconciler, record_store, wallet, fake_chain):
    fake_chain.exists_error = TransportError("connection refused")
    result = await reconciler.log_record(wallet, "abc-123")

    assert result.outcome.kind is LedgerErrorKind.NETWORK_ERROR
    assert record_store.get("abc-123").ledger_state is LedgerState.FAILED


@pytest.mark.asyncio
async def test_failed_update_keeps_confirmed(reconciler, record_store, wallet, fake_chain):
    await reconciler.log_record(wallet, "abc-123")
    fake_chain.submit_error = TransportError("connection reset")
    result = await reconciler.log_record(wallet, "abc-123", crypto_count=9)

    record = record_store.get("abc-123")
    assert not result.outcome.ok
    assert record.is_confirmed
    assert record.crypto_function_count == 5
    assert record.updates == ()


@pytest.mark.asyncio
async def test_unexpected_error_restores_record(reconciler, record_store, wallet, fake_chain):
    fake_chain.exists_error = RuntimeError("boom")
    with pytest.raises(RuntimeError):
        await reconciler.log_record(wallet, "abc-123")

    record = record_store.get("abc-123")
    assert record.ledger_state is LedgerState.UNLOGGED
    assert record.tx_hash is None


@pytest.mark.asyncio
async def test_unexpected_error_on_update_keeps_confirmed(reconciler, record_store, wallet, fake_chain):
    first = await reconciler.log_record(wallet, "abc-123")
    fake_chain.exists_error = RuntimeError("boom")
    with pytest.raises(RuntimeError):
        await reconciler.log_record(wallet, "abc-123", crypto_count=9)

    record = record_store.get("abc-123")
    assert record.is_confirmed
    assert record.tx_hash == first.outcome.tx_hash
    assert record.updates == ()


@pytest.mark.asyncio
async def test_not_connected_keeps_record_unlogged(reconciler, record_store):
    result = await reconciler.log_record(FakeWallet(account=None), "abc-123")
    assert result.outcome.kind is LedgerErrorKind.NOT_CONNECTED
    assert record_store.get("abc-123").ledger_state is LedgerState.UNLOGGED


@pytest.mark.asyncio
async def test_retry_policy_recovers_from_network_error(reconciler, record_store, wallet, fake_chain, sample_config):
    fake_chain.exists_errors = [TransportError("flaky"), TransportError("flaky")]
    result = await reconciler.log_record(wallet, "abc-123", retry_policy=sample_config.retry)

    assert result.outcome.ok
    assert fake_chain.count("exists") == 3
    assert record_store.get("abc-123").is_confirmed


@pytest.mark.asyncio
async def test_missing_record(reconciler, wallet):
    with pytest.raises(RecordNotFoundError):
        await reconciler.log_record(wallet, "nope")


@pytest.mark.asyncio
async def test_poll_of_non_pending_record_is_noop(reconciler, wallet, record_store):
    result = await reconciler.poll_record(wallet, "abc-123")
    assert result.outcome is None
    assert result.record == record_store.get("abc-123")
