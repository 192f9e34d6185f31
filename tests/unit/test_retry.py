"""Tests for the caller-side retry policy."""

import pytest

from fwledger.config.models import RetryConfig
from fwledger.ledger.errors import LedgerError, LedgerErrorKind, RpcError, TransportError
from fwledger.ledger.models import LedgerResult
from fwledger.ledger.retry import build_retrying, is_retryable, log_with_retry

NO_WAIT = RetryConfig(max_attempts=3, multiplier=0, wait_min=0, wait_max=0)


def test_only_network_errors_are_retryable():
    assert is_retryable(LedgerError.of(LedgerErrorKind.NETWORK_ERROR))
    assert not is_retryable(LedgerError.of(LedgerErrorKind.USER_REJECTED))
    assert not is_retryable(LedgerError.of(LedgerErrorKind.CONFIRMATION_TIMEOUT))
    assert not is_retryable(LedgerResult(tx_hash="0x" + "1" * 64, block_number=1))


def test_build_retrying_uses_policy():
    retrying = build_retrying(RetryConfig(max_attempts=5))
    assert retrying.stop.max_attempt_number == 5


@pytest.mark.asyncio
async def test_retries_until_success(coordinator, wallet, fake_chain):
    fake_chain.exists_errors = [TransportError("reset"), TransportError("reset")]
    outcome = await log_with_retry(
        coordinator, wallet, "abc-123", "fw.bin", 5, 100, policy=NO_WAIT
    )

    assert isinstance(outcome, LedgerResult)
    assert fake_chain.count("exists") == 3
    assert fake_chain.count("create") == 1


@pytest.mark.asyncio
async def test_gives_up_with_last_error(coordinator, wallet, fake_chain):
    fake_chain.exists_error = TransportError("down")
    outcome = await log_with_retry(
        coordinator, wallet, "abc-123", "fw.bin", 5, 100, policy=NO_WAIT
    )

    assert isinstance(outcome, LedgerError)
    assert outcome.kind is LedgerErrorKind.NETWORK_ERROR
    assert fake_chain.count("exists") == 3


@pytest.mark.asyncio
async def test_user_rejection_not_retried(coordinator, wallet, fake_chain):
    fake_chain.submit_error = RpcError(4001, "User rejected the request.")
    outcome = await log_with_retry(
        coordinator, wallet, "abc-123", "fw.bin", 5, 100, policy=NO_WAIT
    )

    assert outcome.kind is LedgerErrorKind.USER_REJECTED
    assert fake_chain.count("create") == 1
