"""Caller-side retry policy for transient ledger failures.

The coordinator never retries on its own: a state-changing call that failed
in transit may already have been broadcast. ``log_with_retry`` is the
explicit opt-in. Each attempt re-runs the existence check, so a create that
landed during a failed attempt is followed by an update.
"""

from __future__ import annotations

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from fwledger.config.models import RetryConfig
from fwledger.ledger.coordinator import AnalysisLedgerCoordinator, LedgerOutcome
from fwledger.ledger.errors import LedgerError
from fwledger.ledger.protocols import WalletCapability
from fwledger.utils.logging import get_logger

log = get_logger(__name__)


def is_retryable(outcome: LedgerOutcome) -> bool:
    return isinstance(outcome, LedgerError) and outcome.retryable


def _log_retry(state: RetryCallState) -> None:
    outcome = state.outcome.result() if state.outcome is not None else None
    log.warning(
        "ledger_write_retry",
        attempt=state.attempt_number,
        sleep=state.next_action.sleep if state.next_action else None,
        detail=getattr(outcome, "detail", None),
    )


def _last_outcome(state: RetryCallState) -> LedgerOutcome:
    assert state.outcome is not None
    return state.outcome.result()


def build_retrying(policy: RetryConfig) -> AsyncRetrying:
    return AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_exponential(
            multiplier=policy.multiplier, min=policy.wait_min, max=policy.wait_max
        ),
        retry=retry_if_result(is_retryable),
        before_sleep=_log_retry,
        retry_error_callback=_last_outcome,
    )


async def log_with_retry(
    coordinator: AnalysisLedgerCoordinator,
    wallet: WalletCapability,
    analysis_id: str,
    filename: str,
    crypto_count: int,
    total_count: int,
    *,
    policy: RetryConfig | None = None,
    confirmation_timeout: float | None = None,
) -> LedgerOutcome:
    """``log_analysis`` with exponential backoff on ``NetworkError`` only.

    Returns the final outcome instead of raising when attempts run out.
    """
    retrying = build_retrying(policy or RetryConfig())
    return await retrying(
        coordinator.log_analysis,
        wallet,
        analysis_id,
        filename,
        crypto_count,
        total_count,
        confirmation_timeout=confirmation_timeout,
    )
