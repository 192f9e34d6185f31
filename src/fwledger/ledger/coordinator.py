"""Analysis ledger coordinator: decide create vs update, submit, confirm.

Precondition for callers: at most one in-flight ``log_analysis`` call per
analysis id per process. Two overlapping calls can both see "absent" and
both submit a create; the contract rejects the second one, which surfaces
as ``DuplicateCreate``. The coordinator does not serialise calls itself.

The coordinator never persists anything. It returns a ``LedgerResult`` or a
``LedgerError`` and the caller mirrors that into the off-chain record store
(see ``fwledger.ledger.reconcile``).
"""

from __future__ import annotations

import asyncio
from typing import Union

from fwledger.address import is_valid_address
from fwledger.ledger.errors import (
    ConfigurationError,
    ContractRevert,
    LedgerClientError,
    LedgerError,
    LedgerErrorKind,
    to_ledger_error,
)
from fwledger.ledger.models import LedgerResult, LedgerWriteIntent, check_counts
from fwledger.ledger.protocols import (
    ClientFactory,
    LedgerContractClient,
    PendingTransaction,
    WalletCapability,
)
from fwledger.ledger.receipt import normalize_receipt, normalize_tx_hash
from fwledger.utils.logging import bind_ledger_call, clear_ledger_call, get_logger

log = get_logger(__name__)

LedgerOutcome = Union[LedgerResult, LedgerError]

# Failures a client may raise that map onto the error taxonomy.
_CLIENT_FAILURES = (LedgerClientError, OSError)


class AnalysisLedgerCoordinator:
    """Ensures one logical on-chain record per analysis id."""

    def __init__(
        self,
        contract_address: str | None,
        client_factory: ClientFactory,
        existence_timeout: float = 10.0,
        confirmation_timeout: float = 120.0,
    ) -> None:
        if contract_address is not None and not is_valid_address(contract_address):
            raise ConfigurationError(f"Configured contract address is malformed: {contract_address!r}")
        self._contract_address = contract_address
        self._client_factory = client_factory
        self._existence_timeout = existence_timeout
        self._confirmation_timeout = confirmation_timeout

    @property
    def contract_address(self) -> str | None:
        return self._contract_address

    @property
    def is_configured(self) -> bool:
        return self._contract_address is not None

    async def _client(self, wallet: WalletCapability) -> LedgerContractClient:
        if self._contract_address is None:
            raise ConfigurationError("no ledger contract address configured")
        signer = await wallet.get_signer()
        return self._client_factory(self._contract_address, signer)

    async def log_analysis(
        self,
        wallet: WalletCapability,
        analysis_id: str,
        filename: str,
        crypto_count: int,
        total_count: int,
        *,
        confirmation_timeout: float | None = None,
    ) -> LedgerOutcome:
        """Create or update the on-chain record for ``analysis_id``.

        Guards run in order and short-circuit: wallet connected, contract
        configured, counts valid. Then: read-only existence check, create or
        update submission, bounded wait for inclusion.

        Returns:
            ``LedgerResult`` on inclusion, otherwise a ``LedgerError``. A
            ``ConfirmationTimeout`` error carries the submitted hash.
        """
        try:
            account = await wallet.get_connected_account()
        except _CLIENT_FAILURES as exc:
            return to_ledger_error(exc)
        if not account:
            return LedgerError.of(LedgerErrorKind.NOT_CONNECTED)

        if not self.is_configured:
            return LedgerError.of(LedgerErrorKind.NOT_CONFIGURED)

        if not analysis_id or not filename or not check_counts(crypto_count, total_count):
            return LedgerError.of(
                LedgerErrorKind.INVALID_INPUT,
                detail=f"id={analysis_id!r} filename={filename!r} "
                f"crypto={crypto_count} total={total_count}",
            )

        try:
            chain_id = await wallet.get_active_chain_id()
            client = await self._client(wallet)
        except _CLIENT_FAILURES as exc:
            return to_ledger_error(exc)

        bind_ledger_call(analysis_id, chain_id)
        try:
            return await self._write(
                client,
                analysis_id,
                filename,
                crypto_count,
                total_count,
                chain_id=chain_id,
                confirmation_timeout=(
                    self._confirmation_timeout
                    if confirmation_timeout is None
                    else confirmation_timeout
                ),
            )
        finally:
            clear_ledger_call()

    async def _write(
        self,
        client: LedgerContractClient,
        analysis_id: str,
        filename: str,
        crypto_count: int,
        total_count: int,
        *,
        chain_id: int | None,
        confirmation_timeout: float,
    ) -> LedgerOutcome:
        # 1. read-only existence check
        try:
            exists = await asyncio.wait_for(
                client.analysis_exists(analysis_id), timeout=self._existence_timeout
            )
        except asyncio.TimeoutError:
            log.warning("ledger_existence_timeout", timeout=self._existence_timeout)
            return LedgerError.of(
                LedgerErrorKind.NETWORK_ERROR,
                detail=f"existence check exceeded {self._existence_timeout}s",
            )
        except _CLIENT_FAILURES as exc:
            log.warning("ledger_existence_failed", error=str(exc))
            return to_ledger_error(exc)

        # 2./3. update carries only the mutable counts; create carries the full record
        intent = LedgerWriteIntent(
            analysis_id=analysis_id,
            filename=filename,
            crypto_count=crypto_count,
            total_count=total_count,
            is_update=bool(exists),
        )

        # 4. submit; may suspend on the wallet prompt for as long as the user takes
        try:
            pending = await self._submit(client, intent)
            tx_hash = normalize_tx_hash(pending.tx_hash)
        except _CLIENT_FAILURES as exc:
            error = to_ledger_error(exc, is_update=intent.is_update)
            log.info("ledger_write_not_submitted", path=intent.path, kind=error.kind.value)
            return error

        log.info("ledger_write_submitted", path=intent.path, tx_hash=tx_hash)

        # 5. bounded wait for inclusion; the broadcast transaction is left alone on expiry
        try:
            raw_receipt = await asyncio.wait_for(pending.wait(), timeout=confirmation_timeout)
        except asyncio.TimeoutError:
            log.warning(
                "ledger_confirmation_timeout", tx_hash=tx_hash, timeout=confirmation_timeout
            )
            return LedgerError.of(
                LedgerErrorKind.CONFIRMATION_TIMEOUT,
                tx_hash=tx_hash,
                detail=f"not included within {confirmation_timeout}s",
            )
        except ContractRevert as exc:
            error = await self._classify_mined_revert(client, intent, exc, tx_hash)
            log.warning("ledger_confirmation_failed", tx_hash=tx_hash, kind=error.kind.value)
            return error
        except _CLIENT_FAILURES as exc:
            error = to_ledger_error(exc, is_update=intent.is_update, tx_hash=tx_hash)
            log.warning("ledger_confirmation_failed", tx_hash=tx_hash, kind=error.kind.value)
            return error

        # 6. normalise
        receipt = normalize_receipt(raw_receipt)
        log.info(
            "ledger_write_confirmed",
            path=intent.path,
            tx_hash=receipt.tx_hash,
            block_number=receipt.block_number,
            gas_used=receipt.gas_used,
        )
        return LedgerResult.from_receipt(receipt, is_update=intent.is_update, chain_id=chain_id)

    async def _classify_mined_revert(
        self,
        client: LedgerContractClient,
        intent: LedgerWriteIntent,
        exc: ContractRevert,
        tx_hash: str,
    ) -> LedgerError:
        """A create that reverted once mined lost the race if the id now exists."""
        error = to_ledger_error(exc, is_update=intent.is_update, tx_hash=tx_hash)
        if intent.is_update or error.kind is not LedgerErrorKind.UNKNOWN:
            return error
        try:
            exists = await asyncio.wait_for(
                client.analysis_exists(intent.analysis_id), timeout=self._existence_timeout
            )
        except (asyncio.TimeoutError, *_CLIENT_FAILURES) as recheck_exc:
            log.warning("ledger_duplicate_recheck_failed", tx_hash=tx_hash, error=str(recheck_exc))
            return error
        if not exists:
            return error
        return LedgerError.of(
            LedgerErrorKind.DUPLICATE_CREATE, tx_hash=tx_hash, detail=error.detail
        )

    @staticmethod
    async def _submit(
        client: LedgerContractClient, intent: LedgerWriteIntent
    ) -> PendingTransaction:
        if intent.is_update:
            return await client.update_analysis(
                intent.analysis_id, intent.crypto_count, intent.total_count
            )
        return await client.log_analysis(
            intent.analysis_id, intent.filename, intent.crypto_count, intent.total_count
        )

    async def analysis_exists(self, wallet: WalletCapability, analysis_id: str) -> bool:
        """Read-only existence lookup. Raises ``LedgerClientError`` on failure."""
        if not self.is_configured:
            raise ConfigurationError("no ledger contract address configured")
        client = await self._client(wallet)
        return bool(
            await asyncio.wait_for(
                client.analysis_exists(analysis_id), timeout=self._existence_timeout
            )
        )

    async def poll_transaction(
        self, wallet: WalletCapability, tx_hash: str, *, is_update: bool = False
    ) -> LedgerOutcome | None:
        """Look up a previously submitted transaction once.

        Returns ``None`` while it is still unconfirmed, a ``LedgerResult`` once
        included, or a ``LedgerError`` if the lookup or the transaction failed.
        """
        if not self.is_configured:
            return LedgerError.of(LedgerErrorKind.NOT_CONFIGURED, tx_hash=tx_hash)
        try:
            chain_id = await wallet.get_active_chain_id()
            client = await self._client(wallet)
            raw_receipt = await asyncio.wait_for(
                client.transaction_receipt(tx_hash), timeout=self._existence_timeout
            )
        except asyncio.TimeoutError:
            return LedgerError.of(LedgerErrorKind.NETWORK_ERROR, tx_hash=tx_hash)
        except _CLIENT_FAILURES as exc:
            return to_ledger_error(exc, is_update=is_update, tx_hash=tx_hash)

        if raw_receipt is None:
            log.debug("ledger_poll_pending", tx_hash=tx_hash)
            return None
        receipt = normalize_receipt(raw_receipt)
        log.info("ledger_poll_confirmed", tx_hash=receipt.tx_hash, block_number=receipt.block_number)
        return LedgerResult.from_receipt(receipt, is_update=is_update, chain_id=chain_id)
