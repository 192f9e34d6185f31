"""web3.py adapters for the wallet capability and the ledger contract client.

Signing happens in the node or wallet behind the RPC endpoint
(``eth_sendTransaction``), the way a browser wallet signs for a dapp. A
wallet value is immutable: connecting yields a ``Web3Wallet``, disconnecting
yields ``DisconnectedWallet``. Account and chain are fetched on every call.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import aiohttp
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import (
    ContractLogicError,
    ProviderConnectionError,
    TransactionNotFound,
    Web3Exception,
    Web3RPCError,
)

from fwledger.chain.abi import ANALYSIS_LEDGER_ABI
from fwledger.config.models import ChainConfig
from fwledger.ledger.errors import (
    ContractRevert,
    LedgerClientError,
    RpcError,
    TransportError,
)
from fwledger.ledger.protocols import ClientFactory
from fwledger.ledger.receipt import normalize_tx_hash
from fwledger.utils.logging import get_logger

log = get_logger(__name__)

_REVERT_PREFIX = "execution reverted"


def _revert_reason(exc: ContractLogicError) -> str:
    text = getattr(exc, "message", None) or str(exc)
    if text.startswith(_REVERT_PREFIX):
        text = text[len(_REVERT_PREFIX) :].lstrip(": ").strip()
    return text


def _rpc_error(exc: Web3RPCError) -> tuple[int | None, str]:
    response = getattr(exc, "rpc_response", None) or {}
    error = response.get("error") if isinstance(response, dict) else None
    if isinstance(error, dict):
        return error.get("code"), str(error.get("message", "")) or str(exc)
    return None, getattr(exc, "message", None) or str(exc)


@contextmanager
def translate_errors() -> Iterator[None]:
    """Re-raise web3 and transport failures as ``LedgerClientError`` subclasses."""
    try:
        yield
    except ContractLogicError as exc:
        raise ContractRevert(_revert_reason(exc)) from exc
    except Web3RPCError as exc:
        code, message = _rpc_error(exc)
        raise RpcError(code, message) from exc
    except (ProviderConnectionError, aiohttp.ClientError, OSError, asyncio.TimeoutError) as exc:
        raise TransportError(str(exc) or type(exc).__name__) from exc
    except Web3Exception as exc:
        raise LedgerClientError(str(exc)) from exc


@dataclass(frozen=True)
class Web3Signer:
    """Signing capability: a node-managed account reachable through ``w3``."""

    w3: AsyncWeb3
    address: str


class Web3PendingTransaction:
    def __init__(self, w3: AsyncWeb3, tx_hash: str, poll_interval: float = 1.0) -> None:
        self._w3 = w3
        self._tx_hash = tx_hash
        self._poll_interval = poll_interval

    @property
    def tx_hash(self) -> str:
        return self._tx_hash

    async def wait(self) -> Any:
        """Poll until included. Raises ``ContractRevert`` for a failed transaction."""
        while True:
            receipt = await fetch_receipt(self._w3, self._tx_hash)
            if receipt is not None:
                return receipt
            await asyncio.sleep(self._poll_interval)


async def fetch_receipt(w3: AsyncWeb3, tx_hash: str) -> Any | None:
    with translate_errors():
        try:
            receipt = await w3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            return None
    if receipt.get("status") == 0:
        raise ContractRevert(f"transaction {tx_hash} reverted in block {receipt.get('blockNumber')}")
    return receipt


class Web3LedgerClient:
    """Calls the analysis ledger contract on behalf of one signer."""

    def __init__(self, signer: Web3Signer, contract_address: str, poll_interval: float = 1.0) -> None:
        self._w3 = signer.w3
        self._from = signer.address
        self._poll_interval = poll_interval
        self._contract = self._w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(contract_address),
            abi=ANALYSIS_LEDGER_ABI,
        )

    def _pending(self, raw_hash: Any) -> Web3PendingTransaction:
        return Web3PendingTransaction(self._w3, normalize_tx_hash(raw_hash), self._poll_interval)

    async def analysis_exists(self, analysis_id: str) -> bool:
        with translate_errors():
            return bool(await self._contract.functions.analysisExists(analysis_id).call())

    async def log_analysis(
        self, analysis_id: str, filename: str, crypto_count: int, total_count: int
    ) -> Web3PendingTransaction:
        with translate_errors():
            raw_hash = await self._contract.functions.logAnalysis(
                analysis_id, filename, crypto_count, total_count
            ).transact({"from": self._from})
        log.debug("log_analysis_broadcast", analysis_id=analysis_id)
        return self._pending(raw_hash)

    async def update_analysis(
        self, analysis_id: str, crypto_count: int, total_count: int
    ) -> Web3PendingTransaction:
        with translate_errors():
            raw_hash = await self._contract.functions.updateAnalysis(
                analysis_id, crypto_count, total_count
            ).transact({"from": self._from})
        log.debug("update_analysis_broadcast", analysis_id=analysis_id)
        return self._pending(raw_hash)

    async def transaction_receipt(self, tx_hash: str) -> Any | None:
        return await fetch_receipt(self._w3, tx_hash)


def web3_client_factory(poll_interval: float = 1.0) -> ClientFactory:
    def _factory(contract_address: str, signer: Web3Signer) -> Web3LedgerClient:
        return Web3LedgerClient(signer, contract_address, poll_interval)

    return _factory


class Web3Wallet:
    """Wallet capability backed by the accounts a JSON-RPC endpoint manages."""

    def __init__(self, w3: AsyncWeb3, preferred_account: str | None = None) -> None:
        self._w3 = w3
        self._preferred = preferred_account

    async def get_connected_account(self) -> str | None:
        with translate_errors():
            accounts = list(await self._w3.eth.accounts)
        if not accounts:
            return None
        if self._preferred:
            wanted = self._preferred.lower()
            for account in accounts:
                if account.lower() == wanted:
                    return account
            return None
        return accounts[0]

    async def get_active_chain_id(self) -> int | None:
        with translate_errors():
            return int(await self._w3.eth.chain_id)

    async def get_signer(self) -> Web3Signer:
        account = await self.get_connected_account()
        if account is None:
            raise RpcError(4100, "no authorized account")
        return Web3Signer(self._w3, account)

    async def get_balance(self, address: str) -> Decimal:
        """Balance of ``address`` in ether."""
        with translate_errors():
            wei = await self._w3.eth.get_balance(AsyncWeb3.to_checksum_address(address))
        return Decimal(AsyncWeb3.from_wei(wei, "ether"))


class DisconnectedWallet:
    async def get_connected_account(self) -> str | None:
        return None

    async def get_active_chain_id(self) -> int | None:
        return None

    async def get_signer(self) -> Web3Signer:
        raise RpcError(4100, "wallet is disconnected")

    async def get_balance(self, address: str) -> Decimal:
        raise TransportError("wallet is disconnected")


def connect_wallet(config: ChainConfig) -> Web3Wallet:
    """Open a wallet capability against ``config.rpc_url``."""
    w3 = AsyncWeb3(AsyncHTTPProvider(config.rpc_url))
    log.debug("wallet_provider_created", rpc_url=config.rpc_url)
    return Web3Wallet(w3, preferred_account=config.account)


def disconnect_wallet(wallet: Web3Wallet | DisconnectedWallet) -> DisconnectedWallet:
    return DisconnectedWallet()
