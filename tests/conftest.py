"""Shared test fixtures: an in-memory chain, a fake wallet and contract client."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

import pytest

from fwledger.config.models import (
    ChainConfig,
    FwLedgerConfig,
    LedgerConfig,
    Neo4jConfig,
    RetryConfig,
)
from fwledger.ledger.coordinator import AnalysisLedgerCoordinator
from fwledger.ledger.errors import ContractRevert
from fwledger.ledger.models import AnalysisRecord
from fwledger.store.memory import InMemoryRecordStore

ACCOUNT = "0x" + "ab" * 20
CONTRACT = "0x" + "12" * 20
SEPOLIA = 11155111


@dataclass
class FakeChain:
    """Ledger state shared by every client handed out by the factory."""

    records: dict[str, dict[str, Any]] = field(default_factory=dict)
    pending: dict[str, dict[str, Any]] = field(default_factory=dict)
    mined: dict[str, dict[str, Any]] = field(default_factory=dict)
    calls: list[tuple[str, str]] = field(default_factory=list)
    block_number: int = 100
    tx_counter: int = 0
    confirm_delay: float = 0.0
    exists_error: BaseException | None = None
    submit_error: BaseException | None = None
    wait_error: BaseException | None = None
    exists_delay: float = 0.0
    # raised once each, in order, before exists_error is consulted
    exists_errors: list[BaseException] = field(default_factory=list)
    # answered once each, in order, before the stored records are consulted
    exists_answers: list[bool] = field(default_factory=list)
    # creates are broadcast but revert once mined (receipt status 0)
    revert_on_mine: bool = False

    def _broadcast(self) -> str:
        self.tx_counter += 1
        tx_hash = "0x" + f"{self.tx_counter:064x}"
        self.pending[tx_hash] = {
            "transactionHash": tx_hash,
            "gasUsed": 52_000,
            "status": 1,
        }
        return tx_hash

    def mine(self, tx_hash: str) -> dict[str, Any]:
        if tx_hash in self.mined:
            return self.mined[tx_hash]
        self.block_number += 1
        receipt = {**self.pending.pop(tx_hash), "blockNumber": self.block_number}
        self.mined[tx_hash] = receipt
        return receipt

    def count(self, op: str) -> int:
        return sum(1 for name, _ in self.calls if name == op)


class FakePending:
    def __init__(self, chain: FakeChain, tx_hash: str, revert: BaseException | None = None) -> None:
        self._chain = chain
        self._tx_hash = tx_hash
        self._revert = revert

    @property
    def tx_hash(self) -> str:
        return self._tx_hash

    async def wait(self) -> dict[str, Any]:
        await asyncio.sleep(self._chain.confirm_delay)
        if self._chain.wait_error is not None:
            raise self._chain.wait_error
        if self._revert is not None:
            raise self._revert
        return self._chain.mine(self._tx_hash)


class FakeLedgerClient:
    def __init__(self, chain: FakeChain, signer: Any) -> None:
        self._chain = chain
        self.signer = signer

    async def analysis_exists(self, analysis_id: str) -> bool:
        self._chain.calls.append(("exists", analysis_id))
        if self._chain.exists_errors:
            raise self._chain.exists_errors.pop(0)
        if self._chain.exists_error is not None:
            raise self._chain.exists_error
        if self._chain.exists_answers:
            return self._chain.exists_answers.pop(0)
        found = analysis_id in self._chain.records
        await asyncio.sleep(self._chain.exists_delay)
        return found

    async def log_analysis(
        self, analysis_id: str, filename: str, crypto_count: int, total_count: int
    ) -> FakePending:
        self._chain.calls.append(("create", analysis_id))
        if self._chain.submit_error is not None:
            raise self._chain.submit_error
        if analysis_id in self._chain.records:
            raise ContractRevert("analysis already exists")
        if self._chain.revert_on_mine:
            tx_hash = self._chain._broadcast()
            return FakePending(self._chain, tx_hash, revert=ContractRevert(f"transaction {tx_hash} reverted"))
        self._chain.records[analysis_id] = {
            "filename": filename,
            "crypto": crypto_count,
            "total": total_count,
        }
        return FakePending(self._chain, self._chain._broadcast())

    async def update_analysis(
        self, analysis_id: str, crypto_count: int, total_count: int
    ) -> FakePending:
        self._chain.calls.append(("update", analysis_id))
        if self._chain.submit_error is not None:
            raise self._chain.submit_error
        if analysis_id not in self._chain.records:
            raise ContractRevert("analysis not found")
        self._chain.records[analysis_id].update(crypto=crypto_count, total=total_count)
        return FakePending(self._chain, self._chain._broadcast())

    async def transaction_receipt(self, tx_hash: str) -> dict[str, Any] | None:
        self._chain.calls.append(("receipt", tx_hash))
        return self._chain.mined.get(tx_hash)


class FakeWallet:
    def __init__(self, account: str | None = ACCOUNT, chain_id: int | None = SEPOLIA) -> None:
        self.account = account
        self.chain_id = chain_id
        self.account_queries = 0

    async def get_connected_account(self) -> str | None:
        self.account_queries += 1
        return self.account

    async def get_active_chain_id(self) -> int | None:
        return self.chain_id

    async def get_signer(self) -> str | None:
        return self.account

    async def get_balance(self, address: str) -> Decimal:
        return Decimal("1.5")


@pytest.fixture
def fake_chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def wallet() -> FakeWallet:
    return FakeWallet()


@pytest.fixture
def client_factory(fake_chain):
    created: list[FakeLedgerClient] = []

    def _factory(contract_address: str, signer: Any) -> FakeLedgerClient:
        assert contract_address == CONTRACT
        client = FakeLedgerClient(fake_chain, signer)
        created.append(client)
        return client

    _factory.created = created  # type: ignore[attr-defined]
    return _factory


@pytest.fixture
def coordinator(client_factory) -> AnalysisLedgerCoordinator:
    return AnalysisLedgerCoordinator(
        contract_address=CONTRACT,
        client_factory=client_factory,
        existence_timeout=1.0,
        confirmation_timeout=1.0,
    )


@pytest.fixture
def record_store() -> InMemoryRecordStore:
    return InMemoryRecordStore([AnalysisRecord.new("abc-123", "fw.bin", 5, 100)])


@pytest.fixture
def sample_config(tmp_path) -> FwLedgerConfig:
    return FwLedgerConfig(
        chain=ChainConfig(rpc_url="http://127.0.0.1:8545"),
        ledger=LedgerConfig(contract_address=None, confirmation_timeout=5.0),
        retry=RetryConfig(max_attempts=3, wait_min=0, wait_max=0, multiplier=0),
        neo4j=Neo4jConfig(uri="bolt://localhost:7687", password="testpassword"),
        settings_path=str(tmp_path / "settings.yaml"),
    )


@pytest.fixture
def neo4j_driver():
    """Create a Neo4j driver for integration tests.

    Uses testcontainers when available, otherwise skips.
    """
    try:
        from testcontainers.neo4j import Neo4jContainer
    except ImportError:
        pytest.skip("testcontainers not installed")

    from neo4j import GraphDatabase

    container = Neo4jContainer("neo4j:5-community")
    container.start()
    driver = GraphDatabase.driver(
        container.get_connection_url(), auth=("neo4j", container.password)
    )
    yield driver
    driver.close()
    container.stop()


# Markers
def pytest_configure(config):
    config.addinivalue_line("markers", "integration: requires running Neo4j")
