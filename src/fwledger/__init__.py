"""fwledger: on-chain ledger for firmware analysis summaries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from fwledger.version import __version__

if TYPE_CHECKING:
    from neo4j import Driver

    from fwledger.chain.web3_client import DisconnectedWallet, Web3Wallet
    from fwledger.config.models import FwLedgerConfig
    from fwledger.config.settings import SettingsStore
    from fwledger.ledger.coordinator import AnalysisLedgerCoordinator
    from fwledger.ledger.protocols import RecordStore


@dataclass
class LedgerContext:
    """Dependency-injection container shared across CLI commands."""

    config: FwLedgerConfig | None = None
    neo4j_driver: Driver | None = None
    record_store: RecordStore | None = None
    wallet: Web3Wallet | DisconnectedWallet | None = None
    coordinator: AnalysisLedgerCoordinator | None = None

    def ensure_config(self) -> FwLedgerConfig:
        if self.config is None:
            from fwledger.config.loader import load_config

            self.config = load_config()
        return self.config

    def settings_store(self) -> SettingsStore:
        from fwledger.config.settings import SettingsStore

        return SettingsStore(self.ensure_config().settings_path)

    def contract_address(self) -> str | None:
        from fwledger.config.settings import resolve_contract_address

        return resolve_contract_address(self.ensure_config(), self.settings_store().load())

    def ensure_neo4j(self) -> Driver:
        if self.neo4j_driver is None:
            from fwledger.store.connection import create_driver

            cfg = self.ensure_config()
            self.neo4j_driver = create_driver(cfg.neo4j)
        return self.neo4j_driver

    def ensure_store(self) -> RecordStore:
        if self.record_store is None:
            from fwledger.store.graph import GraphRecordStore

            cfg = self.ensure_config()
            self.record_store = GraphRecordStore(self.ensure_neo4j(), database=cfg.neo4j.database)
        return self.record_store

    def ensure_wallet(self) -> Web3Wallet | DisconnectedWallet:
        if self.wallet is None:
            from fwledger.chain.web3_client import connect_wallet

            self.wallet = connect_wallet(self.ensure_config().chain)
        return self.wallet

    def ensure_coordinator(self) -> AnalysisLedgerCoordinator:
        if self.coordinator is None:
            from fwledger.chain.web3_client import web3_client_factory
            from fwledger.ledger.coordinator import AnalysisLedgerCoordinator

            cfg = self.ensure_config()
            self.coordinator = AnalysisLedgerCoordinator(
                contract_address=self.contract_address(),
                client_factory=web3_client_factory(cfg.ledger.poll_interval),
                existence_timeout=cfg.ledger.existence_timeout,
                confirmation_timeout=cfg.ledger.confirmation_timeout,
            )
        return self.coordinator

    def close(self) -> None:
        if self.neo4j_driver is not None:
            self.neo4j_driver.close()
            self.neo4j_driver = None


__all__ = ["LedgerContext", "__version__"]
