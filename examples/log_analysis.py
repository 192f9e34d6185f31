"""fwledger quickstart: log an analysis, then update it."""

import asyncio

from fwledger import LedgerContext
from fwledger.chains import explorer_tx_url
from fwledger.config.loader import load_config
from fwledger.ledger.models import AnalysisRecord
from fwledger.ledger.reconcile import LedgerReconciler
from fwledger.store.memory import InMemoryRecordStore


async def run(ctx: LedgerContext) -> None:
    reconciler = LedgerReconciler(ctx.ensure_store(), ctx.ensure_coordinator())
    wallet = ctx.ensure_wallet()

    # First write creates the on-chain record
    result = await reconciler.log_record(wallet, "abc-123")
    print(f"{result.record.ledger_state.value}: {result.outcome}")

    # A later write with new counts becomes an update
    result = await reconciler.log_record(wallet, "abc-123", crypto_count=7)
    if result.outcome.ok:
        print(f"Updated: {explorer_tx_url(result.outcome.chain_id, result.outcome.tx_hash)}")
    else:
        print(f"Update failed: {result.outcome.message}")


def main():
    # 1. Load configuration (FWLEDGER_CONTRACT_ADDRESS or fwledger.yaml)
    ctx = LedgerContext()
    ctx.config = load_config()

    # 2. Keep records in memory instead of Neo4j
    ctx.record_store = InMemoryRecordStore(
        [AnalysisRecord.new("abc-123", "fw.bin", 5, 100)]
    )

    # 3. Talk to the node at chain.rpc_url with its unlocked account
    asyncio.run(run(ctx))


if __name__ == "__main__":
    main()
