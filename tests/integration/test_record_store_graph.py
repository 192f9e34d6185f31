"""Integration tests for the Neo4j record store (requires Neo4j)."""

from datetime import datetime, timezone

import pytest

from fwledger.ledger.models import AnalysisRecord, LedgerFields, LedgerState

T0 = datetime(2026, 2, 1, tzinfo=timezone.utc)


@pytest.mark.integration
def test_record_lifecycle_round_trip(neo4j_driver):
    """Save, mark pending, confirm and update a record."""
    from fwledger.store.graph import GraphRecordStore, create_record_schema

    create_record_schema(neo4j_driver)
    store = GraphRecordStore(neo4j_driver)

    record = AnalysisRecord.new("abc-123", "fw.bin", 5, 100)
    store.save(record)
    assert store.get("abc-123") == record

    store.update_ledger_fields(
        "abc-123", LedgerFields(ledger_state=LedgerState.PENDING, tx_hash="0x" + "1" * 64)
    )
    assert store.get("abc-123").ledger_state is LedgerState.PENDING

    confirmed = record.confirm("0x" + "1" * 64, 101, T0, 11155111)
    updated = confirmed.record_update("0x" + "2" * 64, 102, T0, 7, 100)
    store.save(updated)

    loaded = store.get("abc-123")
    assert loaded.is_confirmed
    assert loaded.crypto_function_count == 7
    assert [u.tx_hash for u in loaded.updates] == ["0x" + "2" * 64]
    assert [r.id for r in store.list_logged()] == ["abc-123"]


@pytest.mark.integration
def test_update_missing_record(neo4j_driver):
    from fwledger.store.graph import GraphRecordStore

    with pytest.raises(KeyError):
        GraphRecordStore(neo4j_driver).update_ledger_fields(
            "missing", LedgerFields(ledger_state=LedgerState.FAILED)
        )
