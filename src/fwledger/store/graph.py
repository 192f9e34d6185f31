"""Neo4j-backed record store.

Records are ``(:AnalysisRecord {id})`` nodes; each on-chain update after the
creating write is a ``(:LedgerUpdate)`` node linked by ``UPDATED_BY``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from neo4j import Driver

from fwledger.ledger.models import AnalysisRecord, LedgerFields, LedgerState, LedgerUpdateEvent
from fwledger.utils.logging import get_logger

log = get_logger(__name__)

CONSTRAINTS = [
    "CREATE CONSTRAINT analysis_record_id IF NOT EXISTS "
    "FOR (a:AnalysisRecord) REQUIRE a.id IS UNIQUE",
    "CREATE CONSTRAINT ledger_update_tx IF NOT EXISTS "
    "FOR (u:LedgerUpdate) REQUIRE u.tx_hash IS UNIQUE",
]

INDEXES = [
    "CREATE INDEX analysis_record_state IF NOT EXISTS FOR (a:AnalysisRecord) ON (a.ledger_state)",
    "CREATE INDEX analysis_record_logged IF NOT EXISTS FOR (a:AnalysisRecord) ON (a.logged_at)",
]

_FETCH = (
    "MATCH (a:AnalysisRecord {id: $id}) "
    "OPTIONAL MATCH (a)-[:UPDATED_BY]->(u:LedgerUpdate) "
    "WITH a, u ORDER BY u.block_number "
    "RETURN a AS record, collect(u) AS updates"
)

_LIST_LOGGED = (
    "MATCH (a:AnalysisRecord) WHERE a.tx_hash IS NOT NULL "
    "OPTIONAL MATCH (a)-[:UPDATED_BY]->(u:LedgerUpdate) "
    "WITH a, u ORDER BY u.block_number "
    "WITH a, collect(u) AS updates "
    "RETURN a AS record, updates ORDER BY record.logged_at DESC"
)


def create_record_schema(driver: Driver) -> None:
    """Create constraints and indexes for analysis records."""
    with driver.session() as session:
        for stmt in CONSTRAINTS + INDEXES:
            try:
                session.run(stmt)
                log.info("schema_created", statement=stmt[:60])
            except Exception as exc:
                log.warning("schema_skip", statement=stmt[:60], reason=str(exc))


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_dt(value: Any) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if hasattr(value, "to_native"):  # neo4j.time.DateTime
        return value.to_native()
    return datetime.fromisoformat(str(value))


def _to_record(node: Any, updates: list[Any]) -> AnalysisRecord:
    props = dict(node)
    events = tuple(
        LedgerUpdateEvent(
            tx_hash=u["tx_hash"],
            block_number=int(u["block_number"]),
            logged_at=_parse_dt(u["logged_at"]),
            crypto_function_count=int(u["crypto_function_count"]),
            total_function_count=int(u["total_function_count"]),
        )
        for u in updates
        if u is not None
    )
    return AnalysisRecord(
        id=props["id"],
        filename=props["filename"],
        crypto_function_count=int(props.get("crypto_function_count", 0)),
        total_function_count=int(props.get("total_function_count", 0)),
        ledger_state=LedgerState(props.get("ledger_state", LedgerState.UNLOGGED.value)),
        tx_hash=props.get("tx_hash"),
        block_number=props.get("block_number"),
        logged_at=_parse_dt(props.get("logged_at")),
        chain_id=props.get("chain_id"),
        updates=events,
    )


def _ledger_params(fields: LedgerFields) -> dict[str, Any]:
    return {
        "ledger_state": LedgerState(fields.ledger_state).value,
        "tx_hash": fields.tx_hash,
        "block_number": fields.block_number,
        "logged_at": _iso(fields.logged_at),
        "chain_id": fields.chain_id,
    }


class GraphRecordStore:
    """Persists ``AnalysisRecord`` values in Neo4j using MERGE on the id."""

    def __init__(self, driver: Driver, database: str | None = None) -> None:
        self._driver = driver
        self._database = database

    def _session(self):
        if self._database:
            return self._driver.session(database=self._database)
        return self._driver.session()

    def get(self, analysis_id: str) -> AnalysisRecord | None:
        with self._session() as session:
            row = session.run(_FETCH, id=analysis_id).single()
        if row is None or row["record"] is None:
            return None
        return _to_record(row["record"], row["updates"])

    def save(self, record: AnalysisRecord) -> None:
        params = _ledger_params(LedgerFields.from_record(record))
        with self._session() as session:
            session.run(
                "MERGE (a:AnalysisRecord {id: $id}) "
                "SET a.filename = $filename, "
                "a.crypto_function_count = $crypto, a.total_function_count = $total, "
                "a.ledger_state = $ledger_state, a.tx_hash = $tx_hash, "
                "a.block_number = $block_number, a.logged_at = $logged_at, "
                "a.chain_id = $chain_id",
                id=record.id,
                filename=record.filename,
                crypto=record.crypto_function_count,
                total=record.total_function_count,
                **params,
            )
            if record.updates:
                session.run(
                    "MATCH (a:AnalysisRecord {id: $id}) "
                    "UNWIND $rows AS r "
                    "MERGE (u:LedgerUpdate {tx_hash: r.tx_hash}) "
                    "SET u.block_number = r.block_number, u.logged_at = r.logged_at, "
                    "u.crypto_function_count = r.crypto, u.total_function_count = r.total "
                    "MERGE (a)-[:UPDATED_BY]->(u)",
                    id=record.id,
                    rows=[
                        {
                            "tx_hash": e.tx_hash,
                            "block_number": e.block_number,
                            "logged_at": _iso(e.logged_at),
                            "crypto": e.crypto_function_count,
                            "total": e.total_function_count,
                        }
                        for e in record.updates
                    ],
                )
        log.debug("record_saved", analysis_id=record.id, state=params["ledger_state"])

    def update_ledger_fields(self, analysis_id: str, fields: LedgerFields) -> None:
        with self._session() as session:
            result = session.run(
                "MATCH (a:AnalysisRecord {id: $id}) "
                "SET a.ledger_state = $ledger_state, a.tx_hash = $tx_hash, "
                "a.block_number = $block_number, a.logged_at = $logged_at, "
                "a.chain_id = $chain_id "
                "RETURN a.id AS id",
                id=analysis_id,
                **_ledger_params(fields),
            )
            row = result.single()
        if row is None:
            raise KeyError(analysis_id)

    def list_logged(self, limit: int | None = None) -> list[AnalysisRecord]:
        query = _LIST_LOGGED
        if limit is not None:
            query += f" LIMIT {int(limit)}"
        with self._session() as session:
            rows = list(session.run(query))
        return [_to_record(row["record"], row["updates"]) for row in rows]
