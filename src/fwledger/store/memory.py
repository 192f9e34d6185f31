"""In-process record store."""

from __future__ import annotations

from datetime import datetime, timezone

from fwledger.ledger.models import AnalysisRecord, LedgerFields


class InMemoryRecordStore:
    def __init__(self, records: list[AnalysisRecord] | None = None) -> None:
        self._records: dict[str, AnalysisRecord] = {r.id: r for r in records or []}

    def get(self, analysis_id: str) -> AnalysisRecord | None:
        return self._records.get(analysis_id)

    def save(self, record: AnalysisRecord) -> None:
        self._records[record.id] = record

    def update_ledger_fields(self, analysis_id: str, fields: LedgerFields) -> None:
        record = self._records.get(analysis_id)
        if record is None:
            raise KeyError(analysis_id)
        self._records[analysis_id] = fields.apply_to(record)

    def list_logged(self, limit: int | None = None) -> list[AnalysisRecord]:
        epoch = datetime.min.replace(tzinfo=timezone.utc)
        logged = [r for r in self._records.values() if r.tx_hash is not None]
        logged.sort(key=lambda r: r.logged_at or epoch, reverse=True)
        return logged[:limit] if limit is not None else logged

    def __len__(self) -> int:
        return len(self._records)
