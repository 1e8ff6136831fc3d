"""Append-only JSON-lines audit trail."""
from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Iterator

from notice_engine.domain.repositories import AuditEntry, AuditTrail


class JsonLinesAuditTrail(AuditTrail):
    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    def record(self, entry: AuditEntry) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        line = json.dumps(
            {
                "entity_type": entry.entity_type,
                "entity_id": entry.entity_id,
                "action": entry.action,
                "timestamp": entry.timestamp.isoformat(),
                "user": entry.actor,
                "details": entry.details,
            },
            ensure_ascii=False,
            default=str,
        )
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(line + "\n")

    def iter_entries(self) -> Iterator[AuditEntry]:
        if not self._path.exists():
            return
        for line in self._path.read_text(encoding="utf-8").splitlines():
            if not line.strip():
                continue
            raw = json.loads(line)
            yield AuditEntry(
                entity_type=raw["entity_type"],
                entity_id=raw["entity_id"],
                action=raw["action"],
                timestamp=datetime.fromisoformat(raw["timestamp"]),
                actor=raw.get("user", ""),
                details=raw.get("details", ""),
            )
