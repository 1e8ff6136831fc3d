"""Atomic JSON document storage shared by the file-backed repositories."""
from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from notice_engine.exceptions import PersistenceFailureError


def load_document(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise PersistenceFailureError(f"Store {path} is not valid JSON: {exc}") from exc
    return data if isinstance(data, dict) else {}


def write_document(path: Path, document: dict[str, Any]) -> None:
    """Replace ``path`` with ``document``; readers see the old or the new file, never a mix."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(document, handle, ensure_ascii=False, indent=2, sort_keys=True)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def update_section(path: Path, section: str, value: Any) -> None:
    document = load_document(path)
    document[section] = value
    write_document(path, document)
