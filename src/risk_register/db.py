# File: /risk-register/src/risk_register/db.py

"""
CSV-backed storage for the risk register.

Rows are plain dictionaries keyed by COLUMNS. Score columns are snapshots
taken when the row was written; nothing here recomputes them.

Deletes are soft: the row stays in the file with ``is_deleted`` set so its
risk ID is never handed out again.
"""

import logging
import os
import threading
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, List, Optional

import pandas as pd

from risk_register.errors import DuplicateRiskError, RiskNotFoundError
from risk_register.helpers import next_risk_id

logger = logging.getLogger(__name__)

COLUMNS = [
    "risk_id", "title", "description", "category", "department", "status",
    "owner_id", "likelihood", "impact", "control_effectiveness",
    "inherent_score", "inherent_matrix_value", "inherent_rating",
    "residual_score", "residual_rating", "risk_score", "risk_rating",
    "date_reported", "updated_at", "is_deleted",
]

FLOAT_COLUMNS = {
    "likelihood", "impact", "control_effectiveness",
    "inherent_score", "residual_score", "risk_score",
}
INT_COLUMNS = {"inherent_matrix_value"}
BOOL_COLUMNS = {"is_deleted"}

# One lock per CSV file, shared by every store pointing at it.
_FILE_LOCKS: Dict[str, threading.RLock] = {}
_FILE_LOCKS_GUARD = threading.Lock()


def _lock_for(csv_path: str) -> threading.RLock:
    key = os.path.realpath(csv_path)
    with _FILE_LOCKS_GUARD:
        return _FILE_LOCKS.setdefault(key, threading.RLock())


def _convert(column: str, value: Any) -> Any:
    if column in BOOL_COLUMNS:
        return str(value).strip().lower() in ("true", "1")
    if value is None or value == "":
        return None
    if column in FLOAT_COLUMNS:
        return float(value)
    if column in INT_COLUMNS:
        return int(float(value))
    return str(value)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class RiskStore:
    """Risk records persisted to a single CSV file."""

    def __init__(self, csv_path: str):
        self.csv_path = csv_path
        self._lock = _lock_for(csv_path)

    def load_df(self) -> pd.DataFrame:
        """Load every row, deleted ones included, or return an empty DataFrame."""
        if os.path.exists(self.csv_path):
            df = pd.read_csv(self.csv_path, dtype=object, keep_default_na=False)
            return df.reindex(columns=COLUMNS, fill_value="")
        return pd.DataFrame(columns=COLUMNS)

    def _records(self) -> List[Dict[str, Any]]:
        return [
            {column: _convert(column, row[column]) for column in COLUMNS}
            for row in self.load_df().to_dict(orient="records")
        ]

    def _live_records(self) -> List[Dict[str, Any]]:
        return [r for r in self._records() if not r["is_deleted"]]

    def _write(self, records: List[Dict[str, Any]]) -> None:
        df = pd.DataFrame(records, columns=COLUMNS)
        df.to_csv(self.csv_path, index=False)

    def _find_live(self, records: List[Dict[str, Any]], risk_id: str) -> int:
        for index, record in enumerate(records):
            if record["risk_id"] == risk_id and not record["is_deleted"]:
                return index
        raise RiskNotFoundError(risk_id)

    def list_risks(self, department: Optional[str] = None) -> List[Dict[str, Any]]:
        """Live risks in insertion order, optionally restricted to one department."""
        records = self._live_records()
        if department is None:
            return records
        return [r for r in records if r["department"] == department]

    def existing_ids(self) -> List[str]:
        """Every ID ever issued, including those of deleted risks."""
        return [r["risk_id"] for r in self._records() if r["risk_id"]]

    def get_risk(self, risk_id: str) -> Dict[str, Any]:
        records = self._live_records()
        for record in records:
            if record["risk_id"] == risk_id:
                return record
        raise RiskNotFoundError(risk_id)

    def create_risk(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a risk, allocating the next ID for its department when none is given."""
        with self._lock:
            records = self._records()
            row = {column: record.get(column) for column in COLUMNS}
            issued = [r["risk_id"] for r in records if r["risk_id"]]
            if not row["risk_id"]:
                row["risk_id"] = next_risk_id(row["department"], issued)
            elif row["risk_id"] in issued:
                raise DuplicateRiskError(row["risk_id"])
            row["updated_at"] = row["updated_at"] or _now()
            row["is_deleted"] = False
            records.append(row)
            self._write(records)
        logger.info("Created risk %s in %s", row["risk_id"], row["department"])
        return row

    def update_risk(self, risk_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Apply changes; moving to another department issues a new ID for it."""
        with self._lock:
            records = self._records()
            index = self._find_live(records, risk_id)
            updated = dict(records[index])
            updated.update({
                k: v for k, v in changes.items() if k in COLUMNS and k not in ("risk_id", "is_deleted")
            })
            previous = records[index]
            if updated["department"] != previous["department"]:
                issued = [r["risk_id"] for r in records if r["risk_id"]]
                updated["risk_id"] = next_risk_id(updated["department"], issued)
                # Tombstone keeps the old ID reserved.
                records.append({
                    column: previous[column] if column in ("risk_id", "department", "date_reported") else None
                    for column in COLUMNS
                })
                records[-1].update(is_deleted=True, updated_at=_now())
            updated["updated_at"] = _now()
            records[index] = updated
            self._write(records)
        if updated["risk_id"] != risk_id:
            logger.info("Moved risk %s to %s as %s", risk_id, updated["department"], updated["risk_id"])
        else:
            logger.info("Updated risk %s", risk_id)
        return updated

    def delete_risk(self, risk_id: str) -> None:
        with self._lock:
            records = self._records()
            index = self._find_live(records, risk_id)
            records[index] = dict(records[index], is_deleted=True, updated_at=_now())
            self._write(records)
        logger.info("Deleted risk %s", risk_id)


@lru_cache(maxsize=None)
def store_for(csv_path: str) -> RiskStore:
    """Shared store for a CSV path."""
    return RiskStore(csv_path)
