"""Load already-normalized transaction records from CSV or JSON files.

Expected fields (CSV header or JSON object keys):
    date, amount, description, type, category, id

Only ``date`` and ``amount`` are required. Rows whose date or amount can't
be read, NaN and infinite amounts included, are skipped and counted in
``skipped_count`` so they never reach the engine.
"""

from __future__ import annotations

import csv
import json
import logging
import math
from pathlib import Path

from txndedup.matching.models import TransactionRecord
from txndedup.matching.normalize import parse_record_date

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {".csv", ".json"}


class RecordLoader:
    """Read TransactionRecords from a .csv or .json file.

    Attributes:
        skipped_count: Rows rejected by the last load() call.
    """

    def __init__(self):
        self.skipped_count: int = 0

    def load(self, file_path: Path) -> list[TransactionRecord]:
        file_path = Path(file_path)
        suffix = file_path.suffix.lower()
        if suffix not in SUPPORTED_EXTENSIONS:
            raise ValueError(f"Unsupported file type: {file_path.suffix}")

        self.skipped_count = 0
        rows = self._read_json(file_path) if suffix == ".json" else self._read_csv(file_path)

        records: list[TransactionRecord] = []
        for line_no, row in enumerate(rows, start=1):
            record = self._parse_row(row)
            if record is None:
                self.skipped_count += 1
                logger.warning("Skipping row %d in %s: unreadable date or amount", line_no, file_path.name)
                continue
            records.append(record)
        return records

    @staticmethod
    def _read_csv(file_path: Path) -> list[dict]:
        with open(file_path, "r", newline="", errors="replace") as f:
            return list(csv.DictReader(f))

    @staticmethod
    def _read_json(file_path: Path) -> list[dict]:
        with open(file_path) as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in {file_path}: {e}") from e
        if isinstance(data, dict):
            data = data.get("transactions", [])
        if not isinstance(data, list):
            raise ValueError(f"Expected a list of transactions in {file_path}")
        return [row if isinstance(row, dict) else {} for row in data]

    @staticmethod
    def _parse_row(row: dict) -> TransactionRecord | None:
        date_value = _clean(row.get("date"))
        if date_value is None or parse_record_date(date_value) is None:
            return None

        amount_value = row.get("amount")
        try:
            if isinstance(amount_value, str):
                amount_value = amount_value.replace(",", "").strip()
            amount = float(amount_value)
        except (TypeError, ValueError):
            return None
        if not math.isfinite(amount):
            return None

        return TransactionRecord(
            date=date_value,
            amount=amount,
            description=_clean(row.get("description")) or "",
            type=_clean(row.get("type")),
            category=_clean(row.get("category")),
            id=_clean(row.get("id")),
        )


def _clean(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
