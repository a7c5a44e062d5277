"""Shared normalization helpers: descriptions, dates and record hashes."""

from __future__ import annotations

import hashlib
import json
import re
from datetime import date, datetime

from txndedup.matching.models import TransactionRecord

_WHITESPACE = re.compile(r"\s+")


def normalize_description(desc: object) -> str:
    """Normalize a transaction description for matching.

    - Non-string input becomes ""
    - Lowercase
    - Drop everything that is not a letter, digit or whitespace
    - Collapse whitespace runs to a single space and trim
    """
    if not isinstance(desc, str):
        return ""
    desc = desc.lower()
    desc = "".join(ch for ch in desc if ch.isalnum() or ch.isspace())
    desc = _WHITESPACE.sub(" ", desc)
    return desc.strip()


def parse_record_date(value: object) -> date | None:
    """Return the calendar date of a record, or None if it can't be read.

    Accepts date/datetime objects and ISO strings (``2024-01-15`` or a full
    ISO timestamp, whose time-of-day is discarded).
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def transaction_hash(record: TransactionRecord) -> str:
    """Stable SHA256 over date, amount in cents, normalized description, type.

    Public helper for callers that keep their own transaction index; the
    batch deduplicator does not use it. Exact matches (score 100) always
    share a hash, so a caller can look up exact-duplicate candidates
    before scoring. Amounts are compared in whole cents here, so two
    records can share a hash and still score below 100.
    """
    parsed = parse_record_date(record.date)
    key = {
        "date": parsed.isoformat() if parsed else str(record.date),
        "amount": int(round(float(record.amount) * 100)),
        "description": normalize_description(record.description),
        "type": record.type,
    }
    payload = json.dumps(key, sort_keys=True)
    return hashlib.sha256(payload.encode()).hexdigest()
