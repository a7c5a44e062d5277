"""Dataclass models for the duplicate matching engine.

Records are frozen: the engine only ever holds references to the caller's
objects, so results can be compared against inputs by identity.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date as date_type
from enum import Enum


class DedupMode(Enum):
    """Sensitivity of external duplicate detection.

    SMART only blocks near-exact matches; STANDARD and STRICT block
    anything at or above the high-confidence threshold.
    """
    SMART = "smart"
    STANDARD = "standard"
    STRICT = "strict"

    @classmethod
    def parse(cls, value: DedupMode | str) -> DedupMode:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise ValueError(f"Unknown dedup mode '{value}' (expected one of: {valid})") from None


@dataclass(frozen=True, eq=False)
class TransactionRecord:
    """A parsed transaction handed to the engine.

    ``id`` is carried for reporting only and never takes part in matching.
    Equality is identity so two identical-looking rows stay distinct.
    """
    date: str | date_type | None
    amount: float
    description: str | None = ""
    type: str | None = None
    category: str | None = None
    id: str | None = None


@dataclass
class MatchResult:
    """Best single counterpart for a candidate."""
    confidence: int
    match: TransactionRecord | None = None


@dataclass
class DuplicateCheckResult:
    """Bucketed comparison of one candidate against an existing set."""
    is_duplicate: bool
    match_count: int
    duplicate_matches: list[TransactionRecord] = field(default_factory=list)
    similar_matches: list[TransactionRecord] = field(default_factory=list)
    best_confidence: int = 0


@dataclass
class DuplicatePair:
    """Candidate paired with the existing record it duplicates."""
    candidate: TransactionRecord
    existing: TransactionRecord
    confidence: int


@dataclass
class InternalDuplicate:
    """Candidate that repeats an earlier candidate of the same batch."""
    candidate: TransactionRecord
    duplicate_of: TransactionRecord
    confidence: int


@dataclass
class ImportSummary:
    """Outcome of one batch run. Built fresh per call, never persisted."""
    total_transactions: int
    new_transactions: int
    duplicate_transactions: int
    skipped_transactions: int
    imported_transactions: list[TransactionRecord] = field(default_factory=list)
    duplicates: list[TransactionRecord] = field(default_factory=list)
    duplicate_pairs: list[DuplicatePair] = field(default_factory=list)
    internal_duplicates: list[InternalDuplicate] = field(default_factory=list)
    suppressed_pairs: list[DuplicatePair] = field(default_factory=list)

    @property
    def has_blocking_duplicates(self) -> bool:
        return self.duplicate_transactions > 0
