"""Batch deduplication of an import against itself and an existing corpus.

Two passes, both strictly in input order:

1. Internal: each candidate is scored against the candidates accepted so
   far. A best score >= high_confidence marks it as an internal duplicate
   of that earlier record; otherwise it is accepted. A candidate can only
   duplicate something before it, never after.
2. External: each surviving candidate is matched against the corpus.
   SMART mode flags at smart_threshold (near-exact only); STANDARD and
   STRICT flag at high_confidence.

Flagged pairs are only surfaced as blocking when the mode is not SMART or
at least one pair reaches blocking_threshold. Otherwise they are merged
back into the imported list and kept in ImportSummary.suppressed_pairs.
The suppress_borderline_warnings setting turns the merge off entirely.
"""

from __future__ import annotations

import logging
import math

from txndedup.config import DedupSettings
from txndedup.matching.checker import DuplicateChecker
from txndedup.matching.models import (
    DedupMode,
    DuplicatePair,
    ImportSummary,
    InternalDuplicate,
    TransactionRecord,
)
from txndedup.matching.normalize import parse_record_date
from txndedup.matching.scorer import SimilarityScorer

logger = logging.getLogger(__name__)


class BatchDeduplicator:
    """Classify a batch of candidates as new, internal or external duplicates."""

    def __init__(self, settings: DedupSettings | None = None):
        self.settings = settings or DedupSettings()
        self.scorer = SimilarityScorer(self.settings)
        self.checker = DuplicateChecker(self.scorer)

    def deduplicate_batch(
        self,
        candidates: list[TransactionRecord],
        existing: list[TransactionRecord],
        mode: DedupMode | str | None = None,
    ) -> ImportSummary:
        """Run both passes and build an ImportSummary.

        Neither input list is modified. Candidates that can't be scored
        (non-numeric, NaN or infinite amount) skip both passes and are
        imported as new.
        """
        mode = DedupMode.parse(mode) if mode is not None else self.settings.default_mode
        corpus = [r for r in existing if _is_scorable(r, "existing")]

        survivors, internal_duplicates = self._remove_internal_duplicates(candidates)

        imported: list[TransactionRecord] = []
        duplicates: list[TransactionRecord] = []
        pairs: list[DuplicatePair] = []
        threshold = (
            self.settings.smart_threshold if mode is DedupMode.SMART
            else self.settings.high_confidence
        )

        for record, scorable in survivors:
            if not scorable:
                imported.append(record)
                continue
            result = self.checker.find_best_match(record, corpus)
            if result.match is not None and result.confidence >= threshold:
                duplicates.append(record)
                pairs.append(DuplicatePair(
                    candidate=record,
                    existing=result.match,
                    confidence=result.confidence,
                ))
            else:
                imported.append(record)

        suppressed: list[DuplicatePair] = []
        if duplicates and not self._should_surface(pairs, mode):
            logger.info(
                "Suppressing %d borderline duplicate(s) below %d%% in %s mode",
                len(pairs), self.settings.blocking_threshold, mode.value,
            )
            imported = imported + duplicates
            suppressed = pairs
            duplicates = []
            pairs = []

        summary = ImportSummary(
            total_transactions=len(candidates),
            new_transactions=len(imported),
            duplicate_transactions=len(duplicates),
            skipped_transactions=len(internal_duplicates),
            imported_transactions=imported,
            duplicates=duplicates,
            duplicate_pairs=pairs,
            internal_duplicates=internal_duplicates,
            suppressed_pairs=suppressed,
        )
        logger.info(
            "Batch dedup (%s): %d candidates, %d new, %d duplicate, %d internal",
            mode.value, summary.total_transactions, summary.new_transactions,
            summary.duplicate_transactions, summary.skipped_transactions,
        )
        return summary

    def _remove_internal_duplicates(
        self, candidates: list[TransactionRecord],
    ) -> tuple[list[tuple[TransactionRecord, bool]], list[InternalDuplicate]]:
        """Single left-to-right pass against the accepted-so-far list.

        Returns survivors in input order, each tagged with whether it can
        be scored, plus the internal duplicates found.
        """
        accepted: list[TransactionRecord] = []
        survivors: list[tuple[TransactionRecord, bool]] = []
        internal: list[InternalDuplicate] = []

        for candidate in candidates:
            if not _is_scorable(candidate, "candidate"):
                survivors.append((candidate, False))
                continue

            best_match: TransactionRecord | None = None
            best_score = 0
            for earlier in accepted:
                confidence = self.scorer.score(candidate, earlier)
                if confidence >= self.settings.high_confidence and confidence > best_score:
                    best_match = earlier
                    best_score = confidence

            if best_match is not None:
                internal.append(InternalDuplicate(
                    candidate=candidate,
                    duplicate_of=best_match,
                    confidence=best_score,
                ))
            else:
                accepted.append(candidate)
                survivors.append((candidate, True))

        return survivors, internal

    def _should_surface(self, pairs: list[DuplicatePair], mode: DedupMode) -> bool:
        if mode is not DedupMode.SMART or not self.settings.suppress_borderline_warnings:
            return True
        return any(p.confidence >= self.settings.blocking_threshold for p in pairs)


def deduplicate_batch(
    candidates: list[TransactionRecord],
    existing: list[TransactionRecord],
    mode: DedupMode | str | None = None,
    settings: DedupSettings | None = None,
) -> ImportSummary:
    """Convenience wrapper around BatchDeduplicator.deduplicate_batch."""
    return BatchDeduplicator(settings).deduplicate_batch(candidates, existing, mode)


def _is_scorable(record: TransactionRecord, role: str) -> bool:
    """Return False (and warn) when a record's amount isn't a finite number."""
    try:
        amount = float(record.amount)
    except (TypeError, ValueError):
        amount = math.nan
    if not math.isfinite(amount):
        logger.warning(
            "Skipping comparisons for %s %s: unreadable amount %r",
            role, record.id, record.amount,
        )
        return False
    if parse_record_date(record.date) is None:
        logger.warning(
            "%s %s has unreadable date %r; date proximity scores 0",
            role.capitalize(), record.id, record.date,
        )
    return True
