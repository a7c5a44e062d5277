"""Plain-text rendering of an ImportSummary."""

from __future__ import annotations

from txndedup.matching.models import ImportSummary, TransactionRecord


def format_summary(summary: ImportSummary, currency: str = "₹") -> str:
    """Render counts, then one line per surfaced and internal duplicate."""
    lines = [
        "Import Summary:",
        f"  Total transactions in file:      {summary.total_transactions}",
        f"  New transactions imported:       {summary.new_transactions}",
        f"  Duplicate transactions skipped:  {summary.duplicate_transactions}",
        f"  Internal duplicates removed:     {summary.skipped_transactions}",
    ]

    if summary.duplicate_pairs:
        lines.append("")
        lines.append("Duplicate Transactions Found:")
        for i, pair in enumerate(summary.duplicate_pairs, start=1):
            lines.append(
                f"  {i}. {_describe(pair.candidate, currency)}"
                f" matches {_describe(pair.existing, currency)}"
                f" ({pair.confidence}% match)"
            )
    elif summary.duplicates:
        lines.append("")
        lines.append("Duplicate Transactions Found:")
        for i, record in enumerate(summary.duplicates, start=1):
            lines.append(f"  {i}. {_describe(record, currency)}")

    if summary.internal_duplicates:
        lines.append("")
        lines.append("Internal Duplicates:")
        for i, dup in enumerate(summary.internal_duplicates, start=1):
            lines.append(
                f"  {i}. {_describe(dup.candidate, currency)}"
                f" repeats {_describe(dup.duplicate_of, currency)}"
                f" ({dup.confidence}% match)"
            )

    return "\n".join(lines)


def _describe(record: TransactionRecord, currency: str) -> str:
    description = record.description if isinstance(record.description, str) else ""
    return f"{record.date} - {description} - {currency}{record.amount}"
