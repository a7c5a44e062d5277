"""Shared test fixtures."""

from pathlib import Path

import pytest

from txndedup.matching.models import TransactionRecord

# Test fixture config directory with synthetic data
FIXTURE_CONFIG_DIR = Path(__file__).parent / "fixtures" / "config"


def make_record(**kw) -> TransactionRecord:
    defaults = dict(
        date="2024-01-15", amount=1000.0,
        description="Grocery Store Purchase",
        type="expense", category="groceries",
    )
    defaults.update(kw)
    return TransactionRecord(**defaults)


@pytest.fixture
def grocery():
    return make_record(id="existing-1")
