"""
conftest.py - Shared pytest fixtures for payments tests

Provides common fixtures used across unit and conformance tests:
- Empty engine, store and registry
- Funded accounts
- CSV file helpers
"""

import pytest
from decimal import Decimal

from payments import (
    ReplayEngine, LedgerRecordStore, AccountRegistry,
    TransactionRecord, TransactionKind,
)


# =============================================================================
# BASIC FIXTURES
# =============================================================================

@pytest.fixture
def engine():
    """Fresh replay engine, quiet."""
    return ReplayEngine(verbose=False)


@pytest.fixture
def store():
    """Empty ledger record store."""
    return LedgerRecordStore()


@pytest.fixture
def registry():
    """Empty account registry."""
    return AccountRegistry()


@pytest.fixture
def funded_engine(engine):
    """Engine where client 1 has deposited 100 (tx 1) and client 2 has deposited 50 (tx 2)."""
    engine.run([
        TransactionRecord(TransactionKind.DEPOSIT, 1, 1, Decimal("100")),
        TransactionRecord(TransactionKind.DEPOSIT, 2, 2, Decimal("50")),
    ])
    return engine


# =============================================================================
# CSV FIXTURES
# =============================================================================

@pytest.fixture
def write_csv(tmp_path):
    """Factory writing CSV text to a temporary file and returning its path."""
    def _write(text: str, name: str = "transactions.csv"):
        path = tmp_path / name
        path.write_text(text)
        return path
    return _write


@pytest.fixture
def sample_csv(write_csv):
    """The reference four-row example."""
    return write_csv(
        "type, client, tx, amount\n"
        "deposit, 1, 1, 100.0\n"
        "deposit, 2, 2, 50.0\n"
        "dispute, 1, 1,\n"
        "withdrawal, 1, 3, 50.0\n"
    )
