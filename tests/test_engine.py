"""
test_engine.py - Unit tests for engine.py

Tests:
- Record-by-record processing and lazy account creation
- The reference end-to-end example
- Fatal parse errors from a lazy record source
- Verbose diagnostics and result counters
"""

import io
import pytest
from decimal import Decimal

from payments import (
    ReplayEngine, TransactionRecord, TransactionKind, ApplyResult,
    RecordParseError, AccountRegistry,
)


def _tx(kind, client_id, tx_id, amount=None):
    return TransactionRecord(kind, client_id, tx_id, None if amount is None else Decimal(amount))


D, W = TransactionKind.DEPOSIT, TransactionKind.WITHDRAWAL
DISPUTE, RESOLVE, CHARGEBACK = TransactionKind.DISPUTE, TransactionKind.RESOLVE, TransactionKind.CHARGEBACK


class TestRun:
    """Tests for ReplayEngine.run()."""

    def test_empty_input(self, engine):
        registry = engine.run([])
        assert isinstance(registry, AccountRegistry)
        assert len(registry) == 0
        assert engine.records_processed == 0

    def test_returns_engine_registry(self, engine):
        registry = engine.run([_tx(D, 1, 1, "1")])
        assert registry is engine.accounts

    def test_reference_example(self, engine):
        registry = engine.run([
            _tx(D, 1, 1, "100.0"),
            _tx(D, 2, 2, "50.0"),
            _tx(DISPUTE, 1, 1),
            _tx(W, 1, 3, "50.0"),
        ])
        one = registry.get(1)
        two = registry.get(2)
        assert (one.available, one.held, one.total, one.locked) == (
            Decimal("0"), Decimal("100"), Decimal("100"), False
        )
        assert (two.available, two.held, two.total, two.locked) == (
            Decimal("50"), Decimal("0"), Decimal("50"), False
        )

    def test_unseen_client_created_before_apply(self, engine):
        """Even an ignored record creates the account."""
        registry = engine.run([_tx(DISPUTE, 9, 123)])
        assert 9 in registry
        assert registry.get(9).total == Decimal("0")

    def test_record_stored_after_apply(self, engine):
        """A deposit is in the store once processed and can then be disputed."""
        engine.run([_tx(D, 1, 1, "10")])
        assert engine.store.lookup(1).amount == Decimal("10")
        assert engine.apply_record(_tx(DISPUTE, 1, 1)) is ApplyResult.APPLIED
        assert engine.accounts.get(1).held == Decimal("10")

    def test_dispute_before_deposit_ignored(self, engine):
        registry = engine.run([_tx(DISPUTE, 1, 1), _tx(D, 1, 1, "10")])
        account = registry.get(1)
        assert account.held == Decimal("0")
        assert account.available == Decimal("10")

    def test_dispute_records_not_stored(self, engine):
        engine.run([_tx(D, 1, 1, "10"), _tx(DISPUTE, 1, 1), _tx(RESOLVE, 1, 2)])
        assert len(engine.store) == 1

    def test_full_dispute_cycle_locks(self, engine):
        registry = engine.run([
            _tx(D, 1, 1, "100"),
            _tx(D, 1, 2, "20"),
            _tx(DISPUTE, 1, 1),
            _tx(CHARGEBACK, 1, 1),
            _tx(D, 1, 3, "500"),
            _tx(W, 1, 4, "5"),
        ])
        account = registry.get(1)
        assert account.locked is True
        assert account.available == Decimal("20")
        assert account.held == Decimal("0")
        assert account.total == Decimal("20")

    def test_withdrawal_is_recorded_even_when_refused(self, engine):
        engine.run([_tx(W, 1, 5, "10")])
        assert 5 in engine.store

    def test_amount_rounding_consistent(self, engine):
        registry = engine.run([
            _tx(D, 1, 1, "10.00001"),
            _tx(W, 1, 2, "5.00004"),
        ])
        account = registry.get(1)
        assert account.available == Decimal("5.0000")
        assert str(account.available) == "5.0000"


class TestLargeBalances:
    def test_accumulated_balance_past_the_limit_is_ignored(self, engine):
        big = "9" * 45
        registry = engine.run([_tx(D, 1, tx_id, big) for tx_id in range(1, 30)])
        account = registry.get(1)
        assert engine.records_processed == 29
        assert engine.results[ApplyResult.APPLIED] == 10
        assert engine.results[ApplyResult.IGNORED] == 19
        assert account.total == Decimal(big) * 10
        assert account.total == account.available + account.held
        assert registry.find_imbalances() == []


class TestFatalErrors:
    def test_parse_error_propagates_and_keeps_partial_state(self, engine):
        def records():
            yield _tx(D, 1, 1, "10")
            raise RecordParseError("invalid client 'x'", line_number=3)
            yield _tx(D, 1, 2, "10")  # pragma: no cover

        with pytest.raises(RecordParseError, match="line 3"):
            engine.run(records())
        assert engine.records_processed == 1
        assert engine.accounts.get(1).total == Decimal("10")


class TestDiagnostics:
    def test_counters(self, engine):
        engine.run([
            _tx(D, 1, 1, "10"),
            _tx(W, 1, 2, "10"),
            _tx(DISPUTE, 1, 1),
            _tx(CHARGEBACK, 1, 1),
            _tx(D, 1, 3, "1"),
        ])
        assert engine.records_processed == 5
        assert engine.results[ApplyResult.APPLIED] == 3
        assert engine.results[ApplyResult.IGNORED] == 1
        assert engine.results[ApplyResult.LOCKED] == 1

    def test_verbose_reports_ignored_records(self):
        stream = io.StringIO()
        engine = ReplayEngine(verbose=True, log_stream=stream)
        engine.run([
            _tx(D, 1, 1, "10"),
            _tx(W, 1, 2, "10"),
            _tx(DISPUTE, 1, 99),
        ])
        lines = stream.getvalue().splitlines()
        assert lines == [
            "tx 2, client 1: withdrawal of 10.0000 ignored: nsf: 10.0000 >= available 10.0000",
            "tx 99, client 1: dispute ignored: tx 99 not found",
        ]

    def test_verbose_defaults_to_stderr(self, capsys):
        engine = ReplayEngine(verbose=True)
        engine.run([_tx(W, 4, 1, "1")])
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "tx 1, client 4: withdrawal of 1.0000 ignored" in captured.err

    def test_quiet_by_default(self, engine, capsys):
        engine.run([_tx(W, 4, 1, "1")])
        captured = capsys.readouterr()
        assert captured.err == ""
        assert captured.out == ""


class TestApplyRecord:
    def test_withdrawal_after_deposits(self, funded_engine):
        assert funded_engine.apply_record(_tx(W, 1, 3, "40")) is ApplyResult.APPLIED
        account = funded_engine.accounts.get(1)
        assert account.available == Decimal("60")
        assert account.total == Decimal("60")

    def test_other_clients_untouched(self, funded_engine):
        funded_engine.apply_record(_tx(DISPUTE, 1, 1))
        two = funded_engine.accounts.get(2)
        assert (two.available, two.held, two.total) == (Decimal("50"), Decimal("0"), Decimal("50"))

    def test_resolve_after_dispute(self, funded_engine):
        funded_engine.apply_record(_tx(DISPUTE, 2, 2))
        assert funded_engine.apply_record(_tx(RESOLVE, 2, 2)) is ApplyResult.APPLIED
        assert funded_engine.accounts.get(2).available == Decimal("50")
        assert funded_engine.accounts.get(2).held == Decimal("0")
