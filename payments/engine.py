"""
engine.py - Replay Engine

Replays an ordered sequence of transaction records against client accounts.

Processing order for each record:
1. Fetch or create the target account
2. Apply the record to the account
3. Keep the record in the ledger record store (deposits/withdrawals only)

Business-rule violations are silent no-ops. The only fatal condition is a
record that cannot be parsed: the RecordParseError raised by the record
source propagates out of run() and the partial state is left as is.
"""

from __future__ import annotations
import sys
from collections import Counter
from typing import Iterable, Optional, TextIO

from .core import TransactionRecord, ApplyResult
from .account import AccountRegistry
from .ledger_store import LedgerRecordStore


class ReplayEngine:
    """
    Single-pass replay of a transaction log.

    The engine owns its ledger record store and account registry for its
    whole lifetime. Records are processed strictly in input order.

    Thread Safety:
        Not thread-safe. Each run should use its own ReplayEngine instance.

    Example:
        engine = ReplayEngine()
        registry = engine.run(read_records(path))
        for snap in registry.snapshot():
            print(snap)
    """

    def __init__(self, verbose: bool = False, log_stream: Optional[TextIO] = None):
        """
        Create a replay engine.

        Args:
            verbose: Print a line for every ignored record (default: False)
            log_stream: Where verbose output goes (default: sys.stderr)
        """
        self._store = LedgerRecordStore()
        self._accounts = AccountRegistry()
        self.verbose = verbose
        self._log_stream = log_stream
        self.records_processed: int = 0
        self.results: Counter = Counter()

    @property
    def store(self) -> LedgerRecordStore:
        """The ledger record store built up by this engine."""
        return self._store

    @property
    def accounts(self) -> AccountRegistry:
        """The account registry built up by this engine."""
        return self._accounts

    def apply_record(self, tx: TransactionRecord) -> ApplyResult:
        """
        Process a single record.

        Args:
            tx: The next record of the log

        Returns:
            The ApplyResult reported by the target account
        """
        account = self._accounts.get_or_create(tx.client_id)
        result, reason = account.apply_with_reason(tx, self._store)
        self._store.record(tx)

        self.records_processed += 1
        self.results[result] += 1
        if self.verbose and result is not ApplyResult.APPLIED:
            self._print_ignored(tx, result, reason)
        return result

    def run(self, records: Iterable[TransactionRecord]) -> AccountRegistry:
        """
        Replay every record in order and return the account registry.

        Args:
            records: Records in input order. May be a lazy iterator; a
                     RecordParseError raised while iterating aborts the run.

        Returns:
            The AccountRegistry holding the final account states

        Raises:
            RecordParseError: If the record source hits a malformed row
        """
        for tx in records:
            self.apply_record(tx)
        return self._accounts

    def _print_ignored(self, tx: TransactionRecord, result: ApplyResult, reason: str) -> None:
        stream = self._log_stream or sys.stderr
        amount = f" of {tx.amount}" if tx.amount is not None else ""
        print(
            f"tx {tx.tx_id}, client {tx.client_id}: {tx.kind.value}{amount} {result.value}: {reason}",
            file=stream,
        )
