"""
ledger_store.py - Ledger Record Store

Keeps every deposit and withdrawal by tx id so that a later dispute, resolve
or chargeback can recover the original amount. Entries are never removed: a
dispute may arrive arbitrarily late in the stream.
"""

from __future__ import annotations
from typing import Dict, Iterator, Optional

from .core import TransactionRecord


class LedgerRecordStore:
    """
    Mapping from tx id to the deposit or withdrawal recorded under it.

    Transaction ids are assumed unique across the input. A second deposit or
    withdrawal with an id already present replaces the stored entry (last
    write wins).

    Thread Safety:
        Not thread-safe. The replay engine is its only owner.
    """

    def __init__(self):
        self._entries: Dict[int, TransactionRecord] = {}

    def record(self, tx: TransactionRecord) -> bool:
        """
        Store a transaction if it is a deposit or withdrawal.

        Args:
            tx: Transaction record to store

        Returns:
            True if the record was stored, False for dispute-family kinds
        """
        if not tx.kind.is_recorded:
            return False
        self._entries[tx.tx_id] = tx
        return True

    def lookup(self, tx_id: int) -> Optional[TransactionRecord]:
        """Return the deposit/withdrawal recorded under tx_id, or None."""
        return self._entries.get(tx_id)

    def __contains__(self, tx_id: object) -> bool:
        return tx_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TransactionRecord]:
        return iter(self._entries.values())
