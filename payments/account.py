"""
account.py - Client accounts and the account registry

Account holds one client's balances and implements the transaction state
machine. AccountRegistry maps client ids to accounts and creates them on
first reference.

Transition rules (orig = ledger record store entry for tx.tx_id):

    DEPOSIT     amount present                -> total += amt, available += amt
    WITHDRAWAL  amount present, amt < avail   -> available -= amt, total -= amt
    DISPUTE     orig has an amount            -> available -= a, held += a
    RESOLVE     orig has an amount            -> available += a, held -= a
    CHARGEBACK  orig has an amount            -> held -= a, total -= a, locked

Anything else leaves the account unchanged, including a transition whose
result would not fit the Decimal context. A locked account is terminal.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterator, List, Optional, Tuple

from .core import (
    TransactionKind, TransactionRecord, ApplyResult, AccountSnapshot,
    ZERO, round_amount,
)
from .ledger_store import LedgerRecordStore


@dataclass(slots=True)
class Account:
    """
    Mutable balance state of a single client.

    Attributes:
        client_id: Client identifier.
        available: Funds available for withdrawal.
        held: Funds held by disputes.
        total: Total funds.
        locked: Set by a chargeback; no balance changes afterwards.

    Every transition moves the same delta through total and available +
    held, so total == available + held is kept but never checked. Disputes
    are not deduplicated and held or available may go negative.
    """
    client_id: int
    available: Decimal = field(default=ZERO)
    held: Decimal = field(default=ZERO)
    total: Decimal = field(default=ZERO)
    locked: bool = False

    def apply(self, tx: TransactionRecord, store: LedgerRecordStore) -> ApplyResult:
        """
        Apply one transaction record to this account.

        Args:
            tx: The incoming record
            store: Ledger record store used to resolve dispute references

        Returns:
            ApplyResult.APPLIED if balances changed
            ApplyResult.IGNORED if a business rule was not met
            ApplyResult.LOCKED if the account was already locked
        """
        result, _ = self.apply_with_reason(tx, store)
        return result

    def apply_with_reason(
        self,
        tx: TransactionRecord,
        store: LedgerRecordStore,
    ) -> Tuple[ApplyResult, str]:
        """
        Apply a record and also report why it was not applied.

        Returns:
            Tuple of (result, reason). reason is "" when result is APPLIED.
        """
        if self.locked:
            return ApplyResult.LOCKED, "account is locked"
        try:
            return self._transition(tx, store)
        except ValueError as e:
            return ApplyResult.IGNORED, str(e)

    def _transition(
        self,
        tx: TransactionRecord,
        store: LedgerRecordStore,
    ) -> Tuple[ApplyResult, str]:
        if tx.kind is TransactionKind.DEPOSIT:
            return self._deposit(tx.amount)
        if tx.kind is TransactionKind.WITHDRAWAL:
            return self._withdraw(tx.amount)

        orig = store.lookup(tx.tx_id)
        if orig is None:
            return ApplyResult.IGNORED, f"tx {tx.tx_id} not found"
        if orig.amount is None:
            return ApplyResult.IGNORED, f"tx {tx.tx_id} has no amount"

        if tx.kind is TransactionKind.DISPUTE:
            self._move(available=-orig.amount, held=orig.amount)
        elif tx.kind is TransactionKind.RESOLVE:
            self._move(available=orig.amount, held=-orig.amount)
        else:
            self._move(held=-orig.amount, total=-orig.amount)
            self.locked = True
        return ApplyResult.APPLIED, ""

    def _deposit(self, amount: Optional[Decimal]) -> Tuple[ApplyResult, str]:
        if amount is None:
            return ApplyResult.IGNORED, "deposit has no amount"
        self._move(available=amount, total=amount)
        return ApplyResult.APPLIED, ""

    def _withdraw(self, amount: Optional[Decimal]) -> Tuple[ApplyResult, str]:
        if amount is None:
            return ApplyResult.IGNORED, "withdrawal has no amount"
        # Strict: withdrawing exactly the available balance is refused.
        if not amount < self.available:
            return ApplyResult.IGNORED, f"nsf: {amount} >= available {self.available}"
        self._move(available=-amount, total=-amount)
        return ApplyResult.APPLIED, ""

    def _move(self, available: Decimal = ZERO, held: Decimal = ZERO, total: Decimal = ZERO) -> None:
        # All three balances change or none do.
        try:
            new_available = round_amount(self.available + available)
            new_held = round_amount(self.held + held)
            new_total = round_amount(self.total + total)
        except ValueError:
            raise ValueError("balance out of range") from None
        self.available, self.held, self.total = new_available, new_held, new_total

    def snapshot(self) -> AccountSnapshot:
        """Return an immutable copy of the current state."""
        return AccountSnapshot(
            client_id=self.client_id,
            available=self.available,
            held=self.held,
            total=self.total,
            locked=self.locked,
        )


class AccountRegistry:
    """
    Mapping from client id to Account.

    Accounts are created with zero balances the first time a client id is
    referenced and are never deleted.
    """

    def __init__(self):
        self._accounts: Dict[int, Account] = {}

    def get_or_create(self, client_id: int) -> Account:
        """Return the account for client_id, creating a zeroed one if unseen."""
        account = self._accounts.get(client_id)
        if account is None:
            account = Account(client_id)
            self._accounts[client_id] = account
        return account

    def get(self, client_id: int) -> Optional[Account]:
        """Return the account for client_id, or None if never referenced."""
        return self._accounts.get(client_id)

    def snapshot(self) -> List[AccountSnapshot]:
        """
        Snapshot every known account for reporting.

        Order carries no meaning; snapshots are sorted by client id so that
        output is reproducible.
        """
        return [self._accounts[cid].snapshot() for cid in sorted(self._accounts)]

    def find_imbalances(self) -> List[AccountSnapshot]:
        """
        List accounts whose total differs from available + held.

        Read-only diagnostic. Nothing is reconciled.
        """
        return [
            snap for snap in self.snapshot()
            if snap.total != snap.available + snap.held
        ]

    def __contains__(self, client_id: object) -> bool:
        return client_id in self._accounts

    def __len__(self) -> int:
        return len(self._accounts)

    def __iter__(self) -> Iterator[Account]:
        return iter(self._accounts.values())
