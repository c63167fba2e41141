"""
Core types and pure functions for the payments replay system.

This module provides the foundational data structures for the replay engine:
1. Constants: amount precision, identifier ranges, CSV field names
2. Enums: TransactionKind, ApplyResult
3. Exceptions: PaymentsError and RecordParseError
4. Amount helpers: round_amount, parse_amount, format_amount
5. Immutable data structures: TransactionRecord, AccountSnapshot

Nothing in this module holds state. Accounts, the ledger record store and the
replay engine live in their own modules and build on these types.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation, getcontext
from enum import Enum
from typing import Any, Optional, Tuple


# ============================================================================
# DECIMAL CONTEXT CONFIGURATION
# ============================================================================
#
# Amounts are Decimals quantized to AMOUNT_DECIMAL_PLACES. The context only
# needs enough precision for intermediate sums of such values.
#
# PRECONDITION: No other code should modify the global Decimal context.
#
_PAYMENTS_DECIMAL_CONTEXT = getcontext()
_PAYMENTS_DECIMAL_CONTEXT.prec = 50


# ============================================================================
# CONSTANTS
# ============================================================================

# Every amount is rounded to this many fractional digits.
AMOUNT_DECIMAL_PLACES = 4

# Ties round away from zero on deposits and withdrawals alike.
AMOUNT_ROUNDING = ROUND_HALF_UP

AMOUNT_QUANTUM = Decimal(10) ** -AMOUNT_DECIMAL_PLACES

ZERO = Decimal("0").quantize(AMOUNT_QUANTUM)

# Client ids are unsigned 16-bit, transaction ids unsigned 32-bit.
MAX_CLIENT_ID = 0xFFFF
MAX_TX_ID = 0xFFFFFFFF

# Input and output column names.
CSV_FIELDS = ("type", "client", "tx", "amount")
OUTPUT_FIELDS = ("client", "available", "held", "total", "locked")


# ============================================================================
# ENUMS
# ============================================================================

class TransactionKind(Enum):
    """
    Type of a transaction record.

    DEPOSIT and WITHDRAWAL carry an amount and are kept in the ledger record
    store. DISPUTE, RESOLVE and CHARGEBACK carry no amount of their own; they
    reference an earlier deposit or withdrawal by tx id.
    """
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @classmethod
    def parse(cls, token: str) -> TransactionKind:
        """
        Parse a type token such as "deposit" or " Chargeback ".

        Raises:
            ValueError: If the token names no known kind.
        """
        try:
            return cls(token.strip().lower())
        except ValueError:
            raise ValueError(f"unknown transaction type {token!r}") from None

    @property
    def is_recorded(self) -> bool:
        """True for kinds the ledger record store keeps (deposit, withdrawal)."""
        return self in (TransactionKind.DEPOSIT, TransactionKind.WITHDRAWAL)


class ApplyResult(Enum):
    """
    Outcome of applying a transaction record to an account.

    APPLIED: Balances (and possibly the lock) were updated.
    IGNORED: A business rule was not met; the account is unchanged.
    LOCKED: The account was already locked; the account is unchanged.
    """
    APPLIED = "applied"
    IGNORED = "ignored"
    LOCKED = "locked"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class PaymentsError(Exception):
    """Base exception for all payments-related errors."""
    pass


class RecordParseError(PaymentsError):
    """
    Raised when an input row cannot be turned into a TransactionRecord.

    This is the only fatal condition of a replay: it aborts the run.
    """

    def __init__(self, message: str, line_number: Optional[int] = None, row: Any = None):
        self.line_number = line_number
        self.row = row
        if line_number is not None:
            message = f"line {line_number}: {message}"
        if row is not None:
            message = f"{message} (row: {row!r})"
        super().__init__(message)


# ============================================================================
# AMOUNTS
# ============================================================================

def round_amount(value: Any) -> Decimal:
    """
    Round a value to AMOUNT_DECIMAL_PLACES using quantize.

    Accepts Decimal, int, float or str. Floats are converted through str()
    so that 10.1 becomes Decimal("10.1") rather than its binary expansion.

    Raises:
        ValueError: If the value is not a finite number, or has more digits
            than the Decimal context can hold at AMOUNT_DECIMAL_PLACES.
    """
    if isinstance(value, bool):
        raise ValueError(f"amount must be numeric, got {value!r}")
    if not isinstance(value, Decimal):
        try:
            value = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError(f"amount is not a number: {value!r}") from None
    if value.is_nan() or value.is_infinite():
        raise ValueError(f"amount must be finite, got {value}")
    try:
        return value.quantize(AMOUNT_QUANTUM, rounding=AMOUNT_ROUNDING)
    except InvalidOperation:
        raise ValueError(f"amount out of range: {value}") from None


def parse_amount(text: Optional[str]) -> Optional[Decimal]:
    """
    Parse the amount column of an input row.

    An empty or missing column yields None. So does text that is not a
    finite number or is too large to hold: an unreadable amount is an absent
    amount, and the state machine ignores deposits and withdrawals without one.
    Digit separators ("1_000") are not part of the amount grammar.
    """
    if text is None:
        return None
    text = text.strip()
    if not text or "_" in text:
        return None
    try:
        return round_amount(text)
    except ValueError:
        return None


def format_amount(value: Decimal) -> str:
    """Format an amount with exactly AMOUNT_DECIMAL_PLACES fractional digits."""
    return format(round_amount(value), "f")


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

def _check_id(name: str, value: int, maximum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be int, got {type(value).__name__}")
    if not 0 <= value <= maximum:
        raise ValueError(f"{name} {value} outside 0..{maximum}")


@dataclass(frozen=True, slots=True)
class TransactionRecord:
    """
    One row of the transaction log.

    Attributes:
        kind: The transaction type.
        client_id: Client the transaction targets (unsigned 16-bit).
        tx_id: Transaction identifier (unsigned 32-bit). Dispute-family
               records use it to reference the original deposit/withdrawal.
        amount: Amount for deposits and withdrawals, None otherwise or when
                the input left it out.

    This class is immutable (frozen=True) and memory-optimized (slots=True).
    The amount is rounded in __post_init__, so every record observed by the
    engine already carries a rounded amount.
    """
    kind: TransactionKind
    client_id: int
    tx_id: int
    amount: Optional[Decimal] = None

    def __post_init__(self):
        if not isinstance(self.kind, TransactionKind):
            raise ValueError(f"kind must be TransactionKind, got {type(self.kind).__name__}")
        _check_id("client_id", self.client_id, MAX_CLIENT_ID)
        _check_id("tx_id", self.tx_id, MAX_TX_ID)
        if self.amount is not None:
            object.__setattr__(self, "amount", round_amount(self.amount))

    def __repr__(self) -> str:
        amount = f" {self.amount}" if self.amount is not None else ""
        return f"TransactionRecord({self.kind.value} client={self.client_id} tx={self.tx_id}{amount})"


@dataclass(frozen=True, slots=True)
class AccountSnapshot:
    """
    Immutable copy of an account's state for reporting.

    Attributes:
        client_id: Client identifier.
        available: Funds available for withdrawal.
        held: Funds held by open disputes.
        total: Total funds.
        locked: Whether a chargeback froze the account.
    """
    client_id: int
    available: Decimal
    held: Decimal
    total: Decimal
    locked: bool

    def as_row(self) -> Tuple[str, str, str, str, str]:
        """Render the snapshot as an output CSV row (see OUTPUT_FIELDS)."""
        return (
            str(self.client_id),
            format_amount(self.available),
            format_amount(self.held),
            format_amount(self.total),
            "true" if self.locked else "false",
        )
