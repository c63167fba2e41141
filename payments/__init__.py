"""
payments - Transaction Replay Ledger

Replays a log of deposits, withdrawals, disputes, resolutions and chargebacks
against client accounts and reports the final balances.

Usage:
    from payments import ReplayEngine, TransactionRecord, TransactionKind
    from decimal import Decimal

    engine = ReplayEngine()
    registry = engine.run([
        TransactionRecord(TransactionKind.DEPOSIT, 1, 1, Decimal("100")),
        TransactionRecord(TransactionKind.DISPUTE, 1, 1),
    ])
    for snap in registry.snapshot():
        print(snap)

    # Or straight from a CSV file
    from payments import replay_file
    registry = replay_file("transactions.csv")
"""

__version__ = '1.0.0'

# Core types
from .core import (
    TransactionKind,
    ApplyResult,
    TransactionRecord,
    AccountSnapshot,
    PaymentsError,
    RecordParseError,
    round_amount,
    parse_amount,
    format_amount,
    AMOUNT_DECIMAL_PLACES,
    MAX_CLIENT_ID,
    MAX_TX_ID,
)

# State
from .ledger_store import LedgerRecordStore
from .account import Account, AccountRegistry

# Engine
from .engine import ReplayEngine

# CSV
from .csv_io import (
    parse_row,
    iter_records,
    read_records,
    write_accounts,
    replay_file,
)

__all__ = [
    # Core
    'TransactionKind', 'ApplyResult', 'TransactionRecord', 'AccountSnapshot',
    'PaymentsError', 'RecordParseError',
    'round_amount', 'parse_amount', 'format_amount',
    'AMOUNT_DECIMAL_PLACES', 'MAX_CLIENT_ID', 'MAX_TX_ID',
    # State
    'LedgerRecordStore', 'Account', 'AccountRegistry',
    # Engine
    'ReplayEngine',
    # CSV
    'parse_row', 'iter_records', 'read_records', 'write_accounts', 'replay_file',
]
