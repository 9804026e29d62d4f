"""
pairledger - Two-Account Ledger Under a Lock

A shared in-memory store of two linked balances whose sum must stay constant.
Every read and transfer runs under one lock per pair. The package shows that
correct locking is not enough: a transfer stopped forcefully between its
debit and its credit leaves the pair torn for good.

Usage:
    from pairledger import open_pair, EventLog, TransferThread

    pair = open_pair(4000, 6000, log=EventLog())
    pair.transfer(1, 100, 0)          # Balances(a=3900, b=6100)
    pair.total_balance()              # 10000

    worker = TransferThread(pair, 1, 100, 10000)
    worker.start()
    worker.wait_until_debited(timeout=5)
    worker.terminate()
    worker.join()
    pair.total_balance()              # 9900
    pair.transfer(1, 100, 0)          # raises InvariantViolation
"""

# Core types
from .core import (
    ACCOUNT_A,
    ACCOUNT_B,
    ACCOUNT_IDS,
    DELAY_TICK_SECONDS,
    Balances,
    AccountPairError,
    InvalidAccountId,
    InvariantViolation,
    TransferCancelled,
    ForcedTermination,
    validate_account_id,
    counterpart,
)

# State and locking
from .account_pair import AccountPair, interruptible_sleep
from .coordinator import (
    TransferCoordinator,
    open_pair,
    get_balance,
    total_balance,
    transfer,
)

# Logging
from .event_log import EventLog

# Cancellation
from .cancellation import (
    CancellationToken,
    terminate_thread,
    TransferThread,
)

__all__ = [
    # Core
    'ACCOUNT_A', 'ACCOUNT_B', 'ACCOUNT_IDS', 'DELAY_TICK_SECONDS',
    'Balances',
    'AccountPairError', 'InvalidAccountId', 'InvariantViolation',
    'TransferCancelled', 'ForcedTermination',
    'validate_account_id', 'counterpart',
    # State and locking
    'AccountPair', 'interruptible_sleep',
    'TransferCoordinator', 'open_pair', 'get_balance', 'total_balance', 'transfer',
    # Logging
    'EventLog',
    # Cancellation
    'CancellationToken', 'terminate_thread', 'TransferThread',
]

__version__ = '1.0.0'
