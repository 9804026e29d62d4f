"""
Core types for the two-account ledger.

This module provides the pieces every other module builds on:
1. Constants: account identifiers and the delay granularity
2. Exceptions: AccountPairError and the domain-specific error types
3. Immutable data structures: Balances
4. Account-id helpers: validation and counterpart lookup

Nothing in this module holds a lock or mutates shared state.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


# ============================================================================
# CONSTANTS
# ============================================================================

# The only two account identifiers a pair understands.
ACCOUNT_A = 1
ACCOUNT_B = 2
ACCOUNT_IDS: Tuple[int, int] = (ACCOUNT_A, ACCOUNT_B)

# Granularity of the transfer delay. The delay is slept in slices of at most
# this many seconds, so an asynchronously injected exception is observed by
# the sleeping thread within one tick.
DELAY_TICK_SECONDS = 0.01


# ============================================================================
# EXCEPTIONS
# ============================================================================

class AccountPairError(Exception):
    """Base exception for all account-pair errors."""
    pass


class InvalidAccountId(AccountPairError, ValueError):
    """Raised when an account identifier outside {1, 2} is supplied."""

    def __init__(self, account_id: Any):
        self.account_id = account_id
        super().__init__(
            f"Invalid account id {account_id!r} - expecting one of {ACCOUNT_IDS}"
        )


class InvariantViolation(AccountPairError):
    """
    Raised at the start of a transfer when the balances no longer sum to the
    recorded invariant total.

    The pair should be treated as permanently tainted: nothing repairs it.

    Attributes:
        balance_a: Balance of account 1 when the check ran
        balance_b: Balance of account 2 when the check ran
        expected: The invariant total recorded at construction
        observed: balance_a + balance_b
    """

    def __init__(self, balance_a: int, balance_b: int, expected: int):
        self.balance_a = balance_a
        self.balance_b = balance_b
        self.expected = expected
        self.observed = balance_a + balance_b
        super().__init__(
            f"Found wrong initial total balance {self.observed} - expecting {expected}"
        )

    @property
    def data(self) -> Dict[str, int]:
        """Structured diagnostic payload."""
        return {
            'balance_a': self.balance_a,
            'balance_b': self.balance_b,
            'expected': self.expected,
        }


class TransferCancelled(AccountPairError):
    """Raised when a transfer observes a cooperative cancellation request."""

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason
        message = "Transfer cancelled"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ForcedTermination(BaseException):
    """
    Injected into a running thread to stop it from the outside.

    Derives from BaseException so that `except Exception` blocks between the
    injection point and the top of the thread do not absorb it.
    """
    pass


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class Balances:
    """
    Snapshot of both account balances.

    Returned by a completed transfer and by TransferCoordinator.balances().
    """
    balance_a: int
    balance_b: int

    @property
    def total(self) -> int:
        return self.balance_a + self.balance_b

    def get(self, account_id: int) -> int:
        if account_id == ACCOUNT_A:
            return self.balance_a
        if account_id == ACCOUNT_B:
            return self.balance_b
        raise InvalidAccountId(account_id)

    def as_dict(self) -> Dict[str, int]:
        return {'balance_a': self.balance_a, 'balance_b': self.balance_b}

    def __repr__(self) -> str:
        return f"Balances(a={self.balance_a}, b={self.balance_b})"


# ============================================================================
# ACCOUNT-ID HELPERS
# ============================================================================

def validate_account_id(account_id: Any) -> int:
    """
    Return account_id unchanged if it names one of the two accounts.

    Only ints are accepted; bool is rejected even though it is an int subclass.

    Raises:
        InvalidAccountId: If account_id is not 1 or 2
    """
    if (isinstance(account_id, bool) or not isinstance(account_id, int)
            or account_id not in ACCOUNT_IDS):
        raise InvalidAccountId(account_id)
    return account_id


def counterpart(account_id: int) -> int:
    """Return the other account of the pair."""
    return ACCOUNT_B if validate_account_id(account_id) == ACCOUNT_A else ACCOUNT_A
