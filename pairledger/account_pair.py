"""
account_pair.py - Two linked balances with a conservation invariant

AccountPair holds the state: two integer balances and the total they must
always add up to. It performs the invariant check and the transfer itself,
but it takes no lock. The only code that calls AccountPair.transfer is
TransferCoordinator, which holds the pair's lock for the whole call and
never hands out a reference to the pair.

A transfer is deliberately not atomic:

    check invariant -> debit source -> delay -> credit destination

A thread stopped during the delay leaves the source debited and the
destination not yet credited. Nothing rolls that back; the next transfer
detects it and raises InvariantViolation.
"""

from __future__ import annotations
from typing import Callable, Optional
import time

from .core import (
    ACCOUNT_A,
    ACCOUNT_B,
    DELAY_TICK_SECONDS,
    Balances,
    InvariantViolation,
    counterpart,
    validate_account_id,
)


def interruptible_sleep(seconds: float, tick: float = DELAY_TICK_SECONDS) -> None:
    """
    Sleep for `seconds`, in slices of at most `tick` seconds.

    time.sleep() is a single C call, and an exception injected into the
    thread with PyThreadState_SetAsyncExc only surfaces once the interpreter
    is back in Python bytecode. Slicing the sleep bounds that latency to one
    tick.
    """
    if tick <= 0:
        raise ValueError(f"tick must be positive, got {tick}")
    deadline = time.monotonic() + seconds
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return
        time.sleep(min(tick, remaining))


class AccountPair:
    """
    Two balances whose sum must equal invariant_total whenever no transfer
    is in progress.

    Not thread-safe. Use TransferCoordinator.
    """

    __slots__ = ('_invariant_total', '_balance_a', '_balance_b', '_tick')

    def __init__(
        self,
        invariant_total: int,
        balance_a: int,
        balance_b: int,
        tick: float = DELAY_TICK_SECONDS,
    ):
        """
        Create a pair.

        invariant_total is taken as given and is not checked against the
        balances here; a mismatch surfaces on the first transfer.
        """
        for name, value in (('invariant_total', invariant_total),
                            ('balance_a', balance_a),
                            ('balance_b', balance_b)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an int, got {value!r}")
        self._invariant_total = invariant_total
        self._balance_a = balance_a
        self._balance_b = balance_b
        self._tick = tick

    @property
    def invariant_total(self) -> int:
        return self._invariant_total

    def get_balance(self, account_id: int) -> int:
        """
        Return the balance of account 1 or 2.

        Raises:
            InvalidAccountId: For any other account id
        """
        if validate_account_id(account_id) == ACCOUNT_A:
            return self._balance_a
        return self._balance_b

    def total_balance(self) -> int:
        return self._balance_a + self._balance_b

    def balances(self) -> Balances:
        return Balances(self._balance_a, self._balance_b)

    def transfer(
        self,
        from_account_id: int,
        amount: int,
        delay_millis: int = 0,
        *,
        on_debited: Optional[Callable[[], None]] = None,
    ) -> Balances:
        """
        Move `amount` from one account to the other.

        Steps:
        1. Check that the balances still sum to invariant_total.
        2. Debit the source account.
        3. Sleep delay_millis (when positive). on_debited, if given, runs
           between the debit and the sleep.
        4. Credit the other account.

        Args:
            from_account_id: Source account, 1 or 2
            amount: Quantity to move
            delay_millis: Pause between debit and credit, in milliseconds
            on_debited: Called with no arguments right after the debit

        Returns:
            Balances after the credit

        Raises:
            InvariantViolation: If step 1 fails; nothing is mutated
            InvalidAccountId: If from_account_id is not 1 or 2; nothing is mutated
        """
        observed = self.total_balance()
        if observed != self._invariant_total:
            raise InvariantViolation(self._balance_a, self._balance_b, self._invariant_total)

        if validate_account_id(from_account_id) == ACCOUNT_A:
            self._balance_a -= amount
        else:
            self._balance_b -= amount

        if on_debited is not None:
            on_debited()
        if delay_millis > 0:
            interruptible_sleep(delay_millis / 1000, self._tick)

        if counterpart(from_account_id) == ACCOUNT_B:
            self._balance_b += amount
        else:
            self._balance_a += amount

        return self.balances()

    def __repr__(self) -> str:
        return (f"AccountPair(a={self._balance_a}, b={self._balance_b}, "
                f"invariant_total={self._invariant_total})")
