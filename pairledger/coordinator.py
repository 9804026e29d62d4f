"""
coordinator.py - Mutual exclusion around an AccountPair

TransferCoordinator is the only way to reach an AccountPair. It creates the
pair itself, owns the lock that guards it, and routes every read and every
transfer through that lock, so no caller can observe or mutate the pair
outside a critical section.

Each transfer writes three lines to the EventLog:

    thread <name> called transfer from <id> amount <n>     before the lock
    thread <name> acquired lock from <id> amount <n>       lock held
    thread <name> released lock from <id> amount <n>       last act under the lock

The "released" line is written only by a transfer that completes. A transfer
that raises, or whose thread is forcefully terminated, leaves no "released"
line, but its lock is still released by the `with` block unwinding.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional
import threading

from .account_pair import AccountPair
from .core import DELAY_TICK_SECONDS, Balances
from .event_log import EventLog

if TYPE_CHECKING:
    from .cancellation import CancellationToken


def _require_int(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an int, got {value!r}")


class TransferCoordinator:
    """
    Two-account store guarded by a single lock.

    At most one thread is inside the pair at any time, whether it is reading
    or transferring. Operations on one coordinator are totally ordered by
    lock acquisition.

    Example:
        pair = TransferCoordinator(10000, 4000, 6000, verbose=False)
        pair.transfer(1, 100, 0)
        # Balances(a=3900, b=6100)
        pair.total_balance()
        # 10000
    """

    def __init__(
        self,
        invariant_total: int,
        balance_a: int,
        balance_b: int,
        *,
        log: Optional[EventLog] = None,
        verbose: bool = True,
        name: Optional[str] = None,
        tick: float = DELAY_TICK_SECONDS,
    ):
        """
        Create a coordinator and the pair it guards.

        Args:
            invariant_total: Sum the balances must keep; not checked here
            balance_a: Initial balance of account 1
            balance_b: Initial balance of account 2
            log: Where transfer events go (default: EventLog on sys.stdout)
            verbose: Write transfer events at all (default: True)
            name: Label used in repr
            tick: Delay granularity passed to the AccountPair
        """
        self._pair = AccountPair(invariant_total, balance_a, balance_b, tick=tick)
        self._lock = threading.Lock()
        self.verbose = verbose
        self.name = name
        self._log = log if log is not None else (EventLog() if verbose else None)

    @property
    def invariant_total(self) -> int:
        return self._pair.invariant_total

    @property
    def log(self) -> Optional[EventLog]:
        return self._log

    def _emit(self, message: str) -> None:
        if self.verbose and self._log is not None:
            self._log.append(message)

    # ========================================================================
    # READS
    # ========================================================================

    def get_balance(self, account_id: int) -> int:
        """
        Return the balance of account 1 or 2. Blocks while a transfer holds the lock.

        Raises:
            InvalidAccountId: For any other account id
        """
        with self._lock:
            return self._pair.get_balance(account_id)

    def total_balance(self) -> int:
        """Return balance_a + balance_b. Blocks while a transfer holds the lock."""
        with self._lock:
            return self._pair.total_balance()

    def balances(self) -> Balances:
        """Both balances, read under one acquisition."""
        with self._lock:
            return self._pair.balances()

    def verify_invariant(self) -> Dict[str, Any]:
        """
        Check the conservation invariant without raising.

        Returns:
            Dict with keys:
            - 'valid': bool - True if the balances sum to invariant_total
            - 'total': int - Current balance_a + balance_b
            - 'expected': int - invariant_total
            - 'difference': int - total - expected

        Example:
            result = pair.verify_invariant()
            assert result['valid'], f"Torn pair: {result}"
        """
        with self._lock:
            total = self._pair.total_balance()
        expected = self._pair.invariant_total
        return {
            'valid': total == expected,
            'total': total,
            'expected': expected,
            'difference': total - expected,
        }

    # ========================================================================
    # TRANSFER (Mutating)
    # ========================================================================

    def transfer(
        self,
        from_account_id: int,
        amount: int,
        delay_millis: int = 0,
        *,
        cancel_token: Optional[CancellationToken] = None,
        on_debited: Optional[Callable[[], None]] = None,
    ) -> Balances:
        """
        Move `amount` out of from_account_id into the other account.

        Blocks until the lock is available. A cancel_token is checked before
        the lock is requested and again right after it is acquired; both
        checkpoints come before any balance changes. Cancellation requested
        after the debit is not honored.

        Args:
            from_account_id: Source account, 1 or 2
            amount: Quantity to move; a negative amount moves value the other way
            delay_millis: Pause between debit and credit, in milliseconds;
                zero or negative means no pause
            cancel_token: Cooperative cancellation request to honor
            on_debited: Called under the lock right after the debit

        Returns:
            Balances after the transfer

        Raises:
            ValueError: If amount or delay_millis is not an int
            InvalidAccountId: If from_account_id is not 1 or 2
            InvariantViolation: If the pair was already torn
            TransferCancelled: If cancel_token was cancelled at a checkpoint
        """
        _require_int('amount', amount)
        _require_int('delay_millis', delay_millis)

        who = threading.current_thread().name
        suffix = f"from {from_account_id} amount {amount}"
        self._emit(f"thread {who} called transfer {suffix}")
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        with self._lock:
            self._emit(f"thread {who} acquired lock {suffix}")
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            result = self._pair.transfer(
                from_account_id, amount, delay_millis, on_debited=on_debited
            )
            self._emit(f"thread {who} released lock {suffix}")
        return result

    def __repr__(self) -> str:
        label = f"{self.name!r}, " if self.name else ""
        return f"TransferCoordinator({label}invariant_total={self.invariant_total})"


# ============================================================================
# MODULE-LEVEL API
# ============================================================================

def open_pair(
    balance_a: int,
    balance_b: int,
    invariant_total: Optional[int] = None,
    **kwargs: Any,
) -> TransferCoordinator:
    """
    Create a coordinated account pair.

    invariant_total defaults to balance_a + balance_b. Pass it explicitly to
    build a pair whose recorded total disagrees with its balances.
    """
    if invariant_total is None:
        invariant_total = balance_a + balance_b
    return TransferCoordinator(invariant_total, balance_a, balance_b, **kwargs)


def get_balance(pair: TransferCoordinator, account_id: int) -> int:
    return pair.get_balance(account_id)


def total_balance(pair: TransferCoordinator) -> int:
    return pair.total_balance()


def transfer(
    pair: TransferCoordinator,
    from_account_id: int,
    amount: int,
    delay_millis: int = 0,
    **kwargs: Any,
) -> Balances:
    return pair.transfer(from_account_id, amount, delay_millis, **kwargs)
