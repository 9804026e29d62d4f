"""
cancellation.py - Two ways to stop a transfer

Cooperative:
    CancellationToken is a request. The transfer checks it at its
    checkpoints, all of which come before the debit, and raises
    TransferCancelled there. The lock is released by normal unwinding and
    the pair is untouched. A request that arrives after the debit is too
    late and the transfer completes.

Forceful:
    terminate_thread() raises an exception inside another thread at whatever
    bytecode it happens to be executing, with no participation from the
    transfer. Context managers still unwind, so the lock is released, but a
    thread stopped between the debit and the credit leaves the pair torn.
    The next transfer on that pair raises InvariantViolation.

TransferThread runs one transfer in a thread of its own, signals when the
source account has been debited, and can be stopped either way.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Optional, Type
import ctypes
import threading

from .core import Balances, ForcedTermination, TransferCancelled

if TYPE_CHECKING:
    from .coordinator import TransferCoordinator


# ============================================================================
# COOPERATIVE
# ============================================================================

class CancellationToken:
    """
    A one-shot cancellation request shared between a requester and a transfer.

    Once cancelled, a token stays cancelled.
    """

    def __init__(self):
        self._event = threading.Event()
        self._reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: Optional[str] = None) -> None:
        """Request cancellation. Later calls keep the first reason."""
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        """
        Checkpoint.

        Raises:
            TransferCancelled: If cancel() has been called
        """
        if self._event.is_set():
            raise TransferCancelled(self._reason)

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "active"
        return f"CancellationToken({state})"


# ============================================================================
# FORCEFUL
# ============================================================================

def terminate_thread(
    thread: threading.Thread,
    exc_type: Type[BaseException] = ForcedTermination,
) -> None:
    """
    Raise exc_type asynchronously inside `thread`.

    The exception is delivered the next time the target thread executes
    Python bytecode. A thread blocked inside a single long C call (such as
    one time.sleep) only sees it when that call returns.

    Raises:
        TypeError: If exc_type is not an exception class
        ValueError: If the thread is not running
        SystemError: If the interpreter reports more than one affected thread
    """
    if not (isinstance(exc_type, type) and issubclass(exc_type, BaseException)):
        raise TypeError(f"exc_type must be an exception class, got {exc_type!r}")
    if not thread.is_alive() or thread.ident is None:
        raise ValueError(f"Thread {thread.name} is not running")

    ident = ctypes.c_ulong(thread.ident)
    affected = ctypes.pythonapi.PyThreadState_SetAsyncExc(ident, ctypes.py_object(exc_type))
    if affected == 0:
        raise ValueError(f"Thread {thread.name} is not running")
    if affected > 1:
        ctypes.pythonapi.PyThreadState_SetAsyncExc(ident, None)
        raise SystemError(f"Terminating {thread.name} affected {affected} threads")


# ============================================================================
# HARNESS
# ============================================================================

class TransferThread(threading.Thread):
    """
    Runs a single coordinator.transfer() and records how it ended.

    Exactly one of `result` and `error` is set once the thread has finished,
    unless it was terminated before reaching the transfer at all.

    Example:
        worker = TransferThread(pair, 1, 100, 10000)
        worker.start()
        worker.wait_until_debited(timeout=5)
        worker.terminate()
        worker.join()
        # pair.total_balance() is now 100 short
    """

    def __init__(
        self,
        coordinator: TransferCoordinator,
        from_account_id: int,
        amount: int,
        delay_millis: int = 0,
        *,
        cancel_token: Optional[CancellationToken] = None,
        name: Optional[str] = None,
    ):
        super().__init__(name=name, daemon=True)
        self.coordinator = coordinator
        self.from_account_id = from_account_id
        self.amount = amount
        self.delay_millis = delay_millis
        self.cancel_token = cancel_token
        self.result: Optional[Balances] = None
        self.error: Optional[BaseException] = None
        self._debited = threading.Event()

    def run(self) -> None:
        try:
            self.result = self.coordinator.transfer(
                self.from_account_id,
                self.amount,
                self.delay_millis,
                cancel_token=self.cancel_token,
                on_debited=self._debited.set,
            )
        except BaseException as exc:
            # Recorded for the caller to inspect after join()
            self.error = exc

    @property
    def debited(self) -> bool:
        return self._debited.is_set()

    def wait_until_debited(self, timeout: Optional[float] = None) -> bool:
        """Block until the source account has been debited. False on timeout."""
        return self._debited.wait(timeout)

    def cancel(self, reason: Optional[str] = None) -> None:
        """Cooperative stop through this thread's token."""
        if self.cancel_token is None:
            raise ValueError(f"{self.name} was started without a cancel_token")
        self.cancel_token.cancel(reason)

    def terminate(self, exc_type: Type[BaseException] = ForcedTermination) -> None:
        """Forceful stop."""
        terminate_thread(self, exc_type)
