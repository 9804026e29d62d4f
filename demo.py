#!/usr/bin/env python3
"""
demo.py - Walkthrough: How a Correctly Locked Object Still Gets Torn

Each step builds on the previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1:  Sanity          - Reads and a transfer from a single thread
  2:  Detection       - A pair created with the wrong total fails its first transfer
  3:  Cooperative     - A cancelled transfer stops before touching the balances
  4:  Forceful        - A thread stopped mid-transfer leaves the pair torn
  5:  Delayed failure - The next transfer finds the damage

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
from typing import Optional
import sys

from pairledger import (
    TransferCoordinator, TransferThread, CancellationToken, EventLog,
    InvariantViolation, TransferCancelled, ForcedTermination,
    open_pair,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the walkthrough. Modify these to experiment."""
    balance_a: int = 4000
    balance_b: int = 6000
    mismatched_total: int = 9000
    amount: int = 100

    # Delays, in milliseconds
    short_delay: int = 1000
    long_delay: int = 10000

    # Seconds to wait for a worker to reach the debit
    wait_timeout: float = 5.0


CONFIG = DemoConfig()
INTERACTIVE = True


# ============================================================================
# UTILITIES
# ============================================================================

def wait_for_enter():
    """Pause for user input in interactive mode."""
    if INTERACTIVE:
        input("\n  Press Enter to continue...")


def step_header(number: int, title: str, objective: str):
    """Print a step header."""
    print("\n" + "=" * 78)
    print(f"  STEP {number}: {title}")
    print("=" * 78)
    print(f"  Objective: {objective}\n")


# ============================================================================
# STEPS
# ============================================================================

def step_01_sanity(log: EventLog, config: DemoConfig) -> TransferCoordinator:
    step_header(1, "SANITY", "Check reads and one transfer from a single thread")

    pair = open_pair(config.balance_a, config.balance_b, log=log)
    print(f"  get_balance(1) = {pair.get_balance(1)}")
    print(f"  get_balance(2) = {pair.get_balance(2)}")
    print(f"  total_balance() = {pair.total_balance()}")

    result = pair.transfer(1, config.amount, config.short_delay)
    print(f"  transfer(1, {config.amount}, {config.short_delay}) -> {result}")
    print(f"  total_balance() = {pair.total_balance()}")
    return pair


def step_02_detection(log: EventLog, config: DemoConfig) -> InvariantViolation:
    step_header(2, "DETECTION", "A recorded total that disagrees with the balances")

    pair = open_pair(config.balance_a, config.balance_b,
                     invariant_total=config.mismatched_total, log=log)
    try:
        pair.transfer(1, config.amount, config.short_delay)
    except InvariantViolation as exc:
        print(f"  InvariantViolation: {exc}")
        print(f"  data: {exc.data}")
        return exc
    raise AssertionError("transfer on a mismatched pair did not fail")


def step_03_cooperative(log: EventLog, config: DemoConfig) -> TransferCoordinator:
    step_header(3, "COOPERATIVE CANCELLATION",
                "Cancel a transfer that is waiting for the lock")

    pair = open_pair(config.balance_a, config.balance_b, log=log)
    holder = TransferThread(pair, 1, config.amount, config.short_delay, name="holder")
    holder.start()
    holder.wait_until_debited(config.wait_timeout)

    token = CancellationToken()
    waiter = TransferThread(pair, 2, config.amount, 0, cancel_token=token, name="waiter")
    waiter.start()
    waiter.cancel("no longer needed")

    holder.join()
    waiter.join()
    print(f"  holder -> {holder.result}")
    print(f"  waiter -> {waiter.error!r}")
    assert isinstance(waiter.error, TransferCancelled)
    print(f"  total_balance() = {pair.total_balance()}")
    return pair


def step_04_forceful(log: EventLog, config: DemoConfig) -> TransferCoordinator:
    step_header(4, "FORCEFUL CANCELLATION",
                "Stop a thread between the debit and the credit")

    pair = open_pair(config.balance_a, config.balance_b, log=log)
    worker = TransferThread(pair, 1, config.amount, config.long_delay, name="victim")
    worker.start()
    if not worker.wait_until_debited(config.wait_timeout):
        raise RuntimeError("worker never reached the debit")
    worker.terminate()
    worker.join(config.wait_timeout)

    print(f"  worker -> {worker.error!r}")
    assert isinstance(worker.error, ForcedTermination)
    print(f"  total_balance() = {pair.total_balance()}  "
          f"(expected {pair.invariant_total})")
    return pair


def step_05_delayed_failure(pair: TransferCoordinator, config: DemoConfig) -> InvariantViolation:
    step_header(5, "DELAYED FAILURE", "The next transfer detects the torn state")

    try:
        pair.transfer(1, config.amount, 0)
    except InvariantViolation as exc:
        print(f"  InvariantViolation: {exc}")
        print(f"  data: {exc.data}")
        return exc
    raise AssertionError("transfer on a torn pair did not fail")


# ============================================================================
# MAIN
# ============================================================================

def run(config: DemoConfig = CONFIG, log: Optional[EventLog] = None) -> dict:
    """Run every step and return what each one produced."""
    log = log if log is not None else EventLog(sys.stdout)
    outcome = {}
    outcome['sanity'] = step_01_sanity(log, config)
    wait_for_enter()
    outcome['detection'] = step_02_detection(log, config)
    wait_for_enter()
    outcome['cooperative'] = step_03_cooperative(log, config)
    wait_for_enter()
    outcome['forceful'] = step_04_forceful(log, config)
    wait_for_enter()
    outcome['delayed_failure'] = step_05_delayed_failure(outcome['forceful'], config)
    return outcome


def main():
    global INTERACTIVE
    if "--quick" in sys.argv:
        INTERACTIVE = False
    run()
    print("""
    SUMMARY

      - The lock keeps transfers from overlapping
      - A cooperative cancel is honored only before the debit
      - A forceful stop still releases the lock, but not the invariant
      - Nothing notices until the next transfer checks the total
    """)


if __name__ == "__main__":
    main()
