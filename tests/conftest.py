"""
conftest.py - Shared pytest fixtures for pairledger tests

Provides common fixtures used across unit, functional and conformance tests:
- A fixed-clock EventLog writing into an in-memory stream
- A standard 4000/6000 pair (invariant total 10000), logged and quiet
- Log parsing utilities
"""

import io
import re
from datetime import datetime
from typing import List, NamedTuple

import pytest

from pairledger import EventLog, TransferCoordinator, open_pair


FIXED_TIME = datetime(2025, 1, 1, 9, 0, 0)

_EVENT_RE = re.compile(
    r"^thread (?P<thread>.+?) (?P<kind>called transfer|acquired lock|released lock) "
    r"from (?P<source>-?\d+) amount (?P<amount>-?\d+)$"
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

class LogEvent(NamedTuple):
    thread: str
    kind: str
    source: int
    amount: int


def log_messages(stream: io.StringIO) -> List[str]:
    """Return every logged message with its timestamp stripped."""
    return [line.split(" ", 1)[1] for line in stream.getvalue().splitlines()]


def log_events(stream: io.StringIO) -> List[LogEvent]:
    """Parse coordinator log output into LogEvent records, in write order."""
    events = []
    for message in log_messages(stream):
        match = _EVENT_RE.match(message)
        assert match, f"unexpected log line: {message!r}"
        kind = match.group("kind").split()[0]
        events.append(LogEvent(
            thread=match.group("thread"),
            kind=kind,
            source=int(match.group("source")),
            amount=int(match.group("amount")),
        ))
    return events


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def log_stream():
    """In-memory target for an EventLog."""
    return io.StringIO()


@pytest.fixture
def event_log(log_stream):
    """EventLog with a fixed clock, writing into log_stream."""
    return EventLog(log_stream, clock=lambda: FIXED_TIME)


@pytest.fixture
def pair(event_log) -> TransferCoordinator:
    """Logged pair: balance_a=4000, balance_b=6000, invariant_total=10000."""
    return open_pair(4000, 6000, log=event_log, name="test")


@pytest.fixture
def quiet_pair() -> TransferCoordinator:
    """Same balances as `pair`, with logging disabled."""
    return open_pair(4000, 6000, verbose=False, name="quiet")
