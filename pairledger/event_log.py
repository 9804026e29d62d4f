"""
event_log.py - Serialized, timestamped line writer

Several threads append to one EventLog at the same time. A lock owned by the
log instance makes each append atomic: the timestamp, the caller's text and
the line terminator go out in a single write, followed by a flush, before the
next caller may write.

The output target and the clock are constructor arguments; nothing is read
from module-level state.
"""

from __future__ import annotations
from datetime import datetime
from typing import Callable, Optional, TextIO
import sys
import threading


class EventLog:
    """
    Append-only log shared by concurrent callers.

    Example:
        log = EventLog(sys.stderr)
        log.append("thread worker-1 called transfer from 1 amount 100")
        # 2025-01-01T09:00:00.000123 thread worker-1 called transfer from 1 amount 100
    """

    def __init__(
        self,
        out: Optional[TextIO] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Create a log.

        Args:
            out: Text stream to write to (default: sys.stdout at construction time)
            clock: Returns the timestamp for each line (default: datetime.now)
        """
        self._out = out if out is not None else sys.stdout
        self._clock = clock
        self._lock = threading.Lock()
        self._appended = 0

    @property
    def appended(self) -> int:
        """Number of lines written so far."""
        with self._lock:
            return self._appended

    def append(self, line: str) -> None:
        """
        Write one timestamped line and flush it.

        The timestamp is taken when append() is called, before waiting for
        the lock, so it records invocation time rather than write time.
        Carriage returns and newlines inside `line` are written as the
        two-character escapes \\r and \\n, so every call produces exactly
        one output line.
        """
        line = line.replace("\r", "\\r").replace("\n", "\\n")
        now = self._clock()
        with self._lock:
            self._out.write(f"{now.isoformat()} {line}\n")
            self._out.flush()
            self._appended += 1
