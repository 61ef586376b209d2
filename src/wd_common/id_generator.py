"""Snowflake-style IDs for ledger transaction ids and distribution ids.

Monotonically increasing within one process; string-typed so they can be
prefixed with the posting kind (e.g. "TRANSFER184467..._OUT").
"""

import threading
import time


class SnowflakeIdGenerator:
    """Layout (64 bits): 41 bits ms timestamp | 10 bits machine_id | 12 bits sequence."""

    _EPOCH_MS = 1_700_000_000_000
    _MACHINE_BITS = 10
    _SEQUENCE_BITS = 12
    _MAX_SEQUENCE = (1 << _SEQUENCE_BITS) - 1

    def __init__(self, machine_id: int = 0) -> None:
        if not (0 <= machine_id < (1 << self._MACHINE_BITS)):
            raise ValueError(f"machine_id must be 0-{(1 << self._MACHINE_BITS) - 1}")
        self._machine_id = machine_id
        self._sequence = 0
        self._last_ms = -1
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            ts = int(time.time() * 1000)
            if ts == self._last_ms:
                self._sequence = (self._sequence + 1) & self._MAX_SEQUENCE
                if self._sequence == 0:
                    while ts <= self._last_ms:
                        ts = int(time.time() * 1000)
            else:
                self._sequence = 0
            self._last_ms = ts
            value = (
                ((ts - self._EPOCH_MS) << (self._MACHINE_BITS + self._SEQUENCE_BITS))
                | (self._machine_id << self._SEQUENCE_BITS)
                | self._sequence
            )
            return str(value)


_default_generator = SnowflakeIdGenerator()


def generate_id() -> str:
    return _default_generator.next_id()


def generate_transaction_id(kind: str) -> str:
    """Ledger transaction id, e.g. generate_transaction_id("CHARGE") -> "CHARGE1844...". """
    return f"{kind.upper()}{_default_generator.next_id()}"
