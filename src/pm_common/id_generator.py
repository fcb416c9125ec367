"""Snowflake-style ID generator for order ids.

IDs are decimal strings that increase with time, so ORDER BY id DESC is
newest-first and doubles as a pagination cursor. Single-process only.
"""

import threading
import time


class SnowflakeIdGenerator:
    """Layout (63 bits): 41 bits ms since epoch | 10 bits machine | 12 bits sequence."""

    _EPOCH_MS = 1_735_689_600_000  # 2025-01-01T00:00:00Z
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
            now_ms = self._clock_ms()
            if now_ms == self._last_ms:
                self._sequence = (self._sequence + 1) & self._MAX_SEQUENCE
                if self._sequence == 0:
                    # sequence exhausted for this millisecond
                    while now_ms <= self._last_ms:
                        now_ms = self._clock_ms()
            else:
                self._sequence = 0
            self._last_ms = now_ms
            value = (
                ((now_ms - self._EPOCH_MS) << (self._MACHINE_BITS + self._SEQUENCE_BITS))
                | (self._machine_id << self._SEQUENCE_BITS)
                | self._sequence
            )
            return str(value)

    def _clock_ms(self) -> int:
        return time.time_ns() // 1_000_000


_default_generator = SnowflakeIdGenerator()


def generate_id() -> str:
    """Next id from the module-level generator."""
    return _default_generator.next_id()
