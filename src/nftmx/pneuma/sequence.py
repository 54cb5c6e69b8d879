"""
Per-sender sequence serialization.

The ledger enforces strictly increasing sequence numbers per account, and
the LCD account endpoint keeps reporting the old sequence until a
transaction is included in a block.  ``SequenceGuard`` serializes
submissions for the same sender within this process and remembers the next
sequence after each accepted broadcast.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator


class SequenceGuard:
    def __init__(self) -> None:
        self._registry_lock = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._next: dict[str, int] = {}

    def lock_for(self, address: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(address)
            if lock is None:
                lock = self._locks[address] = threading.Lock()
            return lock

    @contextmanager
    def serialized(self, address: str) -> Iterator["SequenceGuard"]:
        """Hold the sender's lock for a whole query-sign-broadcast cycle."""
        with self.lock_for(address):
            yield self

    def next_sequence(self, address: str, on_chain: int) -> int:
        """The sequence to sign with: on-chain value, or ahead of it if we know better."""
        return max(on_chain, self._next.get(address, on_chain))

    def commit(self, address: str, used: int) -> None:
        """Record that ``used`` was accepted by the node."""
        self._next[address] = max(self._next.get(address, 0), used + 1)

    def forget(self, address: str) -> None:
        """Drop the cached sequence; the next cycle trusts the chain again."""
        self._next.pop(address, None)


# Process-wide guard used when callers do not bring their own.
DEFAULT_GUARD = SequenceGuard()
