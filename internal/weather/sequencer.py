"""
Per-slot request sequencing ("latest request wins")
"""

from typing import Dict


class RequestSequencer:
    """
    Monotonic request counter per slot.

    Every new request on a slot gets a strictly greater number than all
    previous ones; a request may publish its outcome only while its number
    is still the latest for the slot.
    """

    def __init__(self):
        self._counters: Dict[str, int] = {}

    def begin(self, slot: str) -> int:
        """Register new request on slot and return its sequence number"""
        seq = self._counters.get(slot, 0) + 1
        self._counters[slot] = seq
        return seq

    def isLatest(self, slot: str, seq: int) -> bool:
        return self._counters.get(slot, 0) == seq

    def current(self, slot: str) -> int:
        return self._counters.get(slot, 0)
