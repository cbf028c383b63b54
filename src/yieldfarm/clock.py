"""
yieldfarm/clock.py

Time sources. The engine samples the clock once at the top of each
settlement, so a clock is just a callable returning integer seconds.
"""

import time


class SystemClock:
    """Wall-clock seconds."""

    def __call__(self) -> int:
        return int(time.time())


class ManualClock:
    """
    Clock that only moves when told to.

    Usage:
        clock = ManualClock(1_700_000_000)
        engine = SettlementEngine(gateway, access, clock=clock)
        clock.advance(100)
    """

    def __init__(self, start: int = 0):
        self.now = int(start)

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("Clock cannot move backwards")
        self.now += int(seconds)
        return self.now

    def set(self, timestamp: int) -> int:
        if timestamp < self.now:
            raise ValueError("Clock cannot move backwards")
        self.now = int(timestamp)
        return self.now
