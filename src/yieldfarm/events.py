"""
yieldfarm/events.py

Notifications emitted by every successful ledger mutation.
"""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class EventType(Enum):
    """Kinds of ledger notifications."""
    POOL_CREATED = 'pool_created'
    STAKED = 'staked'
    WITHDRAWN = 'withdrawn'
    REWARD_PAID = 'reward_paid'
    REWARD_RATE_UPDATED = 'reward_rate_updated'
    POOL_DEACTIVATED = 'pool_deactivated'
    ASSET_RESCUED = 'asset_rescued'


@dataclass
class LedgerEvent:
    """
    One notification.

    `amount` is the resulting amount for the event: the position's new
    balance for stake/withdraw, the payout for reward events, the new rate
    for rate updates.
    """
    event_type: EventType
    pool_id: str
    account: str
    amount: int
    timestamp: int
    meta: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            'event_type': self.event_type.value,
            'pool_id': self.pool_id,
            'account': self.account,
            'amount': self.amount,
            'timestamp': self.timestamp,
            'meta': dict(self.meta),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'LedgerEvent':
        return cls(
            event_type=EventType(data['event_type']),
            pool_id=data.get('pool_id', ''),
            account=data.get('account', ''),
            amount=int(data.get('amount', 0)),
            timestamp=int(data.get('timestamp', 0)),
            meta=dict(data.get('meta', {})),
        )


class EventLog:
    """Bounded in-memory event history."""

    def __init__(self, maxlen: Optional[int] = None) -> None:
        self.events = deque(maxlen=maxlen)

    def __len__(self) -> int:
        return len(self.events)

    def add(self, e: LedgerEvent) -> None:
        self.events.append(e)

    def tail(self, n: int = 200) -> List[LedgerEvent]:
        if n <= 0:
            return []
        if n >= len(self.events):
            return list(self.events)
        return list(self.events)[-n:]

    def of_type(self, event_type: EventType) -> List[LedgerEvent]:
        return [e for e in self.events if e.event_type == event_type]
