"""
yieldfarm/positions.py

Per-(pool, account) stake positions and their reward-debt bookkeeping.

Ordering inside one operation is fixed:
    pool settle -> compute_pending -> change amount -> settle(position)
Reading pending after the amount changes, or settling the position
before the pool, credits the wrong accumulator delta.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional, Tuple

from .config import PRECISION
from .pools import Pool

logger = logging.getLogger("yieldfarm.positions")


@dataclass
class UserPosition:
    """One account's stake and reward baseline within one pool."""
    pool_id: str
    account: str
    amount: int = 0
    reward_debt: int = 0
    last_claim_timestamp: int = 0
    total_claimed: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "UserPosition":
        """Create from dictionary."""
        return cls(
            pool_id=data.get("pool_id", ""),
            account=data.get("account", ""),
            amount=int(data.get("amount", 0)),
            reward_debt=int(data.get("reward_debt", 0)),
            last_claim_timestamp=int(data.get("last_claim_timestamp", 0)),
            total_claimed=int(data.get("total_claimed", 0)),
        )


def accrued(amount: int, accumulated: int) -> int:
    """Reward units credited to `amount` at accumulator value `accumulated`."""
    return amount * accumulated // PRECISION


class PositionLedger:
    """Owns UserPosition records keyed by (pool_id, account)."""

    def __init__(self):
        self._positions: Dict[Tuple[str, str], UserPosition] = {}

    def __len__(self) -> int:
        return len(self._positions)

    def get(self, pool_id: str, account: str) -> Optional[UserPosition]:
        return self._positions.get((pool_id, account))

    def get_or_create(self, pool_id: str, account: str) -> UserPosition:
        key = (pool_id, account)
        position = self._positions.get(key)
        if position is None:
            position = UserPosition(pool_id=pool_id, account=account)
            self._positions[key] = position
            logger.debug(f"Position opened: {account} in {pool_id}")
        return position

    def put(self, position: UserPosition) -> None:
        self._positions[(position.pool_id, position.account)] = position

    def positions_for_pool(self, pool_id: str) -> List[UserPosition]:
        return [p for (pid, _), p in self._positions.items() if pid == pool_id]

    def total_for_pool(self, pool_id: str) -> int:
        return sum(p.amount for p in self.positions_for_pool(pool_id))

    def all(self) -> List[UserPosition]:
        return list(self._positions.values())

    def clear(self) -> None:
        self._positions.clear()

    # ========================================================================
    # SETTLEMENT
    # ========================================================================

    @staticmethod
    def compute_pending(pool: Pool, position: UserPosition) -> int:
        """Reward owed since the position's last settlement. Pool must be settled."""
        return accrued(position.amount, pool.reward_per_stake_accumulated) - position.reward_debt

    @staticmethod
    def settle(pool: Pool, position: UserPosition, now: int) -> None:
        """Reset the debt baseline to the current amount and accumulator."""
        position.reward_debt = accrued(position.amount, pool.reward_per_stake_accumulated)
        position.last_claim_timestamp = now
