"""
yieldfarm/gateway.py

Asset movement between accounts and the ledger's custody.

Stake-asset moves are strict: any failure raises TransferError and the
calling operation aborts. Reward moves are tolerant: a payout larger than
the reserve is clamped to what is held, and an empty reserve pays nothing.
"""

import logging
import time
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field, asdict
from typing import Dict, List

import trio

from .config import DEFAULT_REWARD_ASSET
from .errors import TransferError

logger = logging.getLogger("yieldfarm.gateway")

# Account name the in-memory gateway uses for the ledger's own holdings
LEDGER_CUSTODY = "yieldfarm:custody"


# ============================================================================
# INTERFACE
# ============================================================================

class TransferGateway(ABC):
    """Abstract asset mover consumed by SettlementEngine."""

    @abstractmethod
    async def pull_stake(self, account: str, asset_id: str, amount: int) -> None:
        """Move `amount` of `asset_id` from account into custody. Strict."""
        pass

    @abstractmethod
    async def push_stake(self, account: str, asset_id: str, amount: int) -> None:
        """Move `amount` of `asset_id` from custody to account. Strict."""
        pass

    @abstractmethod
    async def safe_reward_transfer(self, account: str, amount: int) -> int:
        """Pay up to `amount` reward units; returns what was actually sent."""
        pass

    @abstractmethod
    def reward_reserve(self) -> int:
        """Reward units currently held for payouts."""
        pass


# ============================================================================
# IN-MEMORY GATEWAY
# ============================================================================

@dataclass
class Transfer:
    """One completed asset movement."""
    asset_id: str
    sender: str
    recipient: str
    amount: int
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        return asdict(self)


class InMemoryTransferGateway(TransferGateway):
    """
    Balance book held in memory.

    Every move yields to the trio scheduler first, so it is a genuine
    suspension point for the calling operation.

    Usage:
        gateway = InMemoryTransferGateway(reward_asset_id="RWD")
        gateway.mint("LP", "alice", 1000)
        gateway.fund_rewards(10**21)
    """

    def __init__(self, reward_asset_id: str = DEFAULT_REWARD_ASSET, custody: str = LEDGER_CUSTODY):
        self.reward_asset_id = reward_asset_id
        self.custody = custody
        self._balances: Dict[str, Dict[str, int]] = defaultdict(lambda: defaultdict(int))  # asset -> account -> amount
        self.transfers: List[Transfer] = []

    def balance_of(self, asset_id: str, account: str) -> int:
        return self._balances[asset_id][account]

    def mint(self, asset_id: str, account: str, amount: int) -> None:
        """Credit an account out of thin air (test and bootstrap funding)."""
        if amount < 0:
            raise ValueError("Mint amount must be non-negative")
        self._balances[asset_id][account] += amount

    def fund_rewards(self, amount: int) -> None:
        """Top up the reward reserve held in custody."""
        self.mint(self.reward_asset_id, self.custody, amount)
        logger.info(f"Reward reserve funded: +{amount} -> {self.reward_reserve()}")

    def reward_reserve(self) -> int:
        return self.balance_of(self.reward_asset_id, self.custody)

    def _move(self, asset_id: str, sender: str, recipient: str, amount: int) -> None:
        book = self._balances[asset_id]
        if amount <= 0:
            raise TransferError(f"Invalid transfer amount: {amount}")
        if book[sender] < amount:
            raise TransferError(
                f"Insufficient {asset_id} balance for {sender}: {book[sender]} < {amount}"
            )
        book[sender] -= amount
        book[recipient] += amount
        self.transfers.append(Transfer(asset_id, sender, recipient, amount))

    async def pull_stake(self, account: str, asset_id: str, amount: int) -> None:
        await trio.lowlevel.checkpoint()
        self._move(asset_id, account, self.custody, amount)
        logger.debug(f"Pulled {amount} {asset_id} from {account}")

    async def push_stake(self, account: str, asset_id: str, amount: int) -> None:
        await trio.lowlevel.checkpoint()
        self._move(asset_id, self.custody, account, amount)
        logger.debug(f"Pushed {amount} {asset_id} to {account}")

    async def safe_reward_transfer(self, account: str, amount: int) -> int:
        available = self.reward_reserve()
        payout = min(amount, available)
        if payout < amount:
            logger.warning(
                f"Reward reserve short: owed {amount} to {account}, paying {payout}"
            )
        if payout <= 0:
            return 0

        await trio.lowlevel.checkpoint()
        self._move(self.reward_asset_id, self.custody, account, payout)
        return payout
