"""
yieldfarm/pools.py

Pool records and the registry that owns them.

A pool pairs one stake asset with a reward rate and carries the
reward-per-stake accumulator used to settle every position in O(1).
"""

import logging
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional

from .config import WORD_SIZE, POOL_ENCODED_FIELDS
from .errors import PoolNotFound, PoolAlreadyExists

logger = logging.getLogger("yieldfarm.pools")

_MAX_WORD = (1 << (WORD_SIZE * 8)) - 1


# ============================================================================
# DATA CLASSES
# ============================================================================

@dataclass
class Pool:
    """
    Accounting bucket for one stake asset.

    reward_per_stake_accumulated is scaled by PRECISION (1e18) and never
    decreases. total_staked always equals the sum of position amounts.
    """
    pool_id: str
    stake_asset_id: str
    reward_rate_per_second: int = 0
    total_staked: int = 0
    last_update_timestamp: int = 0
    reward_per_stake_accumulated: int = 0
    active: bool = True
    created_at: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Pool":
        """Create from dictionary."""
        return cls(
            pool_id=data.get("pool_id", ""),
            stake_asset_id=data.get("stake_asset_id", ""),
            reward_rate_per_second=int(data.get("reward_rate_per_second", 0)),
            total_staked=int(data.get("total_staked", 0)),
            last_update_timestamp=int(data.get("last_update_timestamp", 0)),
            reward_per_stake_accumulated=int(data.get("reward_per_stake_accumulated", 0)),
            active=bool(data.get("active", True)),
            created_at=int(data.get("created_at", 0)),
        )


# ============================================================================
# CANONICAL ENCODING
# ============================================================================

def _word(value: int) -> bytes:
    if value < 0 or value > _MAX_WORD:
        raise ValueError(f"Value out of range for a {WORD_SIZE}-byte word: {value}")
    return value.to_bytes(WORD_SIZE, "big")


def encode_pool(pool: Pool) -> bytes:
    """
    Encode the six pool fields as fixed 32-byte big-endian words.

    Order: stake asset id, total staked, reward rate, last update,
    accumulator, active flag. The asset id is UTF-8, right-padded with
    zero bytes.
    """
    asset = pool.stake_asset_id.encode()
    if len(asset) > WORD_SIZE:
        raise ValueError(f"Stake asset id longer than {WORD_SIZE} bytes: {pool.stake_asset_id}")

    return b"".join([
        asset.ljust(WORD_SIZE, b"\x00"),
        _word(pool.total_staked),
        _word(pool.reward_rate_per_second),
        _word(pool.last_update_timestamp),
        _word(pool.reward_per_stake_accumulated),
        _word(1 if pool.active else 0),
    ])


def decode_pool(data: bytes, pool_id: str = "") -> Pool:
    """Inverse of encode_pool. pool_id is not part of the encoding."""
    expected = WORD_SIZE * POOL_ENCODED_FIELDS
    if len(data) != expected:
        raise ValueError(f"Expected {expected} bytes, got {len(data)}")

    words = [data[i:i + WORD_SIZE] for i in range(0, expected, WORD_SIZE)]
    return Pool(
        pool_id=pool_id,
        stake_asset_id=words[0].rstrip(b"\x00").decode(),
        total_staked=int.from_bytes(words[1], "big"),
        reward_rate_per_second=int.from_bytes(words[2], "big"),
        last_update_timestamp=int.from_bytes(words[3], "big"),
        reward_per_stake_accumulated=int.from_bytes(words[4], "big"),
        active=int.from_bytes(words[5], "big") != 0,
    )


# ============================================================================
# POOL REGISTRY
# ============================================================================

class PoolRegistry:
    """Owns Pool records keyed by pool id."""

    def __init__(self):
        self._pools: Dict[str, Pool] = {}  # pool_id -> Pool

    def __contains__(self, pool_id: str) -> bool:
        return pool_id in self._pools

    def __len__(self) -> int:
        return len(self._pools)

    def add(self, pool: Pool) -> Pool:
        if pool.pool_id in self._pools:
            raise PoolAlreadyExists(f"Pool already exists: {pool.pool_id}")
        self._pools[pool.pool_id] = pool
        logger.debug(f"Pool added: {pool.pool_id} ({pool.stake_asset_id})")
        return pool

    def get(self, pool_id: str) -> Optional[Pool]:
        return self._pools.get(pool_id)

    def require(self, pool_id: str) -> Pool:
        pool = self._pools.get(pool_id)
        if pool is None:
            raise PoolNotFound(f"Pool not found: {pool_id}")
        return pool

    def all(self) -> List[Pool]:
        return list(self._pools.values())

    def active(self) -> List[Pool]:
        return [p for p in self._pools.values() if p.active]

    def count_active(self) -> int:
        return sum(1 for p in self._pools.values() if p.active)

    def clear(self) -> None:
        self._pools.clear()
