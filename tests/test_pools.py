"""
Tests for yieldfarm/pools.py

Tests pool records, the registry and the canonical byte encoding.
"""

import pytest

from yieldfarm.errors import PoolAlreadyExists, PoolNotFound
from yieldfarm.pools import Pool, PoolRegistry, encode_pool, decode_pool


# ============================================================================
# TEST DATA
# ============================================================================

def create_test_pool(
    pool_id: str = "pool-1",
    stake_asset_id: str = "LP",
    reward_rate_per_second: int = 10**16,
    total_staked: int = 0,
    last_update_timestamp: int = 1234567890,
    reward_per_stake_accumulated: int = 0,
    active: bool = True,
) -> Pool:
    """Create a test pool."""
    return Pool(
        pool_id=pool_id,
        stake_asset_id=stake_asset_id,
        reward_rate_per_second=reward_rate_per_second,
        total_staked=total_staked,
        last_update_timestamp=last_update_timestamp,
        reward_per_stake_accumulated=reward_per_stake_accumulated,
        active=active,
        created_at=last_update_timestamp,
    )


# ============================================================================
# POOL TESTS
# ============================================================================

class TestPool:
    """Tests for Pool dataclass."""

    def test_pool_to_dict(self):
        """Test pool serialization."""
        pool = create_test_pool(total_staked=500)
        data = pool.to_dict()
        assert data['pool_id'] == "pool-1"
        assert data['stake_asset_id'] == "LP"
        assert data['total_staked'] == 500
        assert data['active'] is True

    def test_pool_from_dict(self):
        """Test pool deserialization with string numbers."""
        data = {
            'pool_id': 'p2',
            'stake_asset_id': 'ABC',
            'reward_rate_per_second': '7',
            'total_staked': '100',
            'last_update_timestamp': 42,
            'reward_per_stake_accumulated': str(10**30),
            'active': False,
        }
        pool = Pool.from_dict(data)
        assert pool.reward_rate_per_second == 7
        assert pool.total_staked == 100
        assert pool.reward_per_stake_accumulated == 10**30
        assert pool.active is False


# ============================================================================
# ENCODING TESTS
# ============================================================================

class TestPoolEncoding:
    """Tests for encode_pool / decode_pool."""

    def test_encoding_layout(self):
        """Six big-endian 32-byte words in fixed order."""
        pool = create_test_pool(total_staked=5, reward_per_stake_accumulated=9)
        data = encode_pool(pool)

        assert len(data) == 6 * 32
        assert data[:2] == b"LP"
        assert data[2:32] == b"\x00" * 30
        assert int.from_bytes(data[32:64], "big") == 5
        assert int.from_bytes(data[64:96], "big") == 10**16
        assert int.from_bytes(data[96:128], "big") == 1234567890
        assert int.from_bytes(data[128:160], "big") == 9
        assert int.from_bytes(data[160:192], "big") == 1

    def test_encoding_is_deterministic(self):
        """Equal pools encode identically; the id is not encoded."""
        assert encode_pool(create_test_pool(pool_id="a")) == encode_pool(create_test_pool(pool_id="b"))

    def test_inactive_flag(self):
        """Active flag is the last word."""
        data = encode_pool(create_test_pool(active=False))
        assert data[-32:] == b"\x00" * 32

    def test_decode(self):
        """Decoding restores the encoded fields."""
        pool = create_test_pool(total_staked=123, reward_per_stake_accumulated=456, active=False)
        decoded = decode_pool(encode_pool(pool), pool_id=pool.pool_id)
        assert decoded.stake_asset_id == "LP"
        assert decoded.total_staked == 123
        assert decoded.reward_per_stake_accumulated == 456
        assert decoded.active is False

    def test_asset_id_too_long(self):
        """Asset ids must fit in one word."""
        with pytest.raises(ValueError):
            encode_pool(create_test_pool(stake_asset_id="X" * 33))

    def test_decode_wrong_length(self):
        """Truncated input is rejected."""
        with pytest.raises(ValueError):
            decode_pool(b"\x00" * 100)


# ============================================================================
# REGISTRY TESTS
# ============================================================================

class TestPoolRegistry:
    """Tests for PoolRegistry."""

    def test_add_and_get(self):
        """Test adding and retrieving pools."""
        registry = PoolRegistry()
        pool = registry.add(create_test_pool())
        assert registry.get("pool-1") is pool
        assert "pool-1" in registry
        assert len(registry) == 1

    def test_duplicate_rejected(self):
        """Ids are unique."""
        registry = PoolRegistry()
        registry.add(create_test_pool())
        with pytest.raises(PoolAlreadyExists):
            registry.add(create_test_pool())

    def test_require_missing(self):
        """require() raises for unknown ids."""
        registry = PoolRegistry()
        assert registry.get("nope") is None
        with pytest.raises(PoolNotFound):
            registry.require("nope")

    def test_active_listing(self):
        """Only active pools are listed and counted."""
        registry = PoolRegistry()
        registry.add(create_test_pool(pool_id="a"))
        registry.add(create_test_pool(pool_id="b", active=False))
        registry.add(create_test_pool(pool_id="c"))

        assert [p.pool_id for p in registry.active()] == ["a", "c"]
        assert registry.count_active() == 2
        assert len(registry.all()) == 3
