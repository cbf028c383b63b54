"""
Tests for yieldfarm/accumulator.py and yieldfarm/positions.py

Tests the reward-per-stake arithmetic and reward-debt bookkeeping.
"""

import pytest

from yieldfarm.accumulator import RewardAccumulator
from yieldfarm.config import PRECISION
from yieldfarm.errors import ClockError
from yieldfarm.pools import Pool
from yieldfarm.positions import PositionLedger, UserPosition


def create_test_pool(total_staked: int = 1000, rate: int = 10, last_update: int = 0) -> Pool:
    """Create a test pool."""
    return Pool(
        pool_id="pool-1",
        stake_asset_id="LP",
        reward_rate_per_second=rate,
        total_staked=total_staked,
        last_update_timestamp=last_update,
    )


# ============================================================================
# ACCUMULATOR TESTS
# ============================================================================

class TestRewardAccumulator:
    """Tests for RewardAccumulator."""

    def test_settle_increment(self):
        """elapsed * rate * 1e18 / total_staked."""
        pool = create_test_pool(total_staked=1000, rate=10)
        increment = RewardAccumulator().settle(pool, 100)

        assert increment == 100 * 10 * PRECISION // 1000
        assert pool.reward_per_stake_accumulated == PRECISION
        assert pool.last_update_timestamp == 100

    def test_settle_is_idempotent_at_same_instant(self):
        """A second settle at the same time changes nothing."""
        accumulator = RewardAccumulator()
        pool = create_test_pool()

        accumulator.settle(pool, 50)
        first = pool.reward_per_stake_accumulated
        assert accumulator.settle(pool, 50) == 0
        assert pool.reward_per_stake_accumulated == first

    def test_empty_pool_moves_timestamp_only(self):
        """Nothing accrues with zero stake, but the clock still advances."""
        pool = create_test_pool(total_staked=0)
        RewardAccumulator().settle(pool, 500)

        assert pool.reward_per_stake_accumulated == 0
        assert pool.last_update_timestamp == 500

    def test_truncation_dust(self):
        """Floor division drops the remainder."""
        pool = create_test_pool(total_staked=3, rate=1)
        RewardAccumulator().settle(pool, 1)
        assert pool.reward_per_stake_accumulated == PRECISION // 3

    def test_project_does_not_mutate(self):
        """project() matches settle() without side effects."""
        accumulator = RewardAccumulator()
        pool = create_test_pool()

        projected = accumulator.project(pool, 40)
        assert pool.reward_per_stake_accumulated == 0
        assert pool.last_update_timestamp == 0

        accumulator.settle(pool, 40)
        assert pool.reward_per_stake_accumulated == projected

    def test_clock_backwards(self):
        """Negative elapsed time is rejected."""
        pool = create_test_pool(last_update=100)
        with pytest.raises(ClockError):
            RewardAccumulator().settle(pool, 99)

    def test_accumulator_never_decreases(self):
        """Successive settlements only grow the accumulator."""
        accumulator = RewardAccumulator()
        pool = create_test_pool(total_staked=777, rate=13)
        previous = 0
        for now in range(0, 1000, 37):
            accumulator.settle(pool, now)
            assert pool.reward_per_stake_accumulated >= previous
            previous = pool.reward_per_stake_accumulated


# ============================================================================
# POSITION LEDGER TESTS
# ============================================================================

class TestPositionLedger:
    """Tests for PositionLedger."""

    def test_get_or_create(self):
        """Positions are created lazily and reused."""
        ledger = PositionLedger()
        assert ledger.get("pool-1", "alice") is None

        position = ledger.get_or_create("pool-1", "alice")
        assert ledger.get_or_create("pool-1", "alice") is position
        assert position.amount == 0
        assert len(ledger) == 1

    def test_pending_and_settle(self):
        """Pending is the accrued delta since the last settlement."""
        accumulator = RewardAccumulator()
        pool = create_test_pool(total_staked=100, rate=10)
        position = UserPosition(pool_id="pool-1", account="alice", amount=100)

        accumulator.settle(pool, 10)
        assert PositionLedger.compute_pending(pool, position) == 100

        PositionLedger.settle(pool, position, 10)
        assert position.reward_debt == 100
        assert position.last_claim_timestamp == 10
        assert PositionLedger.compute_pending(pool, position) == 0

    def test_settle_uses_new_amount(self):
        """Debt tracks the post-change amount."""
        pool = create_test_pool(total_staked=100)
        pool.reward_per_stake_accumulated = 3 * PRECISION
        position = UserPosition(pool_id="pool-1", account="alice", amount=100)

        position.amount += 50
        PositionLedger.settle(pool, position, 5)
        assert position.reward_debt == 450

    def test_totals_per_pool(self):
        """Sum of amounts is scoped by pool."""
        ledger = PositionLedger()
        ledger.get_or_create("p1", "alice").amount = 10
        ledger.get_or_create("p1", "bob").amount = 20
        ledger.get_or_create("p2", "alice").amount = 99

        assert ledger.total_for_pool("p1") == 30
        assert len(ledger.positions_for_pool("p2")) == 1

    def test_position_round_trip_dict(self):
        """Positions serialize to plain dicts."""
        position = UserPosition(pool_id="p", account="a", amount=5, reward_debt=7, total_claimed=3)
        assert UserPosition.from_dict(position.to_dict()) == position
