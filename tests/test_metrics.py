"""
Tests for yieldfarm/metrics.py

Tests Prometheus output and counters fed by engine notifications.
"""

import trio

from yieldfarm.access import StaticAccessController
from yieldfarm.clock import ManualClock
from yieldfarm.config import LedgerConfig
from yieldfarm.engine import SettlementEngine
from yieldfarm.gateway import InMemoryTransferGateway
from yieldfarm.metrics import MetricsCollector


def create_test_setup(reserve: int = 10**9, labels: dict = None):
    """Create an engine with one pool and a collector attached."""
    clock = ManualClock(1000)
    gateway = InMemoryTransferGateway(reward_asset_id="RWD")
    gateway.mint("LP", "alice", 10**6)
    gateway.fund_rewards(reserve)
    config = LedgerConfig(labels=labels or {})
    engine = SettlementEngine(gateway, StaticAccessController(["admin"]), clock=clock, config=config)
    metrics = MetricsCollector(engine)
    pool_id = engine.create_pool("LP", 10, caller="admin")
    return engine, metrics, clock, pool_id


class TestMetricsCollector:
    """Test MetricsCollector class."""

    def test_collect_empty_counters(self):
        """Output has HELP/TYPE lines and pool gauges."""
        engine, metrics, clock, pool_id = create_test_setup()
        output = metrics.collect()

        assert "# HELP yieldfarm_pools" in output
        assert "# TYPE yieldfarm_pools gauge" in output
        assert "yieldfarm_pools 1" in output
        assert "yieldfarm_active_pools 1" in output
        assert f'yieldfarm_pool_total_staked{{pool_id="{pool_id[:16]}"}} 0' in output

    def test_counters_follow_events(self):
        """Operations and payouts are counted."""
        engine, metrics, clock, pool_id = create_test_setup()
        trio.run(engine.stake, pool_id, "alice", 100)
        clock.advance(10)
        trio.run(engine.claim_rewards, pool_id, "alice")

        stats = metrics.get_stats()
        assert stats["operations"]["staked"] == 1
        assert stats["operations"]["reward_paid"] == 1
        assert stats["operations"]["pool_created"] == 1
        assert stats["rewards_paid"] == 100
        assert stats["reward_shortfall"] == 0
        assert stats["total_staked"][pool_id] == 100

        output = metrics.collect()
        assert 'yieldfarm_operations_total{kind="staked"} 1' in output
        assert "yieldfarm_rewards_paid_total 100" in output

    def test_shortfall_counted(self):
        """Unpaid reward shows up as shortfall."""
        engine, metrics, clock, pool_id = create_test_setup(reserve=30)
        trio.run(engine.stake, pool_id, "alice", 100)
        clock.advance(10)
        trio.run(engine.claim_rewards, pool_id, "alice")

        assert metrics.get_stats()["reward_shortfall"] == 70

    def test_labels_applied(self):
        """Config labels are attached to every sample."""
        engine, metrics, clock, pool_id = create_test_setup(labels={"ledger": "main"})
        assert 'yieldfarm_pools{ledger="main"} 1' in metrics.collect()

    def test_reset_counters(self):
        """Counters return to zero."""
        engine, metrics, clock, pool_id = create_test_setup()
        trio.run(engine.stake, pool_id, "alice", 100)
        metrics.reset_counters()

        stats = metrics.get_stats()
        assert stats["operations"] == {}
        assert stats["rewards_paid"] == 0
