"""
yieldfarm/metrics.py

Prometheus metrics collection for yieldfarm.

Exposes pool state (staked totals, accumulators, reward reserve) and
operation counters fed by engine notifications.
"""

import time
import logging
from typing import TYPE_CHECKING, Dict, Any
from collections import defaultdict

from .events import EventType, LedgerEvent

if TYPE_CHECKING:
    from .engine import SettlementEngine

logger = logging.getLogger("yieldfarm.metrics")


class MetricsCollector:
    """
    Prometheus metrics collector for a SettlementEngine.

    Usage:
        engine = SettlementEngine(gateway, access)
        metrics = MetricsCollector(engine)

        # Get metrics in Prometheus format
        prometheus_output = metrics.collect()
    """

    # Metric definitions
    METRICS = {
        "yieldfarm_pools": {
            "type": "gauge",
            "help": "Number of registered pools",
        },
        "yieldfarm_active_pools": {
            "type": "gauge",
            "help": "Number of pools accepting stakes",
        },
        "yieldfarm_positions": {
            "type": "gauge",
            "help": "Number of position records",
        },
        "yieldfarm_pool_total_staked": {
            "type": "gauge",
            "help": "Stake held by a pool",
        },
        "yieldfarm_pool_reward_rate": {
            "type": "gauge",
            "help": "Reward units emitted per second by a pool",
        },
        "yieldfarm_pool_reward_per_stake": {
            "type": "gauge",
            "help": "Reward-per-stake accumulator (1e18 scaled)",
        },
        "yieldfarm_reward_reserve": {
            "type": "gauge",
            "help": "Reward units held for payouts",
        },
        "yieldfarm_operations_total": {
            "type": "counter",
            "help": "Successful ledger operations by kind",
        },
        "yieldfarm_rewards_paid_total": {
            "type": "counter",
            "help": "Reward units transferred to stakers",
        },
        "yieldfarm_reward_shortfall_total": {
            "type": "counter",
            "help": "Reward units owed but not paid due to reserve shortfall",
        },
        "yieldfarm_uptime_seconds": {
            "type": "counter",
            "help": "Collector uptime in seconds",
        },
    }

    def __init__(self, engine: "SettlementEngine"):
        """
        Initialize metrics collector.

        Args:
            engine: SettlementEngine to observe; the collector subscribes
                to its notifications
        """
        self.engine = engine
        self._start_time = time.time()

        # Counters (persist across collections)
        self._operations: Dict[str, int] = defaultdict(int)
        self._rewards_paid = 0
        self._reward_shortfall = 0

        engine.on_event(self.record_event)

    def record_event(self, event: LedgerEvent) -> None:
        """Update counters from one engine notification."""
        self._operations[event.event_type.value] += 1
        if event.event_type == EventType.REWARD_PAID:
            self._rewards_paid += event.amount
            self._reward_shortfall += int(event.meta.get("shortfall", 0))

    def collect(self) -> str:
        """
        Collect all metrics and return in Prometheus format.

        Returns:
            Prometheus-formatted metrics string
        """
        lines = []
        base_labels = dict(self.engine.config.labels)

        def header(name: str) -> None:
            metric_def = self.METRICS.get(name, {})
            lines.append(f"# HELP {name} {metric_def.get('help', '')}")
            lines.append(f"# TYPE {name} {metric_def.get('type', 'gauge')}")

        def sample(name: str, value: Any, labels: Dict[str, str] = None) -> None:
            merged = {**base_labels, **(labels or {})}
            if merged:
                label_str = ",".join(f'{k}="{v}"' for k, v in merged.items())
                lines.append(f"{name}{{{label_str}}} {value}")
            else:
                lines.append(f"{name} {value}")

        def add_metric(name: str, value: Any) -> None:
            header(name)
            sample(name, value)

        try:
            pools = self.engine.list_pools()

            add_metric("yieldfarm_pools", len(pools))
            add_metric("yieldfarm_active_pools", self.engine.count_active_pools())
            add_metric("yieldfarm_positions", len(self.engine.positions))
            add_metric("yieldfarm_reward_reserve", self.engine.gateway.reward_reserve())

            per_pool = [
                ("yieldfarm_pool_total_staked", "total_staked"),
                ("yieldfarm_pool_reward_rate", "reward_rate_per_second"),
                ("yieldfarm_pool_reward_per_stake", "reward_per_stake_accumulated"),
            ]
            for name, attr in per_pool:
                if not pools:
                    continue
                header(name)
                for pool in pools:
                    sample(name, getattr(pool, attr), {"pool_id": pool.pool_id[:16]})

            header("yieldfarm_operations_total")
            for kind in sorted(self._operations):
                sample("yieldfarm_operations_total", self._operations[kind], {"kind": kind})

            add_metric("yieldfarm_rewards_paid_total", self._rewards_paid)
            add_metric("yieldfarm_reward_shortfall_total", self._reward_shortfall)
            add_metric("yieldfarm_uptime_seconds", time.time() - self._start_time)

        except Exception as e:
            logger.error(f"Error collecting metrics: {e}")
            lines.append(f"# Error collecting metrics: {e}")

        return "\n".join(lines) + "\n"

    def get_stats(self) -> Dict[str, Any]:
        """
        Get metrics as a dictionary (for JSON API).

        Returns:
            Dictionary of metric values
        """
        try:
            return {
                "pools": len(self.engine.pools),
                "active_pools": self.engine.count_active_pools(),
                "positions": len(self.engine.positions),
                "total_staked": {p.pool_id: p.total_staked for p in self.engine.list_pools()},
                "reward_reserve": self.engine.gateway.reward_reserve(),
                "operations": dict(self._operations),
                "rewards_paid": self._rewards_paid,
                "reward_shortfall": self._reward_shortfall,
                "uptime_seconds": time.time() - self._start_time,
            }
        except Exception as e:
            logger.error(f"Error getting stats: {e}")
            return {"error": str(e)}

    def reset_counters(self) -> None:
        """Reset all counters (useful for testing)."""
        self._operations = defaultdict(int)
        self._rewards_paid = 0
        self._reward_shortfall = 0
