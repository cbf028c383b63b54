"""
yieldfarm/examples/farm_walkthrough.py

Walks two stakers through one pool:
1. Admin creates a pool and funds the reward reserve
2. Alice stakes, Bob joins later
3. Admin halves the rate
4. Both claim and exit
5. Metrics are printed in Prometheus format

Usage:
    python examples/farm_walkthrough.py
"""

import logging

import trio

from yieldfarm import (
    InMemoryTransferGateway,
    ManualClock,
    MetricsCollector,
    SettlementEngine,
    StaticAccessController,
)

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [FARM] %(levelname)s: %(message)s'
)
logger = logging.getLogger(__name__)

UNIT = 10**18


async def main():
    clock = ManualClock(1_700_000_000)
    gateway = InMemoryTransferGateway(reward_asset_id="RWD")
    engine = SettlementEngine(gateway, StaticAccessController(["admin"]), clock=clock)
    metrics = MetricsCollector(engine)

    gateway.mint("LP", "alice", 1000 * UNIT)
    gateway.mint("LP", "bob", 1000 * UNIT)
    gateway.fund_rewards(10_000 * UNIT)

    pool_id = engine.create_pool("LP", UNIT // 100, caller="admin")

    await engine.stake(pool_id, "alice", 1000 * UNIT)
    clock.advance(3600)
    await engine.stake(pool_id, "bob", 500 * UNIT)
    clock.advance(3600)

    engine.update_reward_rate(pool_id, UNIT // 200, caller="admin")
    clock.advance(3600)

    for account in ("alice", "bob"):
        logger.info(f"{account} pending: {engine.pending_rewards(pool_id, account) / UNIT:.4f} RWD")
        await engine.claim_rewards(pool_id, account)
        position = engine.get_position(pool_id, account)
        await engine.withdraw(pool_id, account, position.amount)
        logger.info(f"{account} received {gateway.balance_of('RWD', account) / UNIT:.4f} RWD")

    print(metrics.collect())


if __name__ == "__main__":
    trio.run(main)
