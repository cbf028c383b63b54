"""
yieldfarm - Multi-pool staking and reward ledger

Participants stake an asset into a pool and accrue a reward asset in
proportion to their share of the pool and the time staked. Built on:
- a per-pool reward-per-stake accumulator (O(1) settlement)
- per-position reward debt
- trio-scheduled asset transfers behind a non-reentrant guard
- Prometheus metrics for monitoring

Usage:
    import trio
    from yieldfarm import (
        SettlementEngine, InMemoryTransferGateway, StaticAccessController,
    )

    gateway = InMemoryTransferGateway(reward_asset_id="RWD")
    engine = SettlementEngine(gateway, StaticAccessController(["admin"]))

    pool_id = engine.create_pool("LP", 10**16, caller="admin")
    gateway.mint("LP", "alice", 1000 * 10**18)
    gateway.fund_rewards(10**24)

    trio.run(engine.stake, pool_id, "alice", 1000 * 10**18)
    engine.pending_rewards(pool_id, "alice")

Metrics Usage:
    from yieldfarm.metrics import MetricsCollector

    metrics = MetricsCollector(engine)
    prometheus_output = metrics.collect()
"""

from .engine import SettlementEngine
from .pools import Pool, PoolRegistry, encode_pool, decode_pool
from .positions import UserPosition, PositionLedger
from .accumulator import RewardAccumulator
from .gateway import TransferGateway, InMemoryTransferGateway
from .access import AccessController, StaticAccessController
from .identifiers import PoolIdGenerator, compute_account_tag
from .events import EventType, LedgerEvent, EventLog
from .clock import SystemClock, ManualClock
from .metrics import MetricsCollector
from .config import (
    LedgerConfig,
    PRECISION,
    ACCOUNT_TAG_DOMAIN,
    ZERO_ADDRESS,
)
from .errors import (
    LedgerError,
    ValidationError,
    ZeroAddress,
    ZeroAmount,
    PoolNotFound,
    PoolInactive,
    PoolAlreadyExists,
    InsufficientBalance,
    NoRewardsToClaim,
    AuthorizationError,
    Unauthorized,
    TransferError,
    ReentrantCall,
    ClockError,
)

__version__ = "1.0.0"
__all__ = [
    # Core
    "SettlementEngine",
    "Pool",
    "PoolRegistry",
    "UserPosition",
    "PositionLedger",
    "RewardAccumulator",
    "encode_pool",
    "decode_pool",
    # Collaborators
    "TransferGateway",
    "InMemoryTransferGateway",
    "AccessController",
    "StaticAccessController",
    "PoolIdGenerator",
    "compute_account_tag",
    "SystemClock",
    "ManualClock",
    # Notifications & Metrics
    "EventType",
    "LedgerEvent",
    "EventLog",
    "MetricsCollector",
    # Config
    "LedgerConfig",
    "PRECISION",
    "ACCOUNT_TAG_DOMAIN",
    "ZERO_ADDRESS",
    # Errors
    "LedgerError",
    "ValidationError",
    "ZeroAddress",
    "ZeroAmount",
    "PoolNotFound",
    "PoolInactive",
    "PoolAlreadyExists",
    "InsufficientBalance",
    "NoRewardsToClaim",
    "AuthorizationError",
    "Unauthorized",
    "TransferError",
    "ReentrantCall",
    "ClockError",
]
