"""
yieldfarm/engine.py

Settlement engine: stake, withdraw, claim and the admin operations.

Composes PoolRegistry, RewardAccumulator and PositionLedger with an
injected TransferGateway (asset moves) and AccessController (admin gate).
Transfers are the only await points. stake/withdraw/claim_rewards hold a
non-reentrant guard for their whole duration, so a hostile asset that
calls back into the engine mid-transfer fails fast with ReentrantCall.

Usage:
    gateway = InMemoryTransferGateway()
    access = StaticAccessController(["admin"])
    engine = SettlementEngine(gateway, access)

    pool_id = engine.create_pool("LP", 10**16, caller="admin")
    await engine.stake(pool_id, "alice", 1000 * 10**18)
    ...
    paid = await engine.claim_rewards(pool_id, "alice")
"""

import logging
from contextlib import contextmanager
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional

from .accumulator import RewardAccumulator
from .access import AccessController
from .clock import SystemClock
from .config import LedgerConfig, is_zero_address
from .errors import (
    InsufficientBalance,
    NoRewardsToClaim,
    PoolAlreadyExists,
    PoolInactive,
    ReentrantCall,
    ValidationError,
    ZeroAddress,
    ZeroAmount,
)
from .events import EventLog, EventType, LedgerEvent
from .gateway import TransferGateway
from .identifiers import PoolIdGenerator, compute_account_tag
from .pools import Pool, PoolRegistry, encode_pool
from .positions import PositionLedger, UserPosition, accrued

logger = logging.getLogger("yieldfarm.engine")


class SettlementEngine:
    """
    Multi-pool staking/reward ledger.

    Each pool keeps a reward-per-stake accumulator; each position keeps a
    reward debt. Pending reward for a position is

        amount * accumulated // 1e18 - reward_debt

    and is settled whenever the position is touched, without iterating
    over other participants.
    """

    def __init__(
        self,
        gateway: TransferGateway,
        access: AccessController,
        clock: Optional[Callable[[], int]] = None,
        config: Optional[LedgerConfig] = None,
        id_generator: Optional[PoolIdGenerator] = None,
    ):
        self.gateway = gateway
        self.access = access
        self.clock = clock or SystemClock()
        self.config = config or LedgerConfig()
        self.id_generator = id_generator or PoolIdGenerator(self.config.chain_context)

        self.pools = PoolRegistry()
        self.positions = PositionLedger()
        self.accumulator = RewardAccumulator()
        self.events = EventLog(maxlen=self.config.event_log_maxlen)

        # Callbacks
        self._on_event: List[Callable[[LedgerEvent], None]] = []

        # Guard
        self._entered = False
        self._current_operation = ""

    # ========================================================================
    # GUARD / NOTIFICATIONS
    # ========================================================================

    @contextmanager
    def _non_reentrant(self, operation: str):
        if self._entered:
            logger.warning(f"Reentrant {operation} rejected while {self._current_operation} in flight")
            raise ReentrantCall(f"{operation} called while {self._current_operation} is in progress")
        self._entered = True
        self._current_operation = operation
        try:
            yield
        finally:
            self._entered = False
            self._current_operation = ""

    def _require_unlocked(self, operation: str) -> None:
        if self._entered:
            logger.warning(f"{operation} rejected while {self._current_operation} in flight")
            raise ReentrantCall(f"{operation} called while {self._current_operation} is in progress")

    @property
    def is_locked(self) -> bool:
        """True while a stake, withdraw, claim or rescue is in flight."""
        return self._entered

    def on_event(self, callback: Callable[[LedgerEvent], None]) -> None:
        """Register a notification callback."""
        self._on_event.append(callback)

    def _emit(
        self,
        event_type: EventType,
        pool_id: str,
        account: str,
        amount: int,
        timestamp: int,
        **meta: Any,
    ) -> LedgerEvent:
        event = LedgerEvent(
            event_type=event_type,
            pool_id=pool_id,
            account=account,
            amount=amount,
            timestamp=timestamp,
            meta=meta,
        )
        self.events.add(event)
        for callback in self._on_event:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Event callback error ({event_type.value}): {e}")
        return event

    # ========================================================================
    # USER OPERATIONS
    # ========================================================================

    async def stake(self, pool_id: str, account: str, amount: int) -> UserPosition:
        """
        Deposit `amount` of the pool's stake asset for `account`.

        Any reward pending on an existing position is paid out first
        (clamped to the reserve). If pulling the stake asset fails, nothing
        in the ledger changes and TransferError propagates.

        Returns:
            Copy of the updated position
        """
        with self._non_reentrant("stake"):
            if is_zero_address(account):
                raise ZeroAddress("Account must be set")
            pool = self.pools.require(pool_id)
            if not pool.active:
                raise PoolInactive(f"Pool is not active: {pool_id}")
            if amount <= 0:
                raise ZeroAmount("Stake amount must be positive")

            await self.gateway.pull_stake(account, pool.stake_asset_id, amount)

            now = self.clock()
            self.accumulator.settle(pool, now)

            position = self.positions.get_or_create(pool_id, account)
            pending = self.positions.compute_pending(pool, position)

            position.amount += amount
            self.positions.settle(pool, position, now)
            pool.total_staked += amount

            if pending > 0:
                await self._pay_reward(pool, position, pending, now)

            self._emit(EventType.STAKED, pool_id, account, position.amount, now, staked=amount)
            logger.info(f"{account} staked {amount} in {pool_id} (position {position.amount})")
            return replace(position)

    async def withdraw(self, pool_id: str, account: str, amount: int) -> UserPosition:
        """
        Return `amount` of stake to `account`, paying pending reward.

        Ledger state is updated before the stake asset is pushed. If the
        push fails the position and pool totals are put back and
        TransferError propagates. Allowed on inactive pools.

        Returns:
            Copy of the updated position
        """
        with self._non_reentrant("withdraw"):
            if is_zero_address(account):
                raise ZeroAddress("Account must be set")
            pool = self.pools.require(pool_id)
            if amount <= 0:
                raise ZeroAmount("Withdraw amount must be positive")
            position = self.positions.get(pool_id, account)
            staked = position.amount if position else 0
            if amount > staked:
                raise InsufficientBalance(
                    f"Cannot withdraw {amount} from {pool_id}: {account} has {staked}"
                )

            now = self.clock()
            self.accumulator.settle(pool, now)
            pending = self.positions.compute_pending(pool, position)

            previous = replace(position)
            position.amount -= amount
            self.positions.settle(pool, position, now)
            pool.total_staked -= amount

            try:
                await self.gateway.push_stake(account, pool.stake_asset_id, amount)
            except BaseException:
                # accumulator stays settled; only this call's deltas are undone
                position.amount = previous.amount
                position.reward_debt = previous.reward_debt
                position.last_claim_timestamp = previous.last_claim_timestamp
                pool.total_staked += amount
                logger.warning(f"Withdraw of {amount} from {pool_id} by {account} aborted")
                raise

            if pending > 0:
                await self._pay_reward(pool, position, pending, now)

            self._emit(EventType.WITHDRAWN, pool_id, account, position.amount, now, withdrawn=amount)
            logger.info(f"{account} withdrew {amount} from {pool_id} (position {position.amount})")
            return replace(position)

    async def claim_rewards(self, pool_id: str, account: str) -> int:
        """
        Pay out everything pending for `account` in `pool_id`.

        Fails with NoRewardsToClaim, touching nothing, when nothing is
        pending. A reserve shortfall pays what is available and succeeds.

        Returns:
            Reward units actually transferred
        """
        with self._non_reentrant("claim_rewards"):
            if is_zero_address(account):
                raise ZeroAddress("Account must be set")
            pool = self.pools.require(pool_id)
            position = self.positions.get(pool_id, account)

            now = self.clock()
            if position is None or self._project_pending(pool, position, now) <= 0:
                raise NoRewardsToClaim(f"No rewards to claim for {account} in {pool_id}")

            self.accumulator.settle(pool, now)
            pending = self.positions.compute_pending(pool, position)
            previous_claim = position.last_claim_timestamp
            self.positions.settle(pool, position, now)

            try:
                return await self._pay_reward(pool, position, pending, now)
            except BaseException:
                position.last_claim_timestamp = previous_claim
                raise

    async def _pay_reward(self, pool: Pool, position: UserPosition, owed: int, now: int) -> int:
        """
        Transfer `owed` reward to the position's account.

        The debt has already been reset when this runs. If the transfer
        aborts (cancellation included) the debt is lowered by `owed`, so
        the reward stays pending instead of vanishing.
        """
        try:
            paid = await self.gateway.safe_reward_transfer(position.account, owed)
        except BaseException:
            position.reward_debt -= owed
            logger.warning(f"Reward payout of {owed} to {position.account} aborted; kept pending")
            raise
        position.total_claimed += paid
        self._emit(
            EventType.REWARD_PAID,
            pool.pool_id,
            position.account,
            paid,
            now,
            owed=owed,
            shortfall=owed - paid,
        )
        logger.info(f"Paid {paid}/{owed} reward to {position.account} from {pool.pool_id}")
        return paid

    # ========================================================================
    # ADMIN OPERATIONS
    # ========================================================================

    def create_pool(self, stake_asset_id: str, reward_rate_per_second: int, caller: str) -> str:
        """
        Register a new pool. Admin only.

        Returns:
            The new pool id
        """
        self.access.require_admin(caller)
        self._require_unlocked("create_pool")
        if is_zero_address(stake_asset_id):
            raise ZeroAddress("Stake asset must be set")
        if reward_rate_per_second < 0:
            raise ValidationError("Reward rate must be non-negative")

        now = self.clock()
        pool_id = self.id_generator.next_id(stake_asset_id, reward_rate_per_second, now)
        if pool_id in self.pools:
            raise PoolAlreadyExists(f"Pool already exists: {pool_id}")

        self.pools.add(Pool(
            pool_id=pool_id,
            stake_asset_id=stake_asset_id,
            reward_rate_per_second=reward_rate_per_second,
            last_update_timestamp=now,
            created_at=now,
        ))

        self._emit(
            EventType.POOL_CREATED, pool_id, caller, reward_rate_per_second, now,
            stake_asset_id=stake_asset_id,
        )
        logger.info(f"Pool created: {pool_id} ({stake_asset_id} @ {reward_rate_per_second}/s)")
        return pool_id

    def update_reward_rate(self, pool_id: str, new_rate: int, caller: str) -> None:
        """Change a pool's rate. Accrual up to now is frozen at the old rate first."""
        self.access.require_admin(caller)
        self._require_unlocked("update_reward_rate")
        pool = self.pools.require(pool_id)
        if not pool.active:
            raise PoolInactive(f"Pool is not active: {pool_id}")
        if new_rate < 0:
            raise ValidationError("Reward rate must be non-negative")

        now = self.clock()
        self.accumulator.settle(pool, now)
        old_rate = pool.reward_rate_per_second
        pool.reward_rate_per_second = new_rate

        self._emit(EventType.REWARD_RATE_UPDATED, pool_id, caller, new_rate, now, old_rate=old_rate)
        logger.info(f"Pool {pool_id} rate {old_rate} -> {new_rate}")

    def deactivate_pool(self, pool_id: str, caller: str) -> None:
        """Block new stakes. Existing positions can still withdraw and claim."""
        self.access.require_admin(caller)
        self._require_unlocked("deactivate_pool")
        pool = self.pools.require(pool_id)
        if not pool.active:
            raise PoolInactive(f"Pool is already inactive: {pool_id}")

        now = self.clock()
        self.accumulator.settle(pool, now)
        pool.active = False

        self._emit(EventType.POOL_DEACTIVATED, pool_id, caller, pool.total_staked, now)
        logger.info(f"Pool deactivated: {pool_id}")

    async def rescue_asset(self, asset_id: str, amount: int, caller: str) -> None:
        """Emergency recovery: push custody funds to the admin, bypassing pool accounting."""
        self.access.require_admin(caller)
        if is_zero_address(asset_id):
            raise ZeroAddress("Asset must be set")
        if amount <= 0:
            raise ZeroAmount("Rescue amount must be positive")

        with self._non_reentrant("rescue_asset"):
            await self.gateway.push_stake(caller, asset_id, amount)

            self._emit(EventType.ASSET_RESCUED, "", caller, amount, self.clock(), asset_id=asset_id)
            logger.warning(f"Rescued {amount} {asset_id} to {caller}")

    # ========================================================================
    # QUERIES
    # ========================================================================

    def get_pool(self, pool_id: str) -> Optional[Pool]:
        pool = self.pools.get(pool_id)
        return replace(pool) if pool else None

    def get_position(self, pool_id: str, account: str) -> Optional[UserPosition]:
        position = self.positions.get(pool_id, account)
        return replace(position) if position else None

    def list_pools(self) -> List[Pool]:
        return [replace(p) for p in self.pools.all()]

    def list_active_pools(self) -> List[Pool]:
        return [replace(p) for p in self.pools.active()]

    def count_active_pools(self) -> int:
        return self.pools.count_active()

    def _project_pending(self, pool: Pool, position: UserPosition, now: int) -> int:
        # an emptied position can still carry reward whose payout was aborted
        accumulated = self.accumulator.project(pool, now)
        return accrued(position.amount, accumulated) - position.reward_debt

    def pending_rewards(self, pool_id: str, account: str) -> int:
        """Reward `account` could claim right now. Read-only."""
        pool = self.pools.require(pool_id)
        position = self.positions.get(pool_id, account)
        if position is None:
            return 0
        return self._project_pending(pool, position, self.clock())

    def encode_pool(self, pool_id: str) -> bytes:
        """Canonical byte encoding of the stored pool record."""
        return encode_pool(self.pools.require(pool_id))

    def compute_account_tag(self, pool_id: str, account: str) -> str:
        return compute_account_tag(pool_id, account)

    # ========================================================================
    # PERSISTENCE
    # ========================================================================

    def snapshot(self) -> Dict[str, Any]:
        """Whole ledger state as a JSON-compatible dict."""
        return {
            "config": self.config.to_dict(),
            "id_sequence": self.id_generator.sequence,
            "pools": [p.to_dict() for p in self.pools.all()],
            "positions": [p.to_dict() for p in self.positions.all()],
        }

    def restore(self, data: Dict[str, Any]) -> None:
        """Replace ledger state with a snapshot() result."""
        if self._entered:
            raise ReentrantCall("Cannot restore while an operation is in progress")

        self.pools.clear()
        self.positions.clear()
        for item in data.get("pools", []):
            self.pools.add(Pool.from_dict(item))
        for item in data.get("positions", []):
            self.positions.put(UserPosition.from_dict(item))
        self.id_generator.sequence = int(data.get("id_sequence", 0))

        logger.info(f"Restored {len(self.pools)} pools and {len(self.positions)} positions")
