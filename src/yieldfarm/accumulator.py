"""
yieldfarm/accumulator.py

Projects a pool's reward-per-stake accumulator forward to "now".

    increment = elapsed * rate * PRECISION // total_staked

The floor-division remainder is dropped for good. The pool's timestamp
moves to "now" even when nothing is staked, so an empty interval is
never paid out retroactively once deposits resume.
"""

import logging

from .config import PRECISION
from .errors import ClockError
from .pools import Pool

logger = logging.getLogger("yieldfarm.accumulator")


class RewardAccumulator:
    """Stateless settlement arithmetic over Pool records."""

    @staticmethod
    def _increment(pool: Pool, now: int) -> int:
        elapsed = now - pool.last_update_timestamp
        if elapsed < 0:
            raise ClockError(
                f"Clock went backwards for pool {pool.pool_id}: "
                f"{now} < {pool.last_update_timestamp}"
            )
        if pool.total_staked == 0 or elapsed == 0:
            return 0
        return elapsed * pool.reward_rate_per_second * PRECISION // pool.total_staked

    def project(self, pool: Pool, now: int) -> int:
        """Accumulator value as of `now`, without touching the pool."""
        return pool.reward_per_stake_accumulated + self._increment(pool, now)

    def settle(self, pool: Pool, now: int) -> int:
        """
        Bring the pool's accumulator up to `now`.

        Must run before reading the accumulator for a pending computation
        and before total_staked changes.

        Returns:
            The increment applied (0 when nothing was staked or no time passed)
        """
        increment = self._increment(pool, now)
        if increment:
            pool.reward_per_stake_accumulated += increment
            logger.debug(
                f"Pool {pool.pool_id} settled: +{increment} -> "
                f"{pool.reward_per_stake_accumulated}"
            )
        pool.last_update_timestamp = now
        return increment
