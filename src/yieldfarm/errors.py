"""
yieldfarm/errors.py

Exception hierarchy for ledger operations.

- ValidationError: bad input or state, detected before any mutation
- AuthorizationError: non-admin caller on a gated operation
- TransferError: a strict stake-asset move failed
- ReentrantCall: nested stake/withdraw/claim while one is in flight

A reward-reserve shortfall is not an error; payouts are clamped instead.
"""


class LedgerError(Exception):
    """Base class for all ledger errors."""
    pass


# ============================================================================
# VALIDATION
# ============================================================================

class ValidationError(LedgerError):
    """Operation rejected before any state change."""
    pass


class ZeroAddress(ValidationError):
    """An account or asset identifier was empty or the zero address."""
    pass


class ZeroAmount(ValidationError):
    """Amount must be positive."""
    pass


class PoolNotFound(ValidationError):
    """No pool registered under the given id."""
    pass


class PoolInactive(ValidationError):
    """Pool has been deactivated."""
    pass


class PoolAlreadyExists(ValidationError):
    """A pool with the derived id is already registered."""
    pass


class InsufficientBalance(ValidationError):
    """Withdrawal exceeds the position's staked amount."""
    pass


class NoRewardsToClaim(ValidationError):
    """Nothing pending for the position."""
    pass


# ============================================================================
# AUTHORIZATION / TRANSFER / RUNTIME
# ============================================================================

class AuthorizationError(LedgerError):
    """Caller lacks the required capability."""
    pass


class Unauthorized(AuthorizationError):
    """Caller is not an admin."""
    pass


class TransferError(LedgerError):
    """Strict asset movement failed; the calling operation is aborted."""
    pass


class ReentrantCall(LedgerError):
    """A guarded operation was entered while another was in flight."""
    pass


class ClockError(LedgerError):
    """The time source moved backwards relative to a pool's last update."""
    pass
