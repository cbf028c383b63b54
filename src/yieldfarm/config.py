"""
yieldfarm/config.py

Configuration constants and data classes for yieldfarm.
"""

from dataclasses import dataclass, field
from typing import Optional


# Fixed-point scale for the reward-per-stake accumulator
PRECISION = 10**18

# Domain separator mixed into per-account tags
ACCOUNT_TAG_DOMAIN = "YIELD_FARMING_USER"

# Sentinel for "no address"
ZERO_ADDRESS = "0x" + "0" * 40

# Default asset identifier of the reward token
DEFAULT_REWARD_ASSET = "REWARD"

# Default context mixed into pool ids (chain id, deployment name, ...)
DEFAULT_CHAIN_CONTEXT = "yieldfarm:local"

# Canonical encoding parameters
WORD_SIZE = 32                  # bytes per encoded field
POOL_ENCODED_FIELDS = 6         # asset, total, rate, last update, accumulator, active

# Event history kept in memory by default (None = unbounded)
DEFAULT_EVENT_LOG_MAXLEN: Optional[int] = 10_000


def is_zero_address(address: str) -> bool:
    """Check whether an address/asset identifier is empty or the zero address."""
    return not address or address == ZERO_ADDRESS


@dataclass
class LedgerConfig:
    """Settings for a SettlementEngine instance."""
    chain_context: str = DEFAULT_CHAIN_CONTEXT
    reward_asset_id: str = DEFAULT_REWARD_ASSET
    event_log_maxlen: Optional[int] = DEFAULT_EVENT_LOG_MAXLEN
    labels: dict = field(default_factory=dict)  # extra metric labels

    def to_dict(self) -> dict:
        return {
            "chain_context": self.chain_context,
            "reward_asset_id": self.reward_asset_id,
            "event_log_maxlen": self.event_log_maxlen,
            "labels": dict(self.labels),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LedgerConfig":
        return cls(
            chain_context=data.get("chain_context", DEFAULT_CHAIN_CONTEXT),
            reward_asset_id=data.get("reward_asset_id", DEFAULT_REWARD_ASSET),
            event_log_maxlen=data.get("event_log_maxlen", DEFAULT_EVENT_LOG_MAXLEN),
            labels=dict(data.get("labels", {})),
        )
