"""
yieldfarm/identifiers.py

Deterministic identifiers: pool ids and per-account tags.
"""

import hashlib

from .config import ACCOUNT_TAG_DOMAIN, DEFAULT_CHAIN_CONTEXT


class PoolIdGenerator:
    """
    Derives collision-resistant pool ids.

    The hash covers (asset, rate, creation time, chain context, sequence).
    The sequence number is what keeps two identical pools created in the
    same second apart.
    """

    def __init__(self, chain_context: str = DEFAULT_CHAIN_CONTEXT, sequence: int = 0):
        self.chain_context = chain_context
        self.sequence = sequence

    def next_id(self, stake_asset_id: str, reward_rate: int, created_at: int) -> str:
        data = f"{stake_asset_id}:{reward_rate}:{created_at}:{self.chain_context}:{self.sequence}"
        self.sequence += 1
        return hashlib.sha256(data.encode()).hexdigest()


def compute_account_tag(pool_id: str, account: str) -> str:
    """Deterministic hash over (pool_id, account, ACCOUNT_TAG_DOMAIN)."""
    data = f"{pool_id}:{account}:{ACCOUNT_TAG_DOMAIN}"
    return hashlib.sha256(data.encode()).hexdigest()
