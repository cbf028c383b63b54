"""
yieldfarm/access.py

Capability check for administrative operations, injected into the engine.
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, Set

from .errors import Unauthorized

logger = logging.getLogger("yieldfarm.access")


class AccessController(ABC):
    """Abstract admin gate."""

    @abstractmethod
    def is_admin(self, caller: str) -> bool:
        """Whether caller may perform administrative mutations."""
        pass

    def require_admin(self, caller: str) -> None:
        if not self.is_admin(caller):
            logger.warning(f"Rejected admin operation from {caller}")
            raise Unauthorized(f"Caller is not an admin: {caller}")


class StaticAccessController(AccessController):
    """Admin set held in memory."""

    def __init__(self, admins: Iterable[str] = ()):
        self._admins: Set[str] = set(admins)

    def is_admin(self, caller: str) -> bool:
        return caller in self._admins

    def grant(self, account: str) -> None:
        self._admins.add(account)
        logger.info(f"Admin granted: {account}")

    def revoke(self, account: str) -> None:
        self._admins.discard(account)
        logger.info(f"Admin revoked: {account}")

    @property
    def admins(self) -> Set[str]:
        return set(self._admins)
