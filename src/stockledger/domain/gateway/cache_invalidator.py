"""Port for dropping cached product reads after a stock write."""

from __future__ import annotations

from abc import ABC, abstractmethod


class CacheInvalidator(ABC):

    @abstractmethod
    async def invalidate(self, product_id: str) -> None:
        """Forget cached views of *product_id*. Must be idempotent."""


class NullCacheInvalidator(CacheInvalidator):
    """Used when no read cache is deployed."""

    async def invalidate(self, product_id: str) -> None:
        return None
