"""Invalidation hook for cached product views.

Read endpoints cache product detail pages under
``cache:products:detail:<id>`` and remember every product list page key in
the ``cache:products:list-keys`` set. This service holds no read cache of
its own; after a stock change it reports which entries are stale.
"""

from __future__ import annotations

import logging

from stockledger.domain.gateway.cache_invalidator import CacheInvalidator

logger = logging.getLogger(__name__)

PRODUCTS_LIST_KEYS_SET = "cache:products:list-keys"


def product_detail_key(product_id: str) -> str:
    return f"cache:products:detail:{product_id}"


class ProductCacheInvalidator(CacheInvalidator):

    @staticmethod
    def stale_keys(product_id: str) -> list[str]:
        """The product's detail entry and the set naming every list page."""
        return [product_detail_key(product_id), PRODUCTS_LIST_KEYS_SET]

    async def invalidate(self, product_id: str) -> None:
        logger.info(
            "Stock changed for product %s, stale cache keys: %s",
            product_id,
            ", ".join(self.stale_keys(product_id)),
        )
