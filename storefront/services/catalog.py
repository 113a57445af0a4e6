import json
from typing import Any, Dict, List
from redis import Redis
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from storefront.core.errors import NotFound, StoreUnavailable
from storefront.core.logging import get_logger
from storefront.schemas import ProductRead
from storefront.store.products import ProductRepository

logger = get_logger(__name__)

FEATURED_KEY = "featured_products"

class CatalogCache:
    """Read-through cache of the featured products, refreshed on writes.

    The entry has no TTL. It only goes stale if a write that changes the
    featured set skips ``invalidate()``, so every such write must call it
    after its commit.
    """

    def __init__(self, client: Redis, products: ProductRepository):
        self.client = client
        self.products = products

    def _load_featured(self) -> List[Dict[str, Any]]:
        return [ProductRead.model_validate(p).model_dump(mode="json") for p in self.products.find_all(is_featured=True)]

    def _write(self, featured: List[Dict[str, Any]]) -> None:
        self.client.set(FEATURED_KEY, json.dumps(featured))

    def get_featured(self) -> List[Dict[str, Any]]:
        try:
            cached = self.client.get(FEATURED_KEY)
        except RedisError as exc:
            logger.error("featured_cache_read_failed", error=str(exc))
            raise StoreUnavailable() from exc
        if cached is not None:
            return json.loads(cached)

        try:
            featured = self._load_featured()
        except SQLAlchemyError as exc:
            logger.error("featured_query_failed", error=str(exc))
            raise NotFound("No featured products found") from exc

        try:
            self._write(featured)
        except RedisError as exc:
            # result is still correct, the next read simply misses again
            logger.warning("featured_cache_populate_failed", error=str(exc))
        return featured

    def invalidate(self) -> None:
        try:
            self._write(self._load_featured())
        except (RedisError, SQLAlchemyError) as exc:
            logger.error("featured_cache_refresh_failed", error=str(exc))
