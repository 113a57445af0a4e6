from typing import Optional
from redis import Redis
from redis.exceptions import RedisError
from storefront.core.errors import StoreUnavailable

def refresh_key(user_id) -> str:
    return f"refresh_token:{user_id}"

class TokenCache:
    """TTL key-value store holding the one live refresh token per user."""

    def __init__(self, client: Redis):
        self.client = client

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            self.client.set(key, value, ex=ttl_seconds)
        except RedisError as exc:
            raise StoreUnavailable() from exc

    def get(self, key: str) -> Optional[str]:
        try:
            return self.client.get(key)
        except RedisError as exc:
            raise StoreUnavailable() from exc

    def delete(self, key: str) -> None:
        try:
            self.client.delete(key)
        except RedisError as exc:
            raise StoreUnavailable() from exc
