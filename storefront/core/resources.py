from __future__ import annotations

from typing import Optional

from redis import Redis
from sqlalchemy.engine import Engine

from storefront.core.config import Settings
from storefront.core.logging import get_logger
from storefront.db.session import Base, make_engine, make_session_factory
from storefront.services.storage import ImageStorage

logger = get_logger(__name__)


class Resources:
    """Process-wide connection handles.

    Built once at startup and attached to ``app.state``; request handlers and
    components receive them through dependencies instead of importing module
    globals. ``close()`` must run at shutdown.
    """

    def __init__(self, engine: Engine, redis: Redis, images: Optional[ImageStorage] = None):
        self.engine = engine
        self.redis = redis
        self.images = images
        self.session_factory = make_session_factory(engine)

    @classmethod
    def from_settings(cls, cfg: Settings) -> "Resources":
        engine = make_engine(cfg.POSTGRES_DSN)
        redis = Redis.from_url(cfg.REDIS_URL, decode_responses=True)
        logger.info("resources_initialized", database=engine.url.render_as_string(hide_password=True))
        return cls(engine, redis, ImageStorage(cfg))

    def create_tables(self) -> None:
        import storefront.db.models  # noqa: F401
        Base.metadata.create_all(self.engine)

    def close(self) -> None:
        self.redis.close()
        self.engine.dispose()
        logger.info("resources_closed")
