"""
Conteneur d'injection de dépendances et configuration application.

Instancie les composants centraux (settings, moteur SQL, registre d'exposition, cache à tags) une
seule fois par processus. Les routes y accèdent via `request.app.state.container`.
"""

from __future__ import annotations

import structlog

from bilemo.core.settings import Settings, get_settings
from bilemo.domain.catalog import build_registry
from bilemo.infra.cache import InMemoryTaggedCache, RedisTaggedCache, TaggedResultCache
from bilemo.infra.repo.db import get_engine, get_session_factory
from bilemo.infra.repo.models import Base, Brand, Customer, Smartphone

log = structlog.get_logger(__name__)


class Container:
    def __init__(self, settings: Settings | None = None, cache: TaggedResultCache | None = None):
        self.settings = settings or get_settings()
        self.engine = get_engine(self.settings.DATABASE_URL)
        self.session_factory = get_session_factory(self.engine)
        if self.settings.DB_AUTO_CREATE:
            Base.metadata.create_all(self.engine)

        # Un type servi par l'API sans schéma d'exposition est une erreur de démarrage
        self.registry = build_registry()
        self.registry.require(Customer, Smartphone, Brand)

        if cache is not None:
            self.cache = cache
            self.cache_backend = "custom"
        else:
            self.cache, self.cache_backend = self._build_cache()

    def _build_cache(self) -> tuple[TaggedResultCache, str]:
        if self.settings.REDIS_URL:
            try:
                cache = RedisTaggedCache(url=self.settings.REDIS_URL)
                cache.client.ping()
                return cache, "redis"
            except Exception as err:
                if self.settings.REQUIRE_REDIS:
                    raise RuntimeError("Redis required but unavailable") from err
                log.warning("redis_unavailable_fallback_memory", error=str(err))
                return InMemoryTaggedCache(), "memory-fallback"
        if self.settings.REQUIRE_REDIS:
            raise RuntimeError("Redis required but REDIS_URL not set")
        return InMemoryTaggedCache(), "memory"
