"""Cache de résultats invalidable par tags (mémoire ou Redis).

- `fingerprint(operation, **params)`: empreinte déterministe `operation:sha256(params)`.
- `InMemoryTaggedCache`: implémentation locale, thread-safe, un seul calcul par empreinte.
- `RedisTaggedCache`: implémentation partagée entre workers (hash Redis + TTL natif).

Cohérence
---------
Chaque tag porte un numéro de version. Une entrée mémorise les versions de ses tags lues *avant*
son calcul; elle n'est servie que si elle n'a pas expiré et si toutes ces versions sont encore les
versions courantes. `invalidate(tag)` incrémente la version: toute lecture postérieure voit donc
l'entrée comme absente, et un calcul concurrent à l'invalidation publie une entrée déjà périmée.
Un calcul qui lève (y compris une annulation) ne publie rien.
"""

from __future__ import annotations

import hashlib
import json
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, Protocol

import redis
import structlog
from redis.exceptions import ConnectionError, TimeoutError

from bilemo.app.metrics import CACHE_INVALIDATIONS, CACHE_REQUESTS

log = structlog.get_logger(__name__)

Compute = Callable[[], bytes]


def _normalize(value: Any) -> Any:
    if isinstance(value, set | frozenset):
        return sorted(_normalize(v) for v in value)
    if isinstance(value, list | tuple):
        return [_normalize(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _normalize(v) for k, v in value.items()}
    return value


def fingerprint(operation: str, **params: Any) -> str:
    """Empreinte stable d'une opération et de ses paramètres (ensembles triés)."""
    raw = json.dumps(_normalize(params), sort_keys=True, separators=(",", ":"), default=str)
    digest = hashlib.sha256(raw.encode()).hexdigest()[:32]
    return f"{operation}:{digest}"


def _family(key: str) -> str:
    return key.split(":", 1)[0]


class TaggedResultCache(Protocol):
    def get_or_compute(
        self, key: str, tags: Iterable[str], ttl: int, compute: Compute
    ) -> bytes: ...

    def invalidate(self, *tags: str) -> None: ...


@dataclass
class _Entry:
    payload: bytes
    tag_versions: dict[str, int]
    expires_at: float


@dataclass
class _Flight:
    lock: threading.Lock = field(default_factory=threading.Lock)
    waiters: int = 0


class InMemoryTaggedCache:
    """Cache local au processus (dev/tests ou déploiement mono-worker).

    Les entrées expirées ou périmées sont balayées au plus une fois par `sweep_interval`
    secondes lors d'une écriture; au-delà de `max_entries`, les plus anciennes sont évincées.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: float = 60.0,
        max_entries: int = 10_000,
    ) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, _Entry] = {}
        self._tag_versions: dict[str, int] = {}
        self._flights: dict[str, _Flight] = {}
        self.sweep_interval = sweep_interval
        self.max_entries = max_entries
        self._next_sweep = clock() + sweep_interval

    def _is_live(self, entry: _Entry, now: float) -> bool:
        fresh = all(self._tag_versions.get(t, 0) == v for t, v in entry.tag_versions.items())
        return fresh and entry.expires_at > now

    def _lookup(self, key: str) -> bytes | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if not self._is_live(entry, self._clock()):
                del self._entries[key]
                return None
            return entry.payload

    def _store(self, key: str, entry: _Entry) -> None:
        # appelé sous self._lock
        now = self._clock()
        if now >= self._next_sweep:
            dead = [k for k, e in self._entries.items() if not self._is_live(e, now)]
            for k in dead:
                del self._entries[k]
            self._next_sweep = now + self.sweep_interval
            log.debug("cache_swept", removed=len(dead), size=len(self._entries))
        self._entries.pop(key, None)
        self._entries[key] = entry
        while len(self._entries) > self.max_entries:
            del self._entries[next(iter(self._entries))]

    def _enter_flight(self, key: str) -> _Flight:
        with self._lock:
            flight = self._flights.setdefault(key, _Flight())
            flight.waiters += 1
            return flight

    def _leave_flight(self, key: str, flight: _Flight) -> None:
        with self._lock:
            flight.waiters -= 1
            if flight.waiters == 0:
                self._flights.pop(key, None)

    def get_or_compute(self, key: str, tags: Iterable[str], ttl: int, compute: Compute) -> bytes:
        payload = self._lookup(key)
        if payload is not None:
            CACHE_REQUESTS.labels(family=_family(key), result="hit").inc()
            return payload

        flight = self._enter_flight(key)
        try:
            with flight.lock:
                # Un appelant concurrent a pu publier pendant l'attente du verrou
                payload = self._lookup(key)
                if payload is not None:
                    CACHE_REQUESTS.labels(family=_family(key), result="hit").inc()
                    return payload
                with self._lock:
                    versions = {t: self._tag_versions.get(t, 0) for t in set(tags)}
                payload = compute()
                with self._lock:
                    self._store(key, _Entry(payload, versions, self._clock() + ttl))
                CACHE_REQUESTS.labels(family=_family(key), result="miss").inc()
                log.debug("cache_miss", key=key, tags=sorted(versions))
                return payload
        finally:
            self._leave_flight(key, flight)

    def invalidate(self, *tags: str) -> None:
        with self._lock:
            for tag in tags:
                self._tag_versions[tag] = self._tag_versions.get(tag, 0) + 1
                CACHE_INVALIDATIONS.labels(tag=tag).inc()
            tagset = set(tags)
            for key in [k for k, e in self._entries.items() if tagset & e.tag_versions.keys()]:
                del self._entries[key]
        log.info("cache_invalidated", tags=list(tags))


class RedisTaggedCache:
    """Cache partagé adossé à Redis.

    Clés:
    - `{prefix}:entry:{empreinte}`: hash `{payload, tags}` avec TTL natif;
    - `{prefix}:tag:{tag}`: compteur de version du tag (`INCR` à l'invalidation).

    Une course sur un premier défaut de cache peut conduire deux workers à calculer la même
    entrée; le contenu publié reste cohérent.
    """

    def __init__(
        self,
        url: str | None = None,
        client: redis.Redis | None = None,
        prefix: str = "bilemo:cache",
    ) -> None:
        if client is None:
            if not url:
                raise ValueError("RedisTaggedCache requires a url or a client")
            client = redis.Redis.from_url(url)
        self.client = client
        self.prefix = prefix

    def _entry_key(self, key: str) -> str:
        return f"{self.prefix}:entry:{key}"

    def _tag_key(self, tag: str) -> str:
        return f"{self.prefix}:tag:{tag}"

    def _read(self, key: str, tags: list[str]) -> tuple[bytes | None, dict[str, int]]:
        """Lit l'entrée et les versions courantes des tags en un aller-retour."""
        pipe = self.client.pipeline(transaction=False)
        pipe.hgetall(self._entry_key(key))
        if tags:
            pipe.mget([self._tag_key(t) for t in tags])
        results = pipe.execute()
        raw_entry = results[0] or {}
        current = {t: int(v or 0) for t, v in zip(tags, results[1] if tags else [], strict=True)}
        if not raw_entry:
            return None, current
        stored = json.loads(raw_entry[b"tags"])
        if stored != current:
            return None, current
        return raw_entry[b"payload"], current

    def get_or_compute(self, key: str, tags: Iterable[str], ttl: int, compute: Compute) -> bytes:
        tag_list = sorted(set(tags))
        try:
            payload, versions = self._read(key, tag_list)
        except (ConnectionError, TimeoutError) as err:
            # Fail-open: on calcule sans mettre en cache
            log.warning("cache_unavailable", key=key, error=str(err))
            CACHE_REQUESTS.labels(family=_family(key), result="error").inc()
            return compute()
        if payload is not None:
            CACHE_REQUESTS.labels(family=_family(key), result="hit").inc()
            return payload

        payload = compute()
        entry_key = self._entry_key(key)
        try:
            pipe = self.client.pipeline(transaction=True)
            pipe.delete(entry_key)
            pipe.hset(entry_key, mapping={"payload": payload, "tags": json.dumps(versions)})
            pipe.expire(entry_key, ttl)
            pipe.execute()
        except (ConnectionError, TimeoutError) as err:
            log.warning("cache_store_failed", key=key, error=str(err))
        CACHE_REQUESTS.labels(family=_family(key), result="miss").inc()
        return payload

    def invalidate(self, *tags: str) -> None:
        """Incrémente la version des tags; les erreurs Redis sont propagées."""
        pipe = self.client.pipeline(transaction=True)
        for tag in tags:
            pipe.incr(self._tag_key(tag))
        pipe.execute()
        for tag in tags:
            CACHE_INVALIDATIONS.labels(tag=tag).inc()
        log.info("cache_invalidated", tags=list(tags), backend="redis")
