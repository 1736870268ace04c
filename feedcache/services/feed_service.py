import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol, Tuple

from fastapi import Request
from pydantic import ValidationError as PydanticValidationError

from feedcache.config.settings import Settings
from feedcache.core.exceptions.exceptions import (
    AppError,
    EpisodeNotFoundError,
    InvalidShowIdError,
    UpstreamError,
    ValidationError,
)
from feedcache.middleware.security import Security
from feedcache.schemas.feed import Feed, PageQuery
from feedcache.schemas.invalidation import InvalidationResponse, PurgeResponse
from feedcache.services.cache_keys import CacheKeyGenerator
from feedcache.services.generation_store import GenerationStore
from feedcache.services.pagination import paginate
from feedcache.services.response_cache import ResponseCache
from feedcache.utils.log import app_logger


class FeedFetcher(Protocol):
    def fetch(self, show_id: str) -> Feed: ...


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _iso(ts: Optional[float]) -> Optional[str]:
    return datetime.fromtimestamp(ts, timezone.utc).isoformat() if ts is not None else None


class FeedService:
    """Read path and invalidation for cached show feeds.

    The cached value is always the whole feed as JSON-ready data; pages are
    cut from it on every read. Invalidation only advances the show's
    generation, the cache itself is never flushed.
    """

    def __init__(self,
                 fetcher: FeedFetcher,
                 generations: GenerationStore,
                 cache: ResponseCache,
                 keys: CacheKeyGenerator,
                 config: Settings):
        self.fetcher = fetcher
        self.generations = generations
        self.cache = cache
        self.keys = keys
        self.config = config
        self.security = Security()

    def _check_show_id(self, show_id: str) -> None:
        if not self.security.is_valid_show_id(show_id):
            raise InvalidShowIdError(show_id)

    async def _fetch(self, show_id: str) -> Dict[str, Any]:
        try:
            feed = await asyncio.to_thread(self.fetcher.fetch, show_id)
        except AppError:
            raise
        except Exception as e:
            app_logger.error("feed.fetch_error", show_id=show_id, exc_info=e)
            raise UpstreamError("feed", str(e)) from e
        return feed.model_dump(mode="json")

    async def _load(self, show_id: str, key: str) -> Dict[str, Any]:
        cached = self.cache.get(key)
        if cached is not None:
            app_logger.debug("cache.hit", show_id=show_id, key=key)
            return cached

        # only one request per key goes upstream, the others wait and re-read
        async with self.cache.lock_for(key):
            cached = self.cache.get(key)
            if cached is not None:
                app_logger.debug("cache.hit", show_id=show_id, key=key, shared=True)
                return cached

            app_logger.info("cache.miss", show_id=show_id, key=key)
            value = await self._fetch(show_id)
            self.cache.put(key, value)
            app_logger.info("cache.store", show_id=show_id, key=key, items=len(value["items"]))
            return value

    async def get_feed(self, show_id: str, query: Optional[PageQuery] = None) -> Tuple[Dict[str, Any], str]:
        self._check_show_id(show_id)
        key = self.keys.key_for(show_id, query)
        return await self._load(show_id, key), key

    async def get_page(self, show_id: str, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        try:
            query = PageQuery(page=page, limit=limit)
        except PydanticValidationError as e:
            raise ValidationError(f"invalid pagination params: page={page}, limit={limit}") from e

        feed, key = await self.get_feed(show_id, query)
        result = paginate(feed["items"], query.page, query.limit)
        description = feed.get("description") or ""

        return {
            "title": feed["title"],
            "items": result.items,
            "page": query.page,
            "limit": query.limit,
            "total_items": result.total_items,
            "_debug": {
                "timestamp": _now_iso(),
                "cache_key": key,
                "cache_control": self.config.cache_control,
                "feed_description": description[:100] + "...",
            },
        }

    async def get_episode(self, show_id: str, id_or_slug: str) -> Dict[str, Any]:
        feed, _ = await self.get_feed(show_id)
        for item in feed["items"]:
            if item["id"] == id_or_slug or item["slug"] == id_or_slug:
                return item
        raise EpisodeNotFoundError(id_or_slug)

    async def warm(self, show_id: str) -> Optional[Dict[str, Any]]:
        """Populate the current generation's slot. Failures are logged, not raised."""
        key = self.keys.key_for(show_id)
        try:
            return await self._load(show_id, key)
        except AppError as e:
            app_logger.warning("cache.warm_failed", show_id=show_id, key=key, error=e.message, status=e.status)
            return None

    async def invalidate(self, show_id: str, warm: Optional[bool] = None) -> InvalidationResponse:
        self._check_show_id(show_id)
        generation = self.generations.bump(show_id)

        if warm is None:
            warm = self.config.WARM_ON_INVALIDATE
        feed = await self.warm(show_id) if warm else None

        if feed is not None:
            message = f"Cache refreshed for {feed['title']} ({show_id})"
        else:
            message = f"Cache invalidated for {show_id}"
        return InvalidationResponse(message=message, cache_cleared=True, generation=generation, warmed=feed is not None)

    def purge(self, show_id: str) -> PurgeResponse:
        self._check_show_id(show_id)
        was_cached = self.keys.key_for(show_id) in self.cache
        generation = self.generations.bump(show_id)
        still_cached = self.keys.key_for(show_id) in self.cache
        return PurgeResponse(
            message=f"Cache purge attempted for {show_id}",
            was_cached=was_cached,
            still_cached=still_cached,
            generation=generation,
            timestamp=_now_iso(),
        )

    def describe(self, show_id: str) -> Dict[str, Any]:
        self._check_show_id(show_id)
        key = self.keys.key_for(show_id)
        entry = self.cache.entry(key)
        return {
            "id": show_id,
            "generation": self.generations.current(show_id),
            "cache_key": key,
            "key_policy": self.keys.policy,
            "has_cached_data": entry is not None,
            "stored_at": _iso(entry.stored_at) if entry else None,
            "expires_at": _iso(entry.expires_at) if entry else None,
            "cache": self.cache.stats(),
            "timestamp": _now_iso(),
        }


def get_feed_service(request: Request) -> FeedService:
    """
    returns the feed service created for this app at startup.
    """
    return request.app.state.feed_service
