from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from typing import Optional

from feedcache.api.feeds import router as feeds_router
from feedcache.api.webhooks import router as webhooks_router
from feedcache.clients.acast_client import AcastClient, AcastFetcher
from feedcache.config.settings import Settings, settings as default_settings
from feedcache.jobs.scheduler import CacheSweeper
from feedcache.services.cache_keys import CacheKeyGenerator
from feedcache.services.feed_service import FeedFetcher, FeedService
from feedcache.services.generation_store import GenerationStore
from feedcache.services.response_cache import ResponseCache
from feedcache.utils.log import app_logger


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # bad query params are a client error, reported the same way as other 400s
    app_logger.info("api.invalid_request", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"errors": jsonable_encoder(exc.errors())},
    )


def create_app(config: Optional[Settings] = None, fetcher: Optional[FeedFetcher] = None) -> FastAPI:
    config = config or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup logic
        app_logger.logger.setLevel(config.LOG_LEVEL.upper())
        generations = GenerationStore()
        cache = ResponseCache(ttl_seconds=config.CACHE_TTL_SECONDS)
        keys = CacheKeyGenerator(generations, policy=config.CACHE_KEY_POLICY)
        feed_fetcher = fetcher or AcastFetcher(AcastClient(config))
        app.state.feed_service = FeedService(feed_fetcher, generations, cache, keys, config)

        sweeper = CacheSweeper(cache, interval_minutes=config.CACHE_SWEEP_MINUTES)
        if config.CACHE_SWEEP_ENABLED:
            sweeper.start()
        app_logger.info("app.startup", key_policy=config.CACHE_KEY_POLICY, ttl=config.CACHE_TTL_SECONDS)
        yield
        # Shutdown logic
        sweeper.shutdown()
        if fetcher is None:
            feed_fetcher.close()
        cache.clear()
        generations.clear()
        app_logger.info("app.shutdown")

    app = FastAPI(title="feedcache", lifespan=lifespan)
    app.state.settings = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["*"],
        max_age=86400,
    )
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # include routes; the webhook's POST / goes first
    app.include_router(webhooks_router)
    app.include_router(feeds_router)
    return app


app = create_app()
