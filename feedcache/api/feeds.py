from typing import Any, Dict
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from fastapi.responses import RedirectResponse

from feedcache.core.exceptions.exceptions import AppError
from feedcache.schemas.invalidation import InvalidationResponse, PurgeResponse
from feedcache.services.feed_service import FeedService, get_feed_service
from feedcache.utils.log import app_logger

router = APIRouter(tags=["Feeds"])


def _raise_http(e: AppError, **context) -> None:
    if e.status >= 500:
        app_logger.error("api.error", status=e.status, error=e.message, **context)
    else:
        app_logger.info("api.rejected", status=e.status, error=e.message, **context)
    raise HTTPException(status_code=e.status, detail=e.message) from e


@router.get("/", include_in_schema=False)
def root(request: Request):
    redirect_url = request.app.state.settings.ROOT_REDIRECT_URL
    if redirect_url:
        return RedirectResponse(redirect_url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    return {"service": "feedcache", "status": "ok"}


# must be registered before /{show_id}/{id_or_slug}
@router.get("/debug/{show_id}", summary="Inspect cache state for a show")
def debug_show(show_id: str, svc: FeedService = Depends(get_feed_service)) -> Dict[str, Any]:
    try:
        return svc.describe(show_id)
    except AppError as e:
        _raise_http(e, show_id=show_id)


@router.get("/{show_id}", summary="Paginated episodes of a show")
async def list_episodes(
    show_id: str,
    response: Response,
    page: int = Query(1, ge=1),
    limit: int = Query(10, gt=0),
    svc: FeedService = Depends(get_feed_service),
) -> Dict[str, Any]:
    """Return one page of the show's episodes.

    The whole feed is cached under the show's current generation; page and
    limit only select a slice of it.
    """
    try:
        body = await svc.get_page(show_id, page, limit)
    except AppError as e:
        _raise_http(e, show_id=show_id)

    response.headers["Cache-Control"] = svc.config.cache_control
    return body


@router.get("/{show_id}/{id_or_slug}", summary="Single episode by id or slug")
async def get_episode(
    show_id: str,
    id_or_slug: str,
    svc: FeedService = Depends(get_feed_service),
) -> Dict[str, Any]:
    try:
        return await svc.get_episode(show_id, id_or_slug)
    except AppError as e:
        _raise_http(e, show_id=show_id, id_or_slug=id_or_slug)


@router.post(
    "/{show_id}",
    response_model=InvalidationResponse,
    summary="Invalidate a show's cached feed",
    description="Advances the show's cache generation and prefetches the fresh feed. "
                "A failed prefetch does not undo the invalidation.",
)
async def invalidate_show(show_id: str, svc: FeedService = Depends(get_feed_service)) -> InvalidationResponse:
    try:
        result = await svc.invalidate(show_id)
    except AppError as e:
        _raise_http(e, show_id=show_id)

    app_logger.info("api.invalidate", show_id=show_id, generation=result.generation, warmed=result.warmed)
    return result


@router.delete("/{show_id}", response_model=PurgeResponse, summary="Purge a show's cached feed")
def purge_show(show_id: str, svc: FeedService = Depends(get_feed_service)) -> PurgeResponse:
    try:
        result = svc.purge(show_id)
    except AppError as e:
        _raise_http(e, show_id=show_id)

    app_logger.info("api.purge", show_id=show_id, generation=result.generation, was_cached=result.was_cached)
    return result
