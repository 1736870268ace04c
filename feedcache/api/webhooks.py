from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, Response, status

from feedcache.core.exceptions.exceptions import WebhookPayloadError
from feedcache.services.feed_service import FeedService, get_feed_service
from feedcache.services.webhook import extract_show_id
from feedcache.utils.log import app_logger

router = APIRouter(tags=["Webhooks"])


@router.post(
    "/",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Acast episode webhook",
    responses={
        204: {"description": "Show generation advanced"},
        400: {"description": "Body is not JSON or carries no usable audioUrl"},
        500: {"description": "Internal error while invalidating"},
    },
)
async def acast_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    svc: FeedService = Depends(get_feed_service),
) -> Response:
    """Invalidate the show an Acast event refers to.

    The show id is taken from the `audioUrl` asset path. The response goes out
    as soon as the generation is bumped; the prefetch of the new feed runs as
    a background task afterwards.
    """
    try:
        body = await request.json()
    except ValueError:
        app_logger.info("webhook.rejected", reason="body is not valid JSON")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="body is not valid JSON")

    try:
        show_id = extract_show_id(body)
    except WebhookPayloadError as e:
        app_logger.info("webhook.rejected", reason=e.detail, event=body.get("event") if isinstance(body, dict) else None)
        raise HTTPException(status_code=e.status, detail=e.message)

    try:
        result = await svc.invalidate(show_id, warm=False)
    except Exception as e:
        app_logger.error("webhook.error", show_id=show_id, exc_info=e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to invalidate show cache.",
        )

    app_logger.info("webhook.invalidated", show_id=show_id, generation=result.generation, event=body.get("event"))
    if svc.config.WARM_ON_INVALIDATE:
        background_tasks.add_task(svc.warm, show_id)

    return Response(status_code=status.HTTP_204_NO_CONTENT)
