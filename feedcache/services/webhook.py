from typing import Any
from urllib.parse import unquote, urlparse

from pydantic import ValidationError as PydanticValidationError

from feedcache.core.exceptions.exceptions import WebhookPayloadError
from feedcache.middleware.security import Security
from feedcache.schemas.invalidation import WebhookPayload

SHOWS_SEGMENT = "shows"


def parse_payload(body: Any) -> WebhookPayload:
    if not isinstance(body, dict):
        raise WebhookPayloadError("body must be a JSON object")
    try:
        return WebhookPayload.model_validate(body)
    except PydanticValidationError as e:
        raise WebhookPayloadError(f"unexpected field types ({e.error_count()} errors)") from e


def show_id_from_asset_url(asset_url: str) -> str:
    """Pull the show id out of an asset URL.

    https://assets.pippa.io/shows/<show id>/<file>.m4a -> <show id>
    """
    sec = Security()
    if not sec.is_valid_asset_url(asset_url):
        raise WebhookPayloadError(f"audioUrl is not a valid URL: {asset_url!r}")

    segments = [s for s in urlparse(asset_url.strip()).path.split("/") if s]
    try:
        index = segments.index(SHOWS_SEGMENT)
    except ValueError:
        raise WebhookPayloadError(f"audioUrl has no '{SHOWS_SEGMENT}' segment: {asset_url!r}") from None

    if index + 1 >= len(segments):
        raise WebhookPayloadError(f"audioUrl has no show id after '{SHOWS_SEGMENT}': {asset_url!r}")

    show_id = unquote(segments[index + 1])
    if not sec.is_valid_show_id(show_id):
        raise WebhookPayloadError(f"audioUrl carries an invalid show id: {show_id!r}")
    return show_id


def extract_show_id(body: Any) -> str:
    """Derive the show a webhook delivery refers to.

    Raises WebhookPayloadError for anything that does not carry a usable
    `audioUrl`; callers must not touch any generation in that case.
    """
    payload = parse_payload(body)
    if not payload.audio_url:
        raise WebhookPayloadError("missing audioUrl")
    return show_id_from_asset_url(payload.audio_url)
