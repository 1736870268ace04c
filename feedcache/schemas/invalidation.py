from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class WebhookPayload(BaseModel):
    """Episode event pushed by Acast.

    Only `audioUrl` matters for invalidation; unknown fields are kept so
    they show up in logs.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    event: Optional[str] = None
    id: Optional[str] = None
    title: Optional[str] = None
    status: Optional[str] = None
    publish_date: Optional[str] = Field(None, alias="publishDate")
    cover_url: Optional[str] = Field(None, alias="coverUrl")
    audio_url: Optional[str] = Field(None, alias="audioUrl")


class InvalidationResponse(BaseModel):
    message: str = Field(..., description="Human-readable message")
    cache_cleared: bool = Field(True, description="Whether the show's generation was advanced")
    generation: int = Field(..., description="Generation now in effect for the show")
    warmed: bool = Field(False, description="Whether the new generation was prefetched")


class PurgeResponse(BaseModel):
    message: str
    was_cached: bool
    still_cached: bool
    generation: int
    timestamp: str
