from typing import List, Literal, Optional
from pydantic import BaseModel, Field


class Enclosure(BaseModel):
    url: str
    length: int = 0
    type: str = "audio/mpeg"


class Itunes(BaseModel):
    duration: Optional[str] = None
    image: Optional[str] = None
    summary: Optional[str] = None
    type: Optional[Literal["full", "trailer", "bonus"]] = None


class Episode(BaseModel):
    id: str
    slug: str
    title: str
    description: str = ""
    published: Optional[str] = None
    created: Optional[str] = None
    enclosures: List[Enclosure] = Field(default_factory=list)
    itunes: Itunes = Field(default_factory=Itunes)


class Feed(BaseModel):
    """Snapshot of a show as returned by the upstream source."""
    title: str
    description: str = ""
    link: Optional[str] = None
    image: Optional[str] = None
    items: List[Episode] = Field(default_factory=list)


class PageQuery(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(10, gt=0)
