from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional
import re
import xml.etree.ElementTree as ET

from feedcache.core.exceptions.exceptions import UpstreamError
from feedcache.schemas.feed import Enclosure, Episode, Feed, Itunes

ITUNES_NS = "http://www.itunes.com/dtds/podcast-1.0.dtd"
ACAST_FOOTER = (
    "<br /><hr><p style='color:grey; font-size:0.75em;'> Hosted on Acast. See "
    "<a style='color:grey;' target='_blank' rel='noopener noreferrer' "
    "href='https://acast.com/privacy'>acast.com/privacy</a> for more information.</p>"
)
EPISODE_TYPES = {"full", "trailer", "bonus"}


def slugify(title: str) -> str:
    """'Episode 1: The Start' -> 'episode-1-the-start'"""
    words = re.findall(r"[a-z0-9]+", title.lower())
    return "-".join(words)


def strip_footer(text: Optional[str]) -> str:
    return (text or "").replace(ACAST_FOOTER, "").strip()


def to_iso(value: Optional[str]) -> Optional[str]:
    """RFC 822 feed date -> ISO-8601 UTC with millisecond precision."""
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value.strip())
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    parsed = parsed.astimezone(timezone.utc)
    return parsed.strftime("%Y-%m-%dT%H:%M:%S.") + f"{parsed.microsecond // 1000:03d}Z"


class FeedParser:
    def __init__(self, data: str):
        self.data = data

    def _text(self, node, tag: str) -> Optional[str]:
        child = node.find(tag)
        if child is None or child.text is None:
            return None
        return child.text.strip()

    def _itunes(self, node, name: str) -> Optional[str]:
        return self._text(node, f"{{{ITUNES_NS}}}{name}")

    def _itunes_image(self, node) -> Optional[str]:
        child = node.find(f"{{{ITUNES_NS}}}image")
        return child.get("href") if child is not None else None

    def _parse_enclosure(self, node) -> Optional[Enclosure]:
        url = node.get("url")
        if not url:
            return None
        try:
            length = int(node.get("length") or 0)
        except ValueError:
            length = 0
        return Enclosure(url=url, length=length, type=node.get("type") or "audio/mpeg")

    def _parse_item(self, node) -> Episode:
        title = self._text(node, "title") or ""
        published = to_iso(self._text(node, "pubDate"))
        episode_type = self._itunes(node, "episodeType")
        enclosures = [e for e in (self._parse_enclosure(n) for n in node.findall("enclosure")) if e]

        return Episode(
            id=self._text(node, "guid") or slugify(title),
            slug=slugify(title),
            title=title,
            description=strip_footer(self._text(node, "description")),
            published=published,
            created=published,
            enclosures=enclosures,
            itunes=Itunes(
                duration=self._itunes(node, "duration"),
                image=self._itunes_image(node),
                summary=strip_footer(self._itunes(node, "summary")),
                type=episode_type if episode_type in EPISODE_TYPES else None,
            ),
        )

    def parse_feed(self) -> Feed:
        try:
            root = ET.fromstring(self.data)
        except ET.ParseError as e:
            raise UpstreamError("acast", f"malformed feed document: {e}", status=502) from e

        channel = root.find("channel")
        if channel is None:
            raise UpstreamError("acast", "feed document has no channel", status=502)

        image = self._itunes_image(channel) or self._text(channel, "image/url")
        return Feed(
            title=self._text(channel, "title") or "",
            description=strip_footer(self._text(channel, "description")),
            link=self._text(channel, "link"),
            image=image,
            items=[self._parse_item(item) for item in channel.findall("item")],
        )
