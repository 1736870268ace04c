"""
Shared fixtures: a fake upstream fetcher and app/service builders.
"""

import time
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from feedcache.config.settings import Settings
from feedcache.main import create_app
from feedcache.schemas.feed import Feed
from feedcache.services.cache_keys import CacheKeyGenerator
from feedcache.services.feed_service import FeedService
from feedcache.services.generation_store import GenerationStore
from feedcache.services.response_cache import ResponseCache


def make_episode(key: str, day: int) -> Dict:
    return {
        "id": key,
        "slug": key,
        "title": key.replace("-", " ").title(),
        "description": f"Description of {key}",
        "created": f"2025-01-{day:02d}T00:00:00.000Z",
        "published": f"2025-01-{day:02d}T00:00:00.000Z",
        "enclosures": [{"url": f"http://example.com/{key}.mp3", "length": day * 1000, "type": "audio/mpeg"}],
        "itunes": {
            "duration": f"{day * 10}:00",
            "image": f"http://example.com/{key}.jpg",
            "summary": f"Summary of {key}",
            "type": "full",
        },
    }


def webhook_body(show_id: str) -> Dict:
    return {
        "event": "episodePublished",
        "id": "68b19fb2e9dcbdcab9422bcd",
        "title": "New episode",
        "status": "published",
        "publishDate": "2025-08-29T12:40:17.897Z",
        "coverUrl": "https://open-static.acast.com/global/images/default-cover.png",
        "audioUrl": f"https://assets.pippa.io/shows/{show_id}/1756471180495-09ec73c1-7d20-4a7d-bada-74640a2ea0f4.m4a",
    }


class FakeFetcher:
    """Stands in for the Acast feed; episodes can be prepended like new releases."""

    def __init__(self, episodes: Optional[List[Dict]] = None):
        self.episodes = list(episodes or [])
        self.calls: List[str] = []
        self.error: Optional[Exception] = None
        self.delay = 0.0

    def add_episode(self, episode: Dict) -> None:
        self.episodes.insert(0, episode)

    def fetch(self, show_id: str) -> Feed:
        self.calls.append(show_id)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return Feed(
            title="Test Podcast",
            description="A test podcast",
            link="http://example.com",
            image="http://example.com/image.jpg",
            items=self.episodes,
        )


@pytest.fixture
def episodes():
    """Five episodes, newest last."""
    return [make_episode(f"episode-{n}", n) for n in range(1, 6)]


@pytest.fixture
def fetcher(episodes):
    return FakeFetcher(episodes)


@pytest.fixture
def settings():
    return Settings(CACHE_SWEEP_ENABLED=False)


@pytest.fixture
def feed_service(fetcher, settings):
    generations = GenerationStore()
    return FeedService(
        fetcher,
        generations,
        ResponseCache(ttl_seconds=settings.CACHE_TTL_SECONDS),
        CacheKeyGenerator(generations, policy=settings.CACHE_KEY_POLICY),
        settings,
    )


@pytest.fixture
def client(fetcher, settings):
    app = create_app(settings, fetcher=fetcher)
    with TestClient(app) as test_client:
        yield test_client
