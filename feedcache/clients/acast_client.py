from feedcache.config.settings import Settings, settings as default_settings
from feedcache.clients.base_http_client import BaseHTTPClient
from feedcache.schemas.feed import Feed
from feedcache.utils.log import app_logger
from feedcache.utils.parser import FeedParser


class AcastClient(BaseHTTPClient):
    service_name = "acast"

    def __init__(self, config: Settings = default_settings):
        super().__init__(
            base_url=config.FEED_BASE_URL,
            timeout=config.FEED_TIMEOUT,
            max_retries=config.FEED_MAX_RETRIES,
            retry_delay=config.FEED_RETRY_DELAY,
            accept="application/rss+xml, application/xml;q=0.9, */*;q=0.8",
        )

    def get_show_rss(self, show_id: str) -> str:
        """ Download the public RSS document for a show. """
        return self.get_text(f"/public/shows/{show_id}")


class AcastFetcher:
    """Resource fetcher backed by the public Acast feeds.

    Blocking; the feed service runs it in a worker thread.
    """

    def __init__(self, client: AcastClient = None):
        self.client = client or AcastClient()

    def fetch(self, show_id: str) -> Feed:
        raw = self.client.get_show_rss(show_id)
        feed = FeedParser(raw).parse_feed()
        app_logger.info("acast.fetched", show_id=show_id, items=len(feed.items))
        return feed

    def close(self):
        self.client.close()
