from apscheduler.schedulers.background import BackgroundScheduler

from feedcache.services.response_cache import ResponseCache
from feedcache.utils.log import app_logger

SWEEP_JOB_ID = "cache_sweep"


class CacheSweeper:
    """Background job that drops expired response cache entries.

    Entries for superseded generations are never read again, so without the
    sweep they would only be reclaimed if someone asked for their key.
    """

    def __init__(self, cache: ResponseCache, interval_minutes: int = 10):
        self.cache = cache
        self.interval_minutes = interval_minutes
        self._scheduler = BackgroundScheduler()

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def sweep(self) -> int:
        removed = self.cache.purge_expired()
        app_logger.debug("scheduler: cache sweep", removed=removed, **self.cache.stats())
        return removed

    def start(self):
        if self._scheduler.running:
            return
        # sweep job is idempotent, replace any previous registration
        self._scheduler.add_job(self.sweep, 'interval', minutes=self.interval_minutes,
                                id=SWEEP_JOB_ID, replace_existing=True)
        self._scheduler.start()
        app_logger.info("scheduler: started", job=SWEEP_JOB_ID, minutes=self.interval_minutes)

    def shutdown(self):
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            app_logger.info("scheduler: shutdown")
