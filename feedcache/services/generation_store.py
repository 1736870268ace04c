from threading import Lock
from typing import Dict

from feedcache.utils.log import app_logger


class GenerationStore:
    """Per-show generation counters.

    A show's generation only ever grows; bumping it moves every cache key for
    that show to a fresh slot. Unseen shows are at generation 0. Counters live
    in process memory and reset on restart, together with the response cache.
    """

    EPOCH = 0

    def __init__(self):
        self._generations: Dict[str, int] = {}
        self._lock = Lock()

    def current(self, show_id: str) -> int:
        with self._lock:
            return self._generations.get(show_id, self.EPOCH)

    def bump(self, show_id: str) -> int:
        """Advance the show's generation and return the new value."""
        with self._lock:
            generation = self._generations.get(show_id, self.EPOCH) + 1
            self._generations[show_id] = generation
        app_logger.info("generation.bump", show_id=show_id, generation=generation)
        return generation

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._generations)

    def clear(self) -> None:
        with self._lock:
            self._generations.clear()
