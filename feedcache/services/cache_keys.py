from typing import Optional

from feedcache.schemas.feed import PageQuery
from feedcache.services.generation_store import GenerationStore

GENERATION_POLICY = "generation"
PAGE_POLICY = "page"


class CacheKeyGenerator:
    """Builds response cache keys from the show's current generation.

    With the `generation` policy the key ignores page/limit: one slot holds the
    whole feed and pagination is applied on read. The `page` policy gives every
    page/limit pair its own slot.
    """

    def __init__(self, generations: GenerationStore, policy: str = GENERATION_POLICY):
        if policy not in (GENERATION_POLICY, PAGE_POLICY):
            raise ValueError(f"unknown cache key policy: {policy}")
        self.generations = generations
        self.policy = policy

    @staticmethod
    def base_key(show_id: str, generation: int) -> str:
        return f"feed:{show_id}:g{generation}"

    def key_for(self, show_id: str, query: Optional[PageQuery] = None) -> str:
        key = self.base_key(show_id, self.generations.current(show_id))
        if self.policy == PAGE_POLICY:
            # no query means the default page
            query = query or PageQuery()
            key = f"{key}:p{query.page}:l{query.limit}"
        return key
