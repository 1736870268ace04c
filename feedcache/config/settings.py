from pydantic_settings import BaseSettings
from dotenv import load_dotenv, find_dotenv
from typing import Literal, Optional

_env_path = find_dotenv()  # locate a .env file in this folder or parent folders
if _env_path:
    load_dotenv(_env_path)


class Settings(BaseSettings):
    # Response cache
    CACHE_TTL_SECONDS: int = 3600
    # 'generation' keys by show + generation only, 'page' also folds page/limit in
    CACHE_KEY_POLICY: Literal["generation", "page"] = "generation"
    CACHE_SWEEP_MINUTES: int = 10
    CACHE_SWEEP_ENABLED: bool = True

    # Invalidation
    WARM_ON_INVALIDATE: bool = True

    # Upstream feed source
    FEED_BASE_URL: str = "https://feeds.acast.com"
    FEED_TIMEOUT: int = 30
    FEED_MAX_RETRIES: int = 2
    FEED_RETRY_DELAY: float = 1.0

    # Misc
    # GET / redirects here when set
    ROOT_REDIRECT_URL: Optional[str] = None
    LOG_LEVEL: str = "INFO"

    @property
    def cache_control(self) -> str:
        return f"max-age={self.CACHE_TTL_SECONDS}"


settings = Settings()
