import re
from urllib.parse import urlparse

from validators import url as validate_url
from validators.utils import ValidationError


class Security:
    """Input validator for show ids and webhook asset references.

    Behavior:
    - Show ids are opaque but restricted to `[A-Za-z0-9._-]`, 1-128 chars.
      Examples: `my-show`, `5f1e6c0b9a2d3e0012345678`
    - Asset references must be absolute http(s) URLs, e.g.
      `https://assets.pippa.io/shows/<show id>/<file>.m4a`
    """

    SHOW_ID_PATTERN = re.compile(r"[A-Za-z0-9._-]{1,128}")

    def is_valid_show_id(self, show_id: str) -> bool:
        if not show_id or not isinstance(show_id, str):
            return False
        # reserved path segments
        if show_id in (".", ".."):
            return False
        # whole string, a trailing newline included
        return self.SHOW_ID_PATTERN.fullmatch(show_id) is not None

    def is_valid_asset_url(self, value: str) -> bool:
        if not value or not isinstance(value, str):
            return False

        raw = value.strip()
        if urlparse(raw).scheme not in ("http", "https"):
            return False

        # Use validators.url for robust URL format validation
        try:
            return validate_url(raw) is True
        except (ValidationError, UnicodeError):
            return False
