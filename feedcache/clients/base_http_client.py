import requests
import time
import re

from typing import Dict, Optional
from urllib.parse import urljoin
from abc import ABC
from feedcache.core.exceptions.exceptions import UpstreamError
from feedcache.utils.log import app_logger

class BaseHTTPClient(ABC):
    """Base HTTP client with retries, rate-limit handling and error mapping.

    Failures surface as `UpstreamError` carrying the upstream status code when
    there was one, so callers never deal with `requests` exceptions directly.
    """

    service_name = "upstream"
    USER_AGENT = "feedcache/0.1 (+https://github.com)"
    MAX_RETRY_AFTER = 30

    def __init__(self,
                 base_url: str,
                 timeout: int = 30, max_retries: int = 3,
                 retry_delay: float = 1.5,
                 accept: Optional[str] = 'application/json'
                 ):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.accept = accept
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.session = requests.Session()

        # setup default headers
        self._setup_default_headers()

    def _setup_default_headers(self):
        """setup default headers for the client"""
        self.session.headers.update({
            'User-Agent': self.USER_AGENT,
            'Accept': self.accept,
        })

    def _build_url(self, endpoint: str) -> str:
        """build full URL"""
        return urljoin(f"{self.base_url}/", endpoint.lstrip('/'))

    def _make_request(self, method: str, endpoint: str,
                     params: Optional[Dict] = None,
                     headers: Optional[Dict] = None) -> requests.Response:
        """do HTTP request with retries, return the successful response"""
        url = self._build_url(endpoint)
        request_headers = headers or {}

        for attempt in range(self.max_retries + 1):
            try:
                response = self.session.request(
                    method=method,
                    url=url,
                    params=params,
                    headers=request_headers,
                    timeout=self.timeout
                )

                # check rate limiting
                if response.status_code == 429 and attempt < self.max_retries:
                    retry_after = min(int(response.headers.get('Retry-After', 5)), self.MAX_RETRY_AFTER)
                    app_logger.warning("request.rate_limited", url=url, attempt=attempt + 1, wait=retry_after)
                    time.sleep(retry_after)
                    continue

                if response.status_code >= 400:
                    app_logger.debug("request.status", method=method, url=url, status_code=response.status_code)

                # client errors are final, no point in retrying them
                if 400 <= response.status_code < 500:
                    raise UpstreamError(self.service_name, self._error_detail(response), status=response.status_code)

                response.raise_for_status()
                return response

            except requests.exceptions.RequestException as e:
                # sanitize message to remove memory addresses like <HTTPSConnection(...) at 0x...>
                raw = str(e)
                sanitized = re.sub(r'0x[0-9a-fA-F]+', '<ptr>', raw)
                exc_type = type(e).__name__
                app_logger.error("request.failed", method=method, url=url, attempt=attempt + 1, exc_type=exc_type, error=sanitized)

                if attempt == self.max_retries:
                    status = e.response.status_code if e.response is not None else 502
                    raise UpstreamError(self.service_name, sanitized, status=status) from e

                # exponential backoff
                wait_time = self.retry_delay * (2 ** attempt)
                time.sleep(wait_time)

        raise UpstreamError(self.service_name, f"failed to make request after {self.max_retries} retries", status=502)

    @staticmethod
    def _error_detail(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return f"status {response.status_code}"
        if isinstance(body, dict) and body.get('message'):
            return str(body['message'])
        return f"status {response.status_code}"

    def get_text(self, endpoint: str, params: Optional[Dict] = None,
                 headers: Optional[Dict] = None) -> str:
        """do GET request and return the body as text"""
        return self._make_request('GET', endpoint, params=params, headers=headers).text

    def close(self):
        """close HTTP session"""
        self.session.close()
