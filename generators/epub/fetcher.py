"""
HTTP access for image embedding.

The embedder only needs a ``fetch(url) -> FetchResponse`` callable; any
callable with that shape can be injected (tests use an in-memory fake).
``ImageFetcher`` is the default, backed by a shared ``requests.Session`` so
cookies set by an image host are sent on later requests.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .exceptions import ImageFetchError


@dataclass
class FetchResponse:
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    content: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def content_type(self) -> str:
        for key, value in self.headers.items():
            if key.lower() == 'content-type':
                return value
        return ""


Fetch = Callable[[str], FetchResponse]

DEFAULT_HTTP_CONFIG = {
    'user_agent': 'queue2epub/1.0',
    'max_retries': 2,
    'retry_delay': 1,
    'timeout': 20,
    'max_image_size': 15,
}


class ImageFetcher:
    """Fetches image bytes over a pooled, retrying session."""

    def __init__(self, config: Optional[Dict[str, Any]] = None, session: Optional[requests.Session] = None):
        http_config = dict(DEFAULT_HTTP_CONFIG)
        http_config.update((config or {}).get('http', {}))
        self.config = http_config
        self.timeout = http_config['timeout']
        self.max_bytes = int(http_config['max_image_size'] * 1024 * 1024)
        self.logger = logging.getLogger(__name__)

        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': http_config['user_agent'],
            'Accept': 'image/avif,image/webp,image/png,image/jpeg,image/*;q=0.8,*/*;q=0.5',
        })

        retry_strategy = Retry(
            total=http_config['max_retries'],
            backoff_factor=http_config['retry_delay'],
            status_forcelist=[429, 500, 502, 503, 504],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def __call__(self, url: str) -> FetchResponse:
        """Fetch ``url``.

        Raises:
            ImageFetchError: on transport errors, non-2xx responses, empty
                bodies, or bodies over the configured size limit.
        """
        try:
            response = self.session.get(url, timeout=self.timeout, allow_redirects=True, stream=True)
        except requests.exceptions.RequestException as e:
            raise ImageFetchError(f"Failed to fetch {url}: {e}") from e

        try:
            if not 200 <= response.status_code < 300:
                raise ImageFetchError(f"HTTP {response.status_code} for {url}")

            # Check file size before reading the body
            content_length = response.headers.get('content-length')
            if content_length and content_length.isdigit() and int(content_length) > self.max_bytes:
                raise ImageFetchError(f"Image too large ({content_length} bytes): {url}")

            content = self._read_body(response, url)
            if not content:
                raise ImageFetchError(f"Empty response for {url}")

            self.logger.debug(f"Fetched {len(content)} bytes from {url}")
            return FetchResponse(
                status=response.status_code,
                headers=dict(response.headers),
                content=content,
            )
        finally:
            response.close()

    def _read_body(self, response: requests.Response, url: str) -> bytes:
        chunks = []
        total = 0
        try:
            for chunk in response.iter_content(chunk_size=8192):
                total += len(chunk)
                if total > self.max_bytes:
                    raise ImageFetchError(f"Image too large (over {self.max_bytes} bytes): {url}")
                chunks.append(chunk)
        except requests.exceptions.RequestException as e:
            raise ImageFetchError(f"Failed to read {url}: {e}") from e
        return b"".join(chunks)

    def close(self) -> None:
        self.session.close()
