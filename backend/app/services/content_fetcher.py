"""
Content fetcher for generated artwork.

Providers answer with either a hosted URL or an inline data: URL; both are
resolved to raw bytes here.
"""

import base64
import binascii
import logging
from urllib.parse import unquote_to_bytes

import httpx

from app.middleware import DownloadFailedError

logger = logging.getLogger(__name__)


def decode_data_url(url: str) -> bytes:
    """
    Decode an RFC 2397 data: URL.

    Raises:
        DownloadFailedError: If the URL is malformed
    """
    header, sep, payload = url[5:].partition(",")
    if not sep:
        raise DownloadFailedError(url, "malformed data URL")

    if header.endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError):
            raise DownloadFailedError(url, "invalid base64 payload")
    return unquote_to_bytes(payload)


class ContentFetcher:
    """Downloads provider output over HTTP(S) or decodes data: URLs."""

    def __init__(self, client: httpx.AsyncClient, timeout: float = 60.0):
        self.client = client
        self.timeout = timeout

    async def fetch(self, url: str) -> bytes:
        """
        Resolve a content URL to bytes.

        Args:
            url: http(s) URL or data: URL

        Returns:
            bytes: Non-empty content

        Raises:
            DownloadFailedError: On network errors, non-2xx status, unsupported
                scheme, or an empty body
        """
        if not url:
            raise DownloadFailedError("", "no content URL")

        if url.startswith("data:"):
            content = decode_data_url(url)
        elif url.startswith(("http://", "https://")):
            content = await self._download(url)
        else:
            raise DownloadFailedError(url, "unsupported URL scheme")

        if not content:
            raise DownloadFailedError(url, "empty response body")

        logger.info(f"Fetched {len(content)} bytes of generated content")
        return content

    async def _download(self, url: str) -> bytes:
        try:
            response = await self.client.get(url, timeout=self.timeout, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise DownloadFailedError(url, f"HTTP {e.response.status_code}")
        except httpx.TimeoutException:
            raise DownloadFailedError(url, f"timed out after {self.timeout:g} seconds")
        except httpx.HTTPError as e:
            raise DownloadFailedError(url, str(e) or type(e).__name__)
        return response.content
