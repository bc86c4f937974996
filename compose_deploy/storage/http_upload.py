# compose_deploy/storage/http_upload.py
"""Upload of build context archives over HTTP"""

import logging
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

import httpx

from .base import UploadUrlProvider
from ..api.exceptions import UploadError
from ..constants import ARCHIVE_CONTENT_TYPE, DEFAULT_UPLOAD_TIMEOUT


def remove_query_params(url: str) -> str:
    """
    Strip the query string from a URL

    Pre-signed upload URLs carry their credentials in the query; the
    remaining URL is what the builder reads the context from.

    Args:
        url: URL to clean

    Returns:
        URL without query string
    """
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", parts.fragment))


class HttpUploader:
    """Upload archives to destinations handed out by an UploadUrlProvider"""

    def __init__(self,
                 url_provider: UploadUrlProvider,
                 client: Optional[httpx.AsyncClient] = None,
                 timeout: float = DEFAULT_UPLOAD_TIMEOUT,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize uploader

        Args:
            url_provider: Creates the upload destination
            client: Shared HTTP client (default: one client per upload)
            timeout: Request timeout in seconds when no client is given
            logger: Diagnostics sink (default: module logger)
        """
        self.url_provider = url_provider
        self._client = client
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

    async def upload(self, archive: bytes, digest: str = "") -> str:
        """
        Upload one archive

        An empty digest asks for a fresh destination; whether the remote side
        deduplicates on digest is up to the remote side.

        Args:
            archive: gzip'd tar bytes
            digest: Content digest, or "" to force the upload

        Returns:
            Destination URL without query string

        Raises:
            UploadError: If the request fails or is not answered with 200
        """
        url = await self.url_provider.create_upload_url(digest)
        self.logger.debug(f" - Uploading {len(archive)} bytes to {remove_query_params(url)}")

        try:
            if self._client is not None:
                response = await self._put(self._client, url, archive)
            else:
                async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout)) as client:
                    response = await self._put(client, url, archive)
        except httpx.HTTPError as e:
            raise UploadError(f"HTTP PUT failed: {e}")

        if response.status_code != 200:
            raise UploadError(
                f"HTTP PUT failed with status code {response.status_code} {response.reason_phrase}",
                response.status_code
            )

        return remove_query_params(url)

    async def _put(self, client: httpx.AsyncClient, url: str, archive: bytes) -> httpx.Response:
        return await client.put(
            url,
            content=archive,
            headers={"Content-Type": ARCHIVE_CONTENT_TYPE},
        )
