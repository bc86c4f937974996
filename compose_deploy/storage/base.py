# compose_deploy/storage/base.py
"""Upload destination abstract base class"""

from abc import ABC, abstractmethod
from typing import Optional
from urllib.parse import quote


class UploadUrlProvider(ABC):
    """Source of upload destinations for build contexts"""

    @abstractmethod
    async def create_upload_url(self, digest: str) -> str:
        """
        Create a destination for one build context upload

        Args:
            digest: Content digest (``sha256-<base64>``), or "" to force a
                fresh destination

        Returns:
            URL that accepts an HTTP PUT of the archive
        """
        pass


class StaticUploadUrlProvider(UploadUrlProvider):
    """Upload to a fixed base URL, one path segment per digest"""

    def __init__(self, base_url: str, force_path: Optional[str] = None):
        """
        Initialize provider

        Args:
            base_url: Base URL of the upload endpoint
            force_path: Path segment used when no digest is given
                (default: "upload")
        """
        self.base_url = base_url.rstrip("/")
        self.force_path = force_path or "upload"

    async def create_upload_url(self, digest: str) -> str:
        segment = quote(digest, safe="") if digest else self.force_path
        return f"{self.base_url}/{segment}"
