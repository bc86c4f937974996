"""Upload destinations for build contexts"""

from .base import UploadUrlProvider, StaticUploadUrlProvider
from .http_upload import HttpUploader, remove_query_params

__all__ = [
    "UploadUrlProvider",
    "StaticUploadUrlProvider",
    "HttpUploader",
    "remove_query_params",
]
