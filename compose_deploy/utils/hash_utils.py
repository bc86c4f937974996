"""Hash calculation utilities"""

import base64
import hashlib

from ..constants import DIGEST_PREFIX


def format_digest(raw_digest: bytes) -> str:
    """
    Format a raw sha256 digest as a content address

    Args:
        raw_digest: The 32-byte digest

    Returns:
        ``sha256-<base64>`` string, the same form Nix uses
    """
    return DIGEST_PREFIX + base64.b64encode(raw_digest).decode("ascii")


def content_digest(content: bytes) -> str:
    """
    Calculate the content address of a byte string

    Args:
        content: Content bytes

    Returns:
        ``sha256-<base64>`` string
    """
    return format_digest(hashlib.sha256(content).digest())
