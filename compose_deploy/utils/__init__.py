"""Utility functions for compose-deploy"""

from .file_utils import format_size, to_slash, clean_path
from .hash_utils import content_digest, format_digest
from .io_utils import CancellableWriter, HashingWriter
from .units import parse_memory, parse_duration

__all__ = [
    "format_size",
    "to_slash",
    "clean_path",
    "content_digest",
    "format_digest",
    "CancellableWriter",
    "HashingWriter",
    "parse_memory",
    "parse_duration",
]
