"""Composable byte-sink wrappers used while writing archives"""

import hashlib
from typing import BinaryIO

from ..api.exceptions import OperationCancelledError


class CancellableWriter:
    """Wrap a writable stream and refuse writes once cancelled

    ``cancel_event`` is anything with an ``is_set()`` method, typically a
    ``threading.Event`` set by the task that awaits the packaging call.
    """

    def __init__(self, inner: BinaryIO, cancel_event=None):
        self.inner = inner
        self.cancel_event = cancel_event
        self.discarding = False

    def discard(self) -> None:
        """Drop every further write; used to close an aborted archive"""
        self.discarding = True

    def write(self, data: bytes) -> int:
        if self.discarding:
            return len(data)
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise OperationCancelledError("build context packaging was cancelled")
        return self.inner.write(data)

    def flush(self) -> None:
        if not self.discarding:
            self.inner.flush()

    def close(self) -> None:
        self.inner.close()


class HashingWriter:
    """Hash every byte on its way to an inner stream"""

    def __init__(self, inner: BinaryIO, algorithm: str = "sha256"):
        self.inner = inner
        self._hash = hashlib.new(algorithm)
        self.bytes_written = 0

    def write(self, data: bytes) -> int:
        self._hash.update(data)
        self.bytes_written += len(data)
        return self.inner.write(data)

    def flush(self) -> None:
        self.inner.flush()

    def close(self) -> None:
        self.inner.close()

    def digest(self) -> bytes:
        """Raw digest of everything written so far"""
        return self._hash.digest()
