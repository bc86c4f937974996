# compose_deploy/core/context_packer.py
"""Deterministic packaging of a build context into a gzip'd tarball"""

import gzip
import io
import logging
import os
import stat
import tarfile
from typing import Callable, List, Optional, Tuple

from .ignore_matcher import PatternMatcher, read_ignore_patterns
from ..api.exceptions import (
    ComposeDeployError,
    BuildContextError,
    BuildContextTooLargeError,
    DockerfileNotFoundError,
)
from ..constants import (
    DEFAULT_DOCKERFILE,
    DOCKERIGNORE_FILE,
    DEFAULT_DOCKERIGNORE,
    SOURCE_DATE_EPOCH,
    MAX_BUILD_CONTEXT_SIZE,
    FILE_COUNT_WARNING_THRESHOLD,
)
from ..models.result import PackResult
from ..utils.file_utils import to_slash
from ..utils.hash_utils import format_digest
from ..utils.io_utils import CancellableWriter, HashingWriter


def walk_tree(root: str, visit: Callable[[str, os.DirEntry], bool]) -> None:
    """
    Walk a directory tree depth-first in lexical order

    The root itself is not visited. For every entry ``visit(path, entry)``
    is called; returning False for a directory skips its contents.

    Args:
        root: Directory to walk
        visit: Visitor callback

    Raises:
        OSError: If a directory cannot be listed
    """
    with os.scandir(root) as it:
        entries = sorted(it, key=lambda e: e.name)

    for entry in entries:
        descend = visit(entry.path, entry)
        if descend and entry.is_dir(follow_symlinks=False):
            walk_tree(entry.path, visit)


def _make_tarinfo(path: str, name: str) -> tarfile.TarInfo:
    """Build a reproducible tar header for a filesystem entry

    FIFOs and device nodes are stored as headers only. Sockets cannot be
    represented in a tar archive and abort packaging.
    """
    st = os.lstat(path)
    info = tarfile.TarInfo(name)
    info.mode = stat.S_IMODE(st.st_mode)
    info.mtime = SOURCE_DATE_EPOCH
    info.uid = 0
    info.gid = 0
    info.uname = ""
    info.gname = ""

    if stat.S_ISREG(st.st_mode):
        info.type = tarfile.REGTYPE
        info.size = st.st_size
    elif stat.S_ISDIR(st.st_mode):
        info.type = tarfile.DIRTYPE
    elif stat.S_ISLNK(st.st_mode):
        info.type = tarfile.SYMTYPE
        info.linkname = os.readlink(path)
    elif stat.S_ISFIFO(st.st_mode):
        info.type = tarfile.FIFOTYPE
    elif stat.S_ISCHR(st.st_mode) or stat.S_ISBLK(st.st_mode):
        info.type = tarfile.CHRTYPE if stat.S_ISCHR(st.st_mode) else tarfile.BLKTYPE
        info.devmajor = os.major(st.st_rdev)
        info.devminor = os.minor(st.st_rdev)
    elif stat.S_ISSOCK(st.st_mode):
        raise BuildContextError(f"cannot archive {name!r}: sockets are not supported")
    else:
        raise BuildContextError(f"cannot archive {name!r}: unsupported file type")
    return info


class ContextPacker:
    """Package a build context the way a remote builder expects it

    Two runs over byte-identical trees produce byte-identical archives:
    entries are written in lexical walk order with fixed timestamps and
    ownership, and the gzip header carries no name or time.
    """

    def __init__(self,
                 max_size: int = MAX_BUILD_CONTEXT_SIZE,
                 file_count_warning: int = FILE_COUNT_WARNING_THRESHOLD,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize context packer

        Args:
            max_size: Ceiling for the compressed archive, in bytes
            file_count_warning: Warn once the context holds more files than this
            logger: Diagnostics sink (default: module logger)
        """
        self.max_size = max_size
        self.file_count_warning = file_count_warning
        self.logger = logger or logging.getLogger(__name__)

    def resolve_ignore_file(self, root: str, dockerfile: str) -> Tuple[str, List[str]]:
        """
        Find the ignore file that applies to a Dockerfile

        A Dockerfile-specific ignore file takes precedence over the
        .dockerignore file at the root of the build context. Bytes that are
        not UTF-8 are kept as surrogate escapes, the same way os.scandir
        decodes file names, so such patterns still match.

        Args:
            root: Build context root
            dockerfile: Dockerfile path relative to root

        Returns:
            Tuple of (ignore file path relative to root, patterns)
        """
        for candidate in (dockerfile + DOCKERIGNORE_FILE, DOCKERIGNORE_FILE):
            try:
                with open(os.path.join(root, candidate), 'r', encoding='utf-8',
                          errors='surrogateescape') as f:
                    patterns = read_ignore_patterns(f)
            except OSError:
                continue
            self.logger.debug(f" - Reading .dockerignore file from {candidate}")
            return candidate, patterns

        self.logger.debug(" - No .dockerignore file found; using defaults")
        return DOCKERIGNORE_FILE, read_ignore_patterns(DEFAULT_DOCKERIGNORE)

    def package(self, root: str, dockerfile: str = "", cancel_event=None) -> PackResult:
        """
        Create the build context archive

        Args:
            root: Build context directory
            dockerfile: Dockerfile path relative to root (default: Dockerfile)
            cancel_event: Optional event; once set, the next write aborts

        Returns:
            PackResult with the archive bytes and content digest

        Raises:
            IgnorePatternError: If the ignore file has a malformed pattern
            BuildContextError: If the context cannot be read or holds a socket
            BuildContextTooLargeError: If the archive exceeds the ceiling
            DockerfileNotFoundError: If the Dockerfile is not in the context
            OperationCancelledError: If cancel_event was set
        """
        dockerfile = os.path.normpath(dockerfile) if dockerfile else DEFAULT_DOCKERFILE
        dockerignore, patterns = self.resolve_ignore_file(root, dockerfile)
        matcher = PatternMatcher(patterns)

        # tar -> hash -> cancellation check -> gzip -> buffer
        buffer = io.BytesIO()
        gzip_writer = gzip.GzipFile(filename="", mode="wb", fileobj=buffer, mtime=0)
        cancellable_writer = CancellableWriter(gzip_writer, cancel_event)
        hashing_writer = HashingWriter(cancellable_writer)
        tar = tarfile.open(fileobj=hashing_writer, mode="w|", format=tarfile.PAX_FORMAT)

        entries: List[str] = []
        found_dockerfile = False
        file_count = 0

        def visit(path: str, entry: os.DirEntry) -> bool:
            nonlocal found_dockerfile, file_count

            rel_path = os.path.relpath(path, root)
            name = to_slash(rel_path)

            # The Dockerfile and the ignore file are needed even if ignored
            if not found_dockerfile and rel_path == dockerfile:
                found_dockerfile = True
            elif rel_path == dockerignore:
                pass
            elif matcher.matches(name):
                self.logger.debug(f" - Ignoring {rel_path}")
                return False

            info = _make_tarinfo(path, name)
            self.logger.debug(f" - Adding {name}")
            entries.append(name)

            if not info.isreg():
                tar.addfile(info)
                return True

            file_count += 1
            if file_count == self.file_count_warning + 1:
                self.logger.warning(
                    f" ! The build context contains more than {self.file_count_warning} files; "
                    "press Ctrl+C if this is unexpected."
                )

            with open(path, 'rb') as f:
                tar.addfile(info, f)

            if buffer.tell() > self.max_size:
                raise BuildContextTooLargeError(self.max_size)
            return True

        completed = False
        try:
            try:
                walk_tree(root, visit)
            except ComposeDeployError:
                raise
            except OSError as e:
                raise BuildContextError(f"failed to read build context {root!r}: {e}")

            if not found_dockerfile:
                raise DockerfileNotFoundError(dockerfile)
            completed = True
        finally:
            # An aborted archive is closed without writing anything further
            if not completed:
                cancellable_writer.discard()
            try:
                tar.close()
            finally:
                gzip_writer.close()

        return PackResult(
            archive=buffer.getvalue(),
            digest=format_digest(hashing_writer.digest()),
            entries=entries,
            file_count=file_count,
        )


def create_tarball(root: str, dockerfile: str = "", cancel_event=None) -> bytes:
    """
    Package a build context with default limits

    Args:
        root: Build context directory
        dockerfile: Dockerfile path relative to root
        cancel_event: Optional cancellation event

    Returns:
        gzip'd tar bytes
    """
    return ContextPacker().package(root, dockerfile, cancel_event).archive
