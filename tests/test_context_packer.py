"""Tests for build context packaging"""

import gc
import gzip
import hashlib
import io
import logging
import os
import socket
import sys
import tarfile
import threading

import pytest

from compose_deploy.api.exceptions import (
    BuildContextError,
    BuildContextTooLargeError,
    DockerfileNotFoundError,
    IgnorePatternError,
    OperationCancelledError,
)
from compose_deploy.constants import SOURCE_DATE_EPOCH
from compose_deploy.core.context_packer import ContextPacker, create_tarball, walk_tree
from compose_deploy.utils.hash_utils import format_digest


def read_members(archive: bytes):
    with tarfile.open(fileobj=io.BytesIO(archive), mode="r:gz") as tar:
        return tar.getmembers()


class TestWalkTree:

    def test_lexical_order(self, make_tree):
        root = make_tree({"b.txt": "", "a/z.txt": "", "a/b.txt": "", "C.txt": ""})
        seen = []
        walk_tree(str(root), lambda path, entry: seen.append(os.path.relpath(path, root)) or True)
        assert seen == ["C.txt", "a", os.path.join("a", "b.txt"), os.path.join("a", "z.txt"), "b.txt"]

    def test_visitor_prunes_directories(self, make_tree):
        root = make_tree({"skip/x.txt": "", "keep/y.txt": ""})
        seen = []

        def visit(path, entry):
            rel = os.path.relpath(path, root)
            seen.append(rel)
            return rel != "skip"

        walk_tree(str(root), visit)
        assert seen == ["keep", os.path.join("keep", "y.txt"), "skip"]


class TestContextPacker:

    def test_entries_exclude_ignored_files(self, make_tree):
        root = make_tree({
            "Dockerfile": "FROM scratch\n",
            ".dockerignore": "ignored.txt\n",
            "ignored.txt": "secret",
        })
        result = ContextPacker().package(str(root))

        assert result.entries == [".dockerignore", "Dockerfile"]
        assert [m.name for m in read_members(result.archive)] == [".dockerignore", "Dockerfile"]
        assert result.file_count == 2

    def test_headers_are_reproducible(self, make_tree):
        root = make_tree({"Dockerfile": "FROM scratch\n", "src/app.py": "print('hi')\n"})
        members = read_members(ContextPacker().package(str(root)).archive)

        assert [m.name for m in members] == ["Dockerfile", "src", "src/app.py"]
        for member in members:
            assert member.mtime == SOURCE_DATE_EPOCH
            assert member.uid == 0
            assert member.gid == 0
            assert member.uname == ""
            assert member.gname == ""
        assert members[1].isdir()

    def test_repeated_packaging_is_byte_identical(self, make_tree):
        root = make_tree({"Dockerfile": "FROM scratch\n", "a/b.txt": "b", "c.txt": "c"})
        first = ContextPacker().package(str(root))

        # Timestamps must not leak into the archive
        os.utime(root / "c.txt", (1, 1))
        second = ContextPacker().package(str(root))

        assert first.archive == second.archive
        assert first.digest == second.digest

    def test_digest_covers_uncompressed_tar(self, make_tree):
        root = make_tree({"Dockerfile": "FROM scratch\n"})
        result = ContextPacker().package(str(root))

        raw = hashlib.sha256(gzip.decompress(result.archive)).digest()
        assert result.digest == format_digest(raw)
        assert result.digest.startswith("sha256-")

    def test_file_contents_are_archived(self, make_tree):
        root = make_tree({"Dockerfile": "FROM scratch\n", "data.bin": b"\x00\x01\x02"})
        archive = ContextPacker().package(str(root)).archive

        with tarfile.open(fileobj=io.BytesIO(archive), mode="r:gz") as tar:
            assert tar.extractfile("data.bin").read() == b"\x00\x01\x02"

    def test_dockerfile_and_ignore_file_are_always_included(self, make_tree):
        root = make_tree({
            "Dockerfile": "FROM scratch\n",
            ".dockerignore": "Dockerfile\n.dockerignore\n*.txt\n",
            "notes.txt": "",
        })
        result = ContextPacker().package(str(root))
        assert result.entries == [".dockerignore", "Dockerfile"]

    def test_ignored_directory_is_pruned(self, make_tree):
        root = make_tree({
            "Dockerfile": "FROM scratch\n",
            ".dockerignore": "build\n",
            "build/out/a.o": "",
            "main.c": "",
        })
        result = ContextPacker().package(str(root))
        assert result.entries == [".dockerignore", "Dockerfile", "main.c"]

    def test_exclusion_reincludes_file(self, make_tree):
        root = make_tree({
            "Dockerfile": "FROM scratch\n",
            ".dockerignore": "*.md\n!README.md\n",
            "README.md": "",
            "CHANGES.md": "",
        })
        result = ContextPacker().package(str(root))
        assert result.entries == [".dockerignore", "Dockerfile", "README.md"]

    def test_default_ignore_set(self, make_tree):
        root = make_tree({
            "Dockerfile": "FROM scratch\n",
            "compose.yaml": "services: {}\n",
            ".git/HEAD": "ref: refs/heads/main\n",
            "node_modules/pkg/index.js": "",
            "main.py": "",
        })
        result = ContextPacker().package(str(root))
        assert result.entries == ["Dockerfile", "main.py"]

    def test_dockerfile_specific_ignore_file(self, make_tree):
        root = make_tree({
            "docker/app.Dockerfile": "FROM scratch\n",
            "docker/app.Dockerfile.dockerignore": "secret.txt\n",
            ".dockerignore": "",
            "secret.txt": "",
            "public.txt": "",
        })
        result = ContextPacker().package(str(root), "docker/app.Dockerfile")

        assert "secret.txt" not in result.entries
        assert "public.txt" in result.entries
        assert "docker/app.Dockerfile" in result.entries
        assert "docker/app.Dockerfile.dockerignore" in result.entries

    def test_symlinks_are_stored_as_links(self, make_tree):
        root = make_tree({"Dockerfile": "FROM scratch\n"})
        os.symlink("Dockerfile", root / "link")

        members = {m.name: m for m in read_members(ContextPacker().package(str(root)).archive)}
        assert members["link"].issym()
        assert members["link"].linkname == "Dockerfile"

    def test_missing_dockerfile(self, make_tree):
        root = make_tree({"main.py": ""})
        with pytest.raises(DockerfileNotFoundError) as exc_info:
            ContextPacker().package(str(root))
        assert "dockerfile not found" in str(exc_info.value)

    def test_missing_custom_dockerfile(self, make_tree):
        root = make_tree({"Dockerfile": "FROM scratch\n"})
        with pytest.raises(DockerfileNotFoundError) as exc_info:
            ContextPacker().package(str(root), "Dockerfile.prod")
        assert exc_info.value.dockerfile == "Dockerfile.prod"

    def test_context_too_large(self, make_tree):
        root = make_tree({"Dockerfile": "FROM scratch\n", "blob.bin": os.urandom(256 * 1024)})
        with pytest.raises(BuildContextTooLargeError):
            ContextPacker(max_size=1024).package(str(root))

    def test_missing_context_directory(self, tmp_path):
        with pytest.raises(BuildContextError):
            ContextPacker().package(str(tmp_path / "missing"))

    def test_malformed_ignore_pattern(self, make_tree):
        root = make_tree({"Dockerfile": "FROM scratch\n", ".dockerignore": "[z-a]\n"})
        with pytest.raises(IgnorePatternError):
            ContextPacker().package(str(root))

    def test_cancelled_before_start(self, make_tree):
        root = make_tree({"Dockerfile": "FROM scratch\n"})
        cancel_event = threading.Event()
        cancel_event.set()
        with pytest.raises(OperationCancelledError):
            ContextPacker().package(str(root), cancel_event=cancel_event)

    def test_cancelled_while_writing(self, make_tree):
        files = {f"blob{i:02d}.bin": os.urandom(32 * 1024) for i in range(8)}
        files["Dockerfile"] = "FROM scratch\n"
        root = make_tree(files)

        class CancelAfter:
            """Reports cancellation once the packer has written a few blocks"""

            def __init__(self, checks: int):
                self.checks = checks

            def is_set(self) -> bool:
                self.checks -= 1
                return self.checks < 0

        with pytest.raises(OperationCancelledError):
            ContextPacker().package(str(root), cancel_event=CancelAfter(2))

    @pytest.mark.parametrize("files,cancelled,error", [
        ({"Dockerfile": "FROM scratch\n", "blob.bin": os.urandom(256 * 1024)}, False,
         BuildContextTooLargeError),
        ({"main.py": "x" * 64 * 1024}, False, DockerfileNotFoundError),
        ({"Dockerfile": "FROM scratch\n", "blob.bin": os.urandom(64 * 1024)}, True,
         OperationCancelledError),
    ])
    def test_failed_packaging_closes_writers(self, make_tree, monkeypatch, files, cancelled, error):
        unraisable = []
        monkeypatch.setattr(sys, "unraisablehook", unraisable.append)
        root = make_tree(files)
        cancel_event = threading.Event()
        if cancelled:
            cancel_event.set()

        with pytest.raises(error):
            ContextPacker(max_size=1024).package(str(root), cancel_event=cancel_event)
        gc.collect()

        assert unraisable == []

    def test_ignore_file_that_is_not_utf8(self, make_tree):
        root = make_tree({
            "Dockerfile": "FROM scratch\n",
            ".dockerignore": b"# caf\xe9\nsecret.txt\n",
            "secret.txt": "token",
            "app.py": "",
        })

        result = ContextPacker().package(str(root))

        assert result.entries == [".dockerignore", "Dockerfile", "app.py"]

    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="requires named pipes")
    def test_fifo_is_stored_as_header(self, make_tree):
        root = make_tree({"Dockerfile": "FROM scratch\n"})
        os.mkfifo(root / "pipe")

        members = {m.name: m for m in read_members(ContextPacker().package(str(root)).archive)}

        assert members["pipe"].isfifo()
        assert members["pipe"].size == 0

    @pytest.mark.skipif(not hasattr(socket, "AF_UNIX"), reason="requires unix sockets")
    def test_socket_is_rejected(self, make_tree):
        root = make_tree({"Dockerfile": "FROM scratch\n"})
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.bind(str(root / "app.sock"))
            with pytest.raises(BuildContextError) as exc_info:
                ContextPacker().package(str(root))
        finally:
            sock.close()
        assert "sockets are not supported" in str(exc_info.value)

    def test_warns_once_past_file_count_threshold(self, make_tree, test_logger, caplog):
        files = {f"file{i:02d}.txt": str(i) for i in range(12)}
        files["Dockerfile"] = "FROM scratch\n"
        root = make_tree(files)

        with caplog.at_level(logging.WARNING, logger=test_logger.name):
            result = ContextPacker(logger=test_logger).package(str(root))

        assert result.file_count == 13
        warnings = [r for r in caplog.records if "more than 10 files" in r.getMessage()]
        assert len(warnings) == 1

    def test_no_warning_below_threshold(self, make_tree, test_logger, caplog):
        root = make_tree({"Dockerfile": "FROM scratch\n", "a.txt": ""})
        with caplog.at_level(logging.WARNING, logger=test_logger.name):
            ContextPacker(logger=test_logger).package(str(root))
        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]


def test_create_tarball_returns_archive(make_tree):
    root = make_tree({"Dockerfile": "FROM scratch\n"})
    archive = create_tarball(str(root))
    assert [m.name for m in read_members(archive)] == ["Dockerfile"]
