"""Shared fixtures for compose-deploy tests"""

import logging
import textwrap
from pathlib import Path
from typing import Dict, Union

import pytest

from compose_deploy.constants import (
    ENV_CONFIG_PATH,
    ENV_VERBOSE,
    ENV_DEBUG,
    ENV_DRY_RUN,
    ENV_FORCE,
    ENV_MAX_CONTEXT_SIZE,
    ENV_UPLOAD_TIMEOUT,
    ENV_TENANT,
    ENV_PROJECT_NAME,
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep settings from the developer's shell out of the tests"""
    for name in (ENV_CONFIG_PATH, ENV_VERBOSE, ENV_DEBUG, ENV_DRY_RUN, ENV_FORCE,
                 ENV_MAX_CONTEXT_SIZE, ENV_UPLOAD_TIMEOUT, ENV_TENANT, ENV_PROJECT_NAME):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_tree(tmp_path):
    """Create a directory tree from a {relative path: content} mapping"""

    def _make(files: Dict[str, Union[str, bytes]], root: Path = None) -> Path:
        root = root or tmp_path / "context"
        root.mkdir(parents=True, exist_ok=True)
        for rel_path, content in files.items():
            path = root / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content)
        return root

    return _make


@pytest.fixture
def write_compose(tmp_path):
    """Write a compose file and return its path"""

    def _write(content: str, name: str = "compose.yaml", directory: Path = None) -> Path:
        directory = directory or tmp_path
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        path.write_text(textwrap.dedent(content))
        return path

    return _write


@pytest.fixture
def test_logger():
    """A dedicated logger whose records are captured by caplog"""
    logger = logging.getLogger("compose_deploy.tests")
    logger.setLevel(logging.DEBUG)
    return logger
