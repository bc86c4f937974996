# compose_deploy/api/__init__.py
"""API layer for compose-deploy"""

from .exceptions import (
    ComposeDeployError,
    ConfigError,
    PackError,
    IgnorePatternError,
    BuildContextError,
    BuildContextTooLargeError,
    DockerfileNotFoundError,
    OperationCancelledError,
    UploadError,
    ComposeError,
    AmbiguousComposeFileError,
    ValidationError,
    PortConfigError,
)

__all__ = [
    "ComposeDeployError",
    "ConfigError",
    "PackError",
    "IgnorePatternError",
    "BuildContextError",
    "BuildContextTooLargeError",
    "DockerfileNotFoundError",
    "OperationCancelledError",
    "UploadError",
    "ComposeError",
    "AmbiguousComposeFileError",
    "ValidationError",
    "PortConfigError",
]
