"""compose-deploy - Prepare compose projects for remote deployment.

Loads a compose file, validates it against platform constraints, converts
it into a strict deployment request and packages each service's build
context into a reproducible, content-addressed archive.
"""

from .__version__ import __version__, __version_info__, __author__, __license__

# Core API
from .core.compose_loader import ComposeLoader, load_compose, load_compose_with_project_name
from .core.context_packer import ContextPacker, create_tarball
from .core.converter import convert_project, normalize_service_name
from .core.validation_engine import ProjectValidator, validate_project

# Data models
from .models.compose import Project, ServiceConfig
from .models.descriptor import DeployRequest
from .models.result import ValidationResult, PackResult, DeploymentPlan

# Exceptions
from .api.exceptions import (
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
    # Version information
    "__version__",
    "__version_info__",
    "__author__",
    "__license__",

    # Main classes
    "ComposeLoader",
    "ContextPacker",
    "ProjectValidator",

    # Core API functions
    "load_compose",
    "load_compose_with_project_name",
    "create_tarball",
    "validate_project",
    "convert_project",
    "normalize_service_name",

    # Data models
    "Project",
    "ServiceConfig",
    "DeployRequest",
    "ValidationResult",
    "PackResult",
    "DeploymentPlan",

    # Exceptions
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
