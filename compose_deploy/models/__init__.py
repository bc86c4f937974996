# compose_deploy/models/__init__.py
"""Data models for compose-deploy"""

from .compose import (
    BuildConfig,
    DeployConfig,
    HealthCheckConfig,
    NetworkConfig,
    Project,
    Resource,
    Resources,
    ServiceConfig,
    ServiceNetworkConfig,
    ServicePortConfig,
)
from .descriptor import Platform, Protocol, Mode, Port, Service, DeployRequest
from .result import ValidationResult, PackResult, BuildContextResult, DeploymentPlan
from .config import Settings

__all__ = [
    # Compose models
    "BuildConfig",
    "DeployConfig",
    "HealthCheckConfig",
    "NetworkConfig",
    "Project",
    "Resource",
    "Resources",
    "ServiceConfig",
    "ServiceNetworkConfig",
    "ServicePortConfig",

    # Descriptor models
    "Platform",
    "Protocol",
    "Mode",
    "Port",
    "Service",
    "DeployRequest",

    # Result models
    "ValidationResult",
    "PackResult",
    "BuildContextResult",
    "DeploymentPlan",

    # Config models
    "Settings",
]
