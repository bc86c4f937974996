"""Service layer for compose-deploy"""

from .config_service import ConfigService
from .build_context_service import BuildContextService
from .deploy_service import DeployService

__all__ = [
    "ConfigService",
    "BuildContextService",
    "DeployService",
]
