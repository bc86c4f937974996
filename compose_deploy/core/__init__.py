"""Core functionality for compose-deploy"""

from .ignore_matcher import PatternMatcher, read_ignore_patterns
from .context_packer import ContextPacker, create_tarball, walk_tree
from .compose_loader import ComposeLoader, find_compose_file
from .validation_engine import ProjectValidator, ValidationResult
from .converter import convert_port, convert_platform, convert_project, normalize_service_name

__all__ = [
    "PatternMatcher",
    "read_ignore_patterns",
    "ContextPacker",
    "create_tarball",
    "walk_tree",
    "ComposeLoader",
    "find_compose_file",
    "ProjectValidator",
    "ValidationResult",
    "convert_port",
    "convert_platform",
    "convert_project",
    "normalize_service_name",
]
