"""Result models for operations"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..api.exceptions import ValidationError
from .descriptor import DeployRequest


@dataclass
class ValidationResult:
    """Validation result container

    Warnings never abort an operation; they are collected here so the caller
    can decide whether to prompt or proceed.
    """
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    info: List[str] = field(default_factory=list)

    @property
    def had_warnings(self) -> bool:
        """Whether any warning was recorded"""
        return bool(self.warnings)

    def add_error(self, message: str) -> None:
        """Add error message"""
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        """Add warning message"""
        self.warnings.append(message)

    def add_info(self, message: str) -> None:
        """Add info message"""
        self.info.append(message)

    def merge(self, other: 'ValidationResult') -> None:
        """Merge another result into this one"""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        self.info.extend(other.info)
        if not other.is_valid:
            self.is_valid = False

    def raise_for_errors(self) -> None:
        """Raise ValidationError if any error was recorded"""
        if not self.is_valid:
            raise ValidationError("; ".join(self.errors))


@dataclass
class PackResult:
    """Result of packaging one build context"""
    archive: bytes
    digest: str
    entries: List[str] = field(default_factory=list)
    file_count: int = 0

    @property
    def size(self) -> int:
        """Compressed archive size in bytes"""
        return len(self.archive)


@dataclass
class BuildContextResult:
    """Where a service's build context ended up"""
    service: str
    url: str
    digest: Optional[str] = None
    size: int = 0
    uploaded: bool = True


@dataclass
class DeploymentPlan:
    """Deployment request plus everything learned while preparing it"""
    request: DeployRequest
    validation: ValidationResult
    build_contexts: Dict[str, BuildContextResult] = field(default_factory=dict)

    @property
    def had_warnings(self) -> bool:
        """Whether preparing the request produced any warning"""
        return self.validation.had_warnings
