# compose_deploy/core/validation_engine.py
"""Validation of a loaded compose project against platform constraints"""

import logging
from typing import Optional

from .converter import convert_platform, convert_port, normalize_service_name
from ..api.exceptions import PortConfigError
from ..constants import (
    DEFAULT_NETWORK,
    HEALTHCHECK_TEST_KINDS,
    MAX_SERVICE_NAME_LENGTH,
)
from ..models.compose import Project, ServiceConfig
from ..models.descriptor import Protocol
from ..models.result import ValidationResult

__all__ = ["ProjectValidator", "ValidationResult", "validate_project"]


class ProjectValidator:
    """Check a project before conversion and repair what can be repaired

    Recoverable problems are fixed in place and reported as warnings so that
    the later conversion runs without repeating them.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize validator

        Args:
            logger: Diagnostics sink (default: module logger)
        """
        self.logger = logger or logging.getLogger(__name__)

    def _error(self, result: ValidationResult, message: str) -> None:
        self.logger.error(message)
        result.add_error(message)

    def _warning(self, result: ValidationResult, message: str) -> None:
        self.logger.warning(message)
        result.add_warning(message)

    def validate_project(self, project: Project) -> ValidationResult:
        """
        Validate every service of a project

        Args:
            project: Loaded project; modified in place

        Returns:
            ValidationResult
        """
        result = ValidationResult()

        if not project.services:
            self._warning(result, "no services found in the project")
            return result

        for name in sorted(project.services):
            result.merge(self.validate_service(project, project.services[name]))

        if result.is_valid:
            result.add_info(f"Project {project.name!r}: {len(project.services)} service(s) validated")
        return result

    def validate_service(self, project: Project, service: ServiceConfig) -> ValidationResult:
        """
        Validate a single service

        Args:
            project: Project the service belongs to
            service: Service to validate; repaired in place

        Returns:
            ValidationResult
        """
        result = ValidationResult()

        normalized = normalize_service_name(service.name)
        if len(normalized) > MAX_SERVICE_NAME_LENGTH:
            self._error(result, f"service name {service.name!r} is too long; "
                                f"must be at most {MAX_SERVICE_NAME_LENGTH} characters")

        if not service.image and service.build is None:
            self._error(result, f"service {service.name!r}: missing 'image' or 'build'")

        self._validate_networks(project, service, result)
        self._validate_ports(service, result)
        self._validate_deploy(service, result)
        self._validate_healthcheck(service, result)

        if service.platform:
            platform = convert_platform(service.platform, result, self.logger)
            service.platform = platform.value

        if service.volumes:
            self._warning(result, f"service {service.name!r}: unsupported compose directive: volumes")
        for key in sorted(service.extras):
            self._warning(result, f"service {service.name!r}: unsupported compose directive: {key}")

        return result

    def _validate_networks(self, project: Project, service: ServiceConfig,
                           result: ValidationResult) -> None:
        for network in sorted(service.networks):
            if network == DEFAULT_NETWORK or network in project.networks:
                continue
            self._warning(result, f"network {network} used by service {service.name} is not defined")

    def _validate_ports(self, service: ServiceConfig, result: ValidationResult) -> None:
        for port in service.ports:
            try:
                converted = convert_port(port, result, self.logger)
            except PortConfigError as e:
                self._error(result, f"service {service.name!r}: {e}")
                continue

            # Write back the repaired values so conversion stays quiet
            port.mode = converted.mode.value
            if converted.protocol != Protocol.ANY:
                port.protocol = converted.protocol.value

    def _validate_deploy(self, service: ServiceConfig, result: ValidationResult) -> None:
        # Resource reservations are optional
        if service.deploy is None:
            return

        resources = service.deploy.resources
        if resources.limits is not None:
            self._warning(result, f"service {service.name!r}: deploy.resources.limits are not "
                                  "supported; use reservations instead")

        reservations = resources.reservations
        if reservations is None:
            return
        if reservations.cpus is not None and reservations.cpus <= 0:
            self._error(result, f"service {service.name!r}: invalid value for cpus: "
                                f"{reservations.cpus} (must be greater than 0)")
        if reservations.memory is None:
            self._warning(result, f"service {service.name!r}: missing memory reservation; "
                                  "specify deploy.resources.reservations.memory to avoid out-of-memory errors")

    def _validate_healthcheck(self, service: ServiceConfig, result: ValidationResult) -> None:
        healthcheck = service.healthcheck
        if healthcheck is None or healthcheck.disable or not healthcheck.test:
            return
        if healthcheck.test[0] not in HEALTHCHECK_TEST_KINDS:
            self._error(result, f"service {service.name!r}: unsupported healthcheck test "
                                f"{healthcheck.test!r}; must start with one of {HEALTHCHECK_TEST_KINDS}")


def validate_project(project: Project, logger: Optional[logging.Logger] = None) -> ValidationResult:
    """Validate a project with a default validator"""
    return ProjectValidator(logger).validate_project(project)
