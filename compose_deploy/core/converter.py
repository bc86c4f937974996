# compose_deploy/core/converter.py
"""Conversion of compose services into the strict deployment descriptor"""

import logging
from typing import Dict, List, Optional

from ..api.exceptions import PortConfigError
from ..constants import (
    MiB,
    MIN_PORT_TARGET,
    MAX_PORT_TARGET,
    NON_ALPHANUMERIC_PATTERN,
    SUPPORTED_PROTOCOLS,
    SUPPORTED_MODES,
)
from ..models.compose import Project, ServiceConfig, ServicePortConfig
from ..models.descriptor import (
    Build,
    Deploy,
    DeployRequest,
    HealthCheck,
    Mode,
    Platform,
    Port,
    Protocol,
    Resources,
    Service,
)
from ..models.result import ValidationResult

_PROTOCOLS = {
    "": Protocol.ANY,  # the platform picks HTTP
    "tcp": Protocol.TCP,
    "udp": Protocol.UDP,
    "http": Protocol.HTTP,
    "http2": Protocol.HTTP2,
    "grpc": Protocol.GRPC,
}

_PLATFORMS = {
    "": Platform.LINUX_ANY,
    "linux": Platform.LINUX_ANY,
    "linux/amd64": Platform.LINUX_AMD64,
    "linux/arm64": Platform.LINUX_ARM64,
    "linux/arm64/v8": Platform.LINUX_ARM64,
    "linux/arm64/v7": Platform.LINUX_ARM64,
    "linux/arm64/v6": Platform.LINUX_ARM64,
}

logger = logging.getLogger(__name__)


def normalize_service_name(name: str) -> str:
    """
    Turn a compose service name into a platform service name

    Lowercases the name and replaces every run of non-alphanumeric
    characters with a single hyphen. Distinct names may collide.

    Args:
        name: Service name from the manifest

    Returns:
        Normalized name
    """
    return NON_ALPHANUMERIC_PATTERN.sub("-", name.lower())


def _warn(result: ValidationResult, log: logging.Logger, message: str) -> None:
    log.warning(message)
    result.add_warning(message)


def convert_port(port: ServicePortConfig,
                 result: ValidationResult,
                 log: Optional[logging.Logger] = None) -> Port:
    """
    Convert a single compose port

    Checks are applied in a fixed order: target range, host IP, published
    port, protocol, then mode.

    Args:
        port: Port from the manifest
        result: Collects warnings about repaired values
        log: Diagnostics sink (default: module logger)

    Returns:
        Converted port

    Raises:
        PortConfigError: If the port cannot be deployed
    """
    log = log or logger

    if port.target < MIN_PORT_TARGET or port.target > MAX_PORT_TARGET:
        raise PortConfigError(
            f"port target must be an integer between {MIN_PORT_TARGET} and "
            f"{MAX_PORT_TARGET}: {port.target}"
        )
    if port.host_ip:
        raise PortConfigError("port host_ip is not supported")
    if port.published and port.published != str(port.target):
        raise PortConfigError(f"port published must be empty or equal to target: {port.published}")

    protocol = _PROTOCOLS.get(port.protocol)
    if protocol is None:
        raise PortConfigError(
            f"port protocol not one of [{' '.join(SUPPORTED_PROTOCOLS)}]: {port.protocol}"
        )

    converted = Port(target=port.target, protocol=protocol)

    if port.mode == "":
        _warn(result, log,
              f"port {port.target}: no port mode was specified; assuming 'host' (add 'mode' to silence)")
        converted.mode = Mode.HOST
    elif port.mode == "host":
        converted.mode = Mode.HOST
    elif port.mode == "ingress":
        # Short syntax always expands to ingress+tcp
        if port.published:
            _warn(result, log,
                  f"port {port.target}: published ports are not supported in ingress mode; "
                  "assuming 'host' (add 'mode' to silence)")
            converted.mode = Mode.HOST
        else:
            converted.mode = Mode.INGRESS
            if protocol in (Protocol.TCP, Protocol.UDP):
                _warn(result, log, f"port {port.target}: TCP ingress is not supported; assuming HTTP")
                converted.protocol = Protocol.HTTP
    else:
        raise PortConfigError(f"port mode not one of [{' '.join(SUPPORTED_MODES)}]: {port.mode}")

    return converted


def convert_ports(ports: List[ServicePortConfig],
                  result: ValidationResult,
                  log: Optional[logging.Logger] = None) -> List[Port]:
    """Convert all ports of a service; the first invalid port aborts"""
    return [convert_port(port, result, log) for port in ports]


def convert_platform(platform: Optional[str],
                     result: ValidationResult,
                     log: Optional[logging.Logger] = None) -> Platform:
    """
    Map a compose platform string onto a supported platform

    Unknown platforms are advisory: they fall back to generic linux with a
    warning instead of failing.

    Args:
        platform: Platform string, may be empty
        result: Collects the fallback warning
        log: Diagnostics sink (default: module logger)

    Returns:
        Platform enum value
    """
    log = log or logger
    platform = platform or ""
    converted = _PLATFORMS.get(platform)
    if converted is None:
        _warn(result, log, f"unsupported platform: {platform!r} (assuming linux)")
        return Platform.LINUX_ANY
    return converted


def _convert_deploy(service: ServiceConfig) -> Optional[Deploy]:
    if service.deploy is None:
        return None

    deploy = Deploy()
    if service.deploy.replicas is not None:
        deploy.replicas = service.deploy.replicas

    reservations = service.deploy.resources.reservations
    if reservations is not None:
        memory_mib = None
        if reservations.memory is not None:
            memory_mib = reservations.memory / MiB
        deploy.reservations = Resources(memory_mib=memory_mib, cpus=reservations.cpus)
    return deploy


def _convert_healthcheck(service: ServiceConfig) -> Optional[HealthCheck]:
    healthcheck = service.healthcheck
    if healthcheck is None or healthcheck.disable or not healthcheck.test:
        return None
    if healthcheck.test[0] == "NONE":
        return None
    return HealthCheck(
        test=list(healthcheck.test),
        interval=healthcheck.interval,
        timeout=healthcheck.timeout,
        retries=healthcheck.retries,
    )


def convert_service(service: ServiceConfig,
                    result: ValidationResult,
                    build_context: Optional[str] = None,
                    log: Optional[logging.Logger] = None) -> Service:
    """
    Convert one compose service

    Args:
        service: Service from the manifest
        result: Collects warnings
        build_context: Uploaded build context URL (or local root on dry run)
        log: Diagnostics sink (default: module logger)

    Returns:
        Service descriptor

    Raises:
        PortConfigError: If any port cannot be deployed
    """
    build = None
    if service.build is not None:
        build = Build(
            context=build_context or service.build.context,
            dockerfile=service.build.dockerfile,
            args={k: v for k, v in service.build.args.items() if v is not None},
            target=service.build.target,
        )

    return Service(
        name=normalize_service_name(service.name),
        image=service.image,
        platform=convert_platform(service.platform, result, log),
        ports=convert_ports(service.ports, result, log),
        build=build,
        deploy=_convert_deploy(service),
        healthcheck=_convert_healthcheck(service),
        environment={k: v for k, v in service.environment.items() if v is not None},
        secrets=list(service.secrets),
        networks=sorted(service.networks),
        command=list(service.command or []),
        entrypoint=list(service.entrypoint or []),
    )


def convert_project(project: Project,
                    result: ValidationResult,
                    build_contexts: Optional[Dict[str, str]] = None,
                    log: Optional[logging.Logger] = None) -> DeployRequest:
    """
    Convert a validated project into a deployment request

    Args:
        project: Validated project
        result: Collects warnings
        build_contexts: Service name -> build context URL
        log: Diagnostics sink (default: module logger)

    Returns:
        DeployRequest with services in name order
    """
    build_contexts = build_contexts or {}
    services = [
        convert_service(project.services[name], result, build_contexts.get(name), log)
        for name in sorted(project.services)
    ]
    return DeployRequest(project=project.name, services=services)
