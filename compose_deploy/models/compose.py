"""In-memory model of a loaded compose project"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any


@dataclass
class BuildConfig:
    """Service build section"""
    context: str
    dockerfile: str = ""
    args: Dict[str, Optional[str]] = field(default_factory=dict)
    target: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data: Dict[str, Any] = {"context": self.context}
        if self.dockerfile:
            data["dockerfile"] = self.dockerfile
        if self.args:
            data["args"] = dict(self.args)
        if self.target:
            data["target"] = self.target
        return data


@dataclass
class ServicePortConfig:
    """A port as written in the manifest, after short-syntax expansion"""
    target: int = 0
    published: str = ""
    host_ip: str = ""
    protocol: str = ""
    mode: str = ""
    app_protocol: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data: Dict[str, Any] = {"target": self.target}
        for key in ("published", "host_ip", "protocol", "mode", "app_protocol"):
            value = getattr(self, key)
            if value:
                data[key] = value
        return data


@dataclass
class Resource:
    """A resource limit or reservation"""
    cpus: Optional[float] = None
    memory: Optional[int] = None  # bytes

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data: Dict[str, Any] = {}
        if self.cpus is not None:
            data["cpus"] = self.cpus
        if self.memory is not None:
            data["memory"] = self.memory
        return data


@dataclass
class Resources:
    """deploy.resources section"""
    limits: Optional[Resource] = None
    reservations: Optional[Resource] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data: Dict[str, Any] = {}
        if self.limits:
            data["limits"] = self.limits.to_dict()
        if self.reservations:
            data["reservations"] = self.reservations.to_dict()
        return data


@dataclass
class DeployConfig:
    """Service deploy section"""
    replicas: Optional[int] = None
    resources: Resources = field(default_factory=Resources)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data: Dict[str, Any] = {"resources": self.resources.to_dict()}
        if self.replicas is not None:
            data["replicas"] = self.replicas
        return data


@dataclass
class HealthCheckConfig:
    """Service healthcheck section; durations are in seconds"""
    test: List[str] = field(default_factory=list)
    interval: Optional[float] = None
    timeout: Optional[float] = None
    start_period: Optional[float] = None
    retries: Optional[int] = None
    disable: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data: Dict[str, Any] = {"test": list(self.test)}
        for key in ("interval", "timeout", "start_period", "retries"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        if self.disable:
            data["disable"] = True
        return data


@dataclass
class ServiceNetworkConfig:
    """Per-service network attachment options"""
    aliases: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {"aliases": list(self.aliases)} if self.aliases else {}


@dataclass
class NetworkConfig:
    """Top-level network declaration"""
    name: Optional[str] = None
    external: bool = False
    internal: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data: Dict[str, Any] = {}
        if self.name:
            data["name"] = self.name
        if self.external:
            data["external"] = True
        if self.internal:
            data["internal"] = True
        return data


@dataclass
class ServiceConfig:
    """A single compose service"""
    name: str
    image: Optional[str] = None
    build: Optional[BuildConfig] = None
    platform: Optional[str] = None
    ports: List[ServicePortConfig] = field(default_factory=list)
    deploy: Optional[DeployConfig] = None
    healthcheck: Optional[HealthCheckConfig] = None
    networks: Dict[str, Optional[ServiceNetworkConfig]] = field(default_factory=dict)
    environment: Dict[str, Optional[str]] = field(default_factory=dict)
    env_file: List[str] = field(default_factory=list)
    secrets: List[str] = field(default_factory=list)
    command: Optional[List[str]] = None
    entrypoint: Optional[List[str]] = None
    depends_on: List[str] = field(default_factory=list)
    volumes: List[Any] = field(default_factory=list)
    extras: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_build(self) -> bool:
        """Services without a build section use a pre-built image"""
        return self.build is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data: Dict[str, Any] = {}
        if self.image:
            data["image"] = self.image
        if self.build:
            data["build"] = self.build.to_dict()
        if self.platform:
            data["platform"] = self.platform
        if self.ports:
            data["ports"] = [p.to_dict() for p in self.ports]
        if self.deploy:
            data["deploy"] = self.deploy.to_dict()
        if self.healthcheck:
            data["healthcheck"] = self.healthcheck.to_dict()
        if self.networks:
            data["networks"] = {
                name: (cfg.to_dict() if cfg else None)
                for name, cfg in self.networks.items()
            }
        if self.environment:
            data["environment"] = dict(self.environment)
        if self.env_file:
            data["env_file"] = list(self.env_file)
        if self.secrets:
            data["secrets"] = list(self.secrets)
        if self.command is not None:
            data["command"] = list(self.command)
        if self.entrypoint is not None:
            data["entrypoint"] = list(self.entrypoint)
        if self.depends_on:
            data["depends_on"] = list(self.depends_on)
        if self.volumes:
            data["volumes"] = list(self.volumes)
        data.update(self.extras)
        return data


@dataclass
class Project:
    """A loaded compose project"""
    name: str
    working_dir: str = "."
    services: Dict[str, ServiceConfig] = field(default_factory=dict)
    networks: Dict[str, NetworkConfig] = field(default_factory=dict)
    secrets: Dict[str, Any] = field(default_factory=dict)
    volumes: Dict[str, Any] = field(default_factory=dict)
    compose_files: List[str] = field(default_factory=list)

    def services_with_build(self) -> List[ServiceConfig]:
        """Services that need their build context packaged, in name order"""
        return [self.services[name] for name in sorted(self.services)
                if self.services[name].has_build]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data: Dict[str, Any] = {
            "name": self.name,
            "services": {name: svc.to_dict() for name, svc in self.services.items()},
        }
        if self.networks:
            data["networks"] = {name: net.to_dict() for name, net in self.networks.items()}
        if self.secrets:
            data["secrets"] = dict(self.secrets)
        if self.volumes:
            data["volumes"] = dict(self.volumes)
        return data
