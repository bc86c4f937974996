"""Strict deployment descriptor produced from a validated compose project"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Any


class Platform(Enum):
    """Target platform"""
    LINUX_ANY = "linux"
    LINUX_AMD64 = "linux/amd64"
    LINUX_ARM64 = "linux/arm64"


class Protocol(Enum):
    """Port protocol; ANY lets the platform pick (HTTP)"""
    ANY = "any"
    TCP = "tcp"
    UDP = "udp"
    HTTP = "http"
    HTTP2 = "http2"
    GRPC = "grpc"


class Mode(Enum):
    """Port exposure mode"""
    HOST = "host"
    INGRESS = "ingress"


@dataclass
class Port:
    """Converted port"""
    target: int
    mode: Mode = Mode.HOST
    protocol: Protocol = Protocol.ANY

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "target": self.target,
            "mode": self.mode.value,
            "protocol": self.protocol.value,
        }


@dataclass
class Build:
    """Build instructions pointing at an uploaded context"""
    context: str
    dockerfile: str = ""
    args: Dict[str, str] = field(default_factory=dict)
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
class HealthCheck:
    """Converted healthcheck"""
    test: List[str]
    interval: Optional[float] = None
    timeout: Optional[float] = None
    retries: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data: Dict[str, Any] = {"test": list(self.test)}
        if self.interval is not None:
            data["interval"] = self.interval
        if self.timeout is not None:
            data["timeout"] = self.timeout
        if self.retries is not None:
            data["retries"] = self.retries
        return data


@dataclass
class Resources:
    """Reserved resources"""
    memory_mib: Optional[float] = None
    cpus: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data: Dict[str, Any] = {}
        if self.memory_mib is not None:
            data["memory_mib"] = self.memory_mib
        if self.cpus is not None:
            data["cpus"] = self.cpus
        return data


@dataclass
class Deploy:
    """Converted deploy section"""
    replicas: int = 1
    reservations: Optional[Resources] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data: Dict[str, Any] = {"replicas": self.replicas}
        if self.reservations:
            data["reservations"] = self.reservations.to_dict()
        return data


@dataclass
class Service:
    """Converted service ready to be sent to the platform"""
    name: str
    image: Optional[str] = None
    platform: Platform = Platform.LINUX_ANY
    ports: List[Port] = field(default_factory=list)
    build: Optional[Build] = None
    deploy: Optional[Deploy] = None
    healthcheck: Optional[HealthCheck] = None
    environment: Dict[str, str] = field(default_factory=dict)
    secrets: List[str] = field(default_factory=list)
    networks: List[str] = field(default_factory=list)
    command: List[str] = field(default_factory=list)
    entrypoint: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data: Dict[str, Any] = {
            "name": self.name,
            "platform": self.platform.value,
        }
        if self.image:
            data["image"] = self.image
        if self.ports:
            data["ports"] = [p.to_dict() for p in self.ports]
        if self.build:
            data["build"] = self.build.to_dict()
        if self.deploy:
            data["deploy"] = self.deploy.to_dict()
        if self.healthcheck:
            data["healthcheck"] = self.healthcheck.to_dict()
        if self.environment:
            data["environment"] = dict(self.environment)
        if self.secrets:
            data["secrets"] = list(self.secrets)
        if self.networks:
            data["networks"] = list(self.networks)
        if self.command:
            data["command"] = list(self.command)
        if self.entrypoint:
            data["entrypoint"] = list(self.entrypoint)
        return data


@dataclass
class DeployRequest:
    """The full deployment request for one project"""
    project: str
    services: List[Service] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "project": self.project,
            "services": [s.to_dict() for s in self.services],
        }
