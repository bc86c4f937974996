# compose_deploy/core/compose_loader.py
"""Compose manifest loading and normalization"""

import glob
import logging
import os
import re
import shlex
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from ..api.exceptions import AmbiguousComposeFileError, ComposeError
from ..constants import COMPOSE_FILE_NAMES, DEFAULT_NETWORK, PROJECT_NAME_PATTERN
from ..models.compose import (
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
from ..models.result import ValidationResult
from ..utils.units import parse_duration, parse_memory

_INTERPOLATION_PATTERN = re.compile(
    r"\$(?:"
    r"(?P<escaped>\$)"
    r"|(?P<named>[_a-zA-Z][_a-zA-Z0-9]*)"
    r"|\{(?P<braced>[_a-zA-Z][_a-zA-Z0-9]*)(?:(?P<op>:?[-?+])(?P<arg>[^}]*))?\}"
    r"|(?P<invalid>)"
    r")"
)

_INVALID_PROJECT_CHARS = re.compile(r"[^a-z0-9_-]+")

_SERVICE_KEYS = {
    "image", "build", "platform", "ports", "deploy", "healthcheck", "networks",
    "environment", "env_file", "secrets", "command", "entrypoint", "depends_on",
    "volumes",
}


def find_compose_file(directory: Optional[str] = None) -> str:
    """
    Discover the compose file of a directory

    Args:
        directory: Directory to search (default: current directory)

    Returns:
        Path to the compose file

    Raises:
        AmbiguousComposeFileError: If more than one standard file exists
        ComposeError: If there is none
    """
    directory = directory or os.getcwd()
    found = [os.path.join(directory, name) for name in COMPOSE_FILE_NAMES
             if os.path.isfile(os.path.join(directory, name))]
    if len(found) > 1:
        raise AmbiguousComposeFileError(found)
    if not found:
        raise ComposeError(
            f"no compose file found in {directory!r}; expected one of {COMPOSE_FILE_NAMES}"
        )
    return found[0]


def _as_list(value: Any, field_name: str) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    raise ComposeError(f"{field_name} must be a list, got {type(value).__name__}")


def _as_mapping(value: Any, field_name: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    raise ComposeError(f"{field_name} must be a mapping, got {type(value).__name__}")


def _scalar_to_str(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _split_command(value: Any, field_name: str) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        return shlex.split(value)
    if isinstance(value, list):
        return [_scalar_to_str(v) for v in value]
    raise ComposeError(f"{field_name} must be a string or a list")


def _parse_port_range(text: str) -> Tuple[int, int]:
    start, sep, end = text.partition("-")
    try:
        low = int(start)
        high = int(end) if sep else low
    except ValueError:
        raise ComposeError(f"invalid port: {text!r}")
    if high < low:
        raise ComposeError(f"invalid port range: {text!r}")
    return low, high


def parse_port_short_syntax(spec: str) -> List[ServicePortConfig]:
    """
    Expand a short-syntax port such as ``127.0.0.1:8080:80/udp``

    Short syntax always means ingress mode, with tcp unless a protocol is
    given. A target range expands into one port per target.

    Args:
        spec: Port string or number

    Returns:
        List of expanded ports

    Raises:
        ComposeError: If the port cannot be parsed
    """
    spec = str(spec).strip()
    spec, _, protocol = spec.partition("/")

    parts = spec.rsplit(":", 2)
    host_ip = ""
    published = ""
    if len(parts) == 3:
        host_ip, published, target = parts
        host_ip = host_ip.strip("[]")
    elif len(parts) == 2:
        published, target = parts
    else:
        target = parts[0]

    low, high = _parse_port_range(target)
    published_ports: List[str] = []
    if published:
        pub_low, pub_high = _parse_port_range(published)
        if pub_high - pub_low == high - low:
            published_ports = [str(p) for p in range(pub_low, pub_high + 1)]
        elif low == high:
            published_ports = [published]
        else:
            raise ComposeError(f"port range mismatch in {spec!r}")

    ports = []
    for i, port in enumerate(range(low, high + 1)):
        ports.append(ServicePortConfig(
            target=port,
            published=published_ports[i] if published_ports else "",
            host_ip=host_ip,
            protocol=protocol or "tcp",
            mode="ingress",
        ))
    return ports


class ComposeLoader:
    """Load a compose file into a normalized Project

    Warnings raised while loading (unset variables, unresolved environment
    keys) are collected in ``result``.
    """

    def __init__(self,
                 logger: Optional[logging.Logger] = None,
                 environment: Optional[Mapping[str, str]] = None,
                 discard_env_files: bool = True,
                 skip_consistency_check: bool = True):
        """
        Initialize loader

        Args:
            logger: Diagnostics sink (default: module logger)
            environment: Variables for interpolation (default: os.environ)
            discard_env_files: Merge env_file contents into environment and drop them
            skip_consistency_check: Tolerate references without a top-level declaration
        """
        self.logger = logger or logging.getLogger(__name__)
        self.environment = os.environ if environment is None else environment
        self.discard_env_files = discard_env_files
        self.skip_consistency_check = skip_consistency_check
        self.result = ValidationResult()
        self._warned_variables = set()

    def _warning(self, message: str) -> None:
        self.logger.warning(message)
        self.result.add_warning(message)

    # Interpolation

    def interpolate(self, value: Any, path: str = "") -> Any:
        """
        Substitute variables in every string of a parsed document

        Args:
            value: Parsed YAML value
            path: Location of the value, for error messages

        Returns:
            The value with all variables substituted
        """
        if isinstance(value, dict):
            return {k: self.interpolate(v, f"{path}.{k}" if path else str(k)) for k, v in value.items()}
        if isinstance(value, list):
            return [self.interpolate(v, f"{path}[{i}]") for i, v in enumerate(value)]
        if isinstance(value, str):
            return self._interpolate_string(value, path)
        return value

    def _interpolate_string(self, text: str, path: str) -> str:
        def replace(match: re.Match) -> str:
            if match.group("escaped") is not None:
                return "$"
            if match.group("invalid") is not None:
                raise ComposeError(f"invalid interpolation format for {path}: {text!r}")

            name = match.group("named") or match.group("braced")
            op = match.group("op")
            value = self.environment.get(name)
            unset = value is None
            empty = unset or value == ""

            if op in (":-", "-"):
                if (op == ":-" and empty) or (op == "-" and unset):
                    return self._interpolate_string(match.group("arg"), path)
                return value
            if op in (":?", "?"):
                if (op == ":?" and empty) or (op == "?" and unset):
                    reason = match.group("arg") or f"variable {name!r} is required"
                    raise ComposeError(f"required variable {name} is missing a value: {reason}")
                return value
            if op in (":+", "+"):
                if (op == ":+" and not empty) or (op == "+" and not unset):
                    return self._interpolate_string(match.group("arg"), path)
                return ""

            if unset:
                if name not in self._warned_variables:
                    self._warned_variables.add(name)
                    self._warning(f"the {name!r} variable is not set; defaulting to a blank string")
                return ""
            return value

        return _INTERPOLATION_PATTERN.sub(replace, text)

    def resolve_env(self, key: str) -> Optional[str]:
        """
        Resolve a bare environment key from the process environment

        Args:
            key: Variable name

        Returns:
            The value, or None (with a warning) when it is not set
        """
        value = self.environment.get(key)
        if value is None:
            self._warning(f"environment variable not found: {key!r}")
        return value

    # Loading

    def load(self, file_path: str, project_name: str = "", override: bool = False) -> Project:
        """
        Load and normalize a compose file

        Args:
            file_path: Path or glob pattern of the compose file
            project_name: Project name, lowercased before use
            override: Use project_name even if the manifest declares a name

        Returns:
            Normalized project

        Raises:
            AmbiguousComposeFileError: If the glob matches more than one file
            ComposeError: If the file cannot be read or is malformed
        """
        files = sorted(glob.glob(file_path))
        if len(files) > 1:
            raise AmbiguousComposeFileError(files)
        elif len(files) == 1:
            file_path = files[0]

        self.logger.debug(f" - Loading compose file {file_path}")

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ComposeError(f"failed to read compose file {file_path!r}: {e}")
        except UnicodeDecodeError as e:
            raise ComposeError(f"compose file {file_path!r} is not valid UTF-8: {e}")
        except yaml.YAMLError as e:
            raise ComposeError(f"failed to parse compose file {file_path!r}: {e}")

        if not isinstance(data, dict):
            raise ComposeError(f"compose file {file_path!r} must contain a mapping")

        data = self.interpolate(data)
        working_dir = os.path.dirname(os.path.abspath(file_path))

        project = Project(
            name=self._resolve_project_name(data.get("name"), project_name, override, working_dir),
            working_dir=working_dir,
            compose_files=[os.path.abspath(file_path)],
        )

        for name, net in _as_mapping(data.get("networks"), "networks").items():
            net = _as_mapping(net, f"networks.{name}")
            project.networks[name] = NetworkConfig(
                name=net.get("name"),
                external=bool(net.get("external", False)),
                internal=bool(net.get("internal", False)),
            )
        project.secrets = dict(_as_mapping(data.get("secrets"), "secrets"))
        project.volumes = dict(_as_mapping(data.get("volumes"), "volumes"))

        services = _as_mapping(data.get("services"), "services")
        for name, raw in services.items():
            project.services[name] = self._parse_service(str(name), raw or {}, working_dir)

        if not self.skip_consistency_check:
            self.check_consistency(project)

        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(yaml.safe_dump(project.to_dict(), sort_keys=False))
        return project

    def _resolve_project_name(self, declared: Any, project_name: str, override: bool,
                              working_dir: str) -> str:
        project_name = (project_name or "").lower()
        if override and project_name:
            name = project_name
        elif declared:
            name = str(declared)
        elif project_name:
            name = project_name
        else:
            name = _INVALID_PROJECT_CHARS.sub("", os.path.basename(working_dir).lower())

        if not PROJECT_NAME_PATTERN.match(name):
            raise ComposeError(
                f"invalid project name {name!r}: must contain only lowercase letters, "
                "digits, dashes and underscores, and start with a letter or digit"
            )
        return name

    def check_consistency(self, project: Project) -> None:
        """
        Require top-level declarations for every reference

        Raises:
            ComposeError: On the first undeclared reference
        """
        for name in sorted(project.services):
            service = project.services[name]
            for secret in service.secrets:
                if secret not in project.secrets:
                    raise ComposeError(f"service {name!r} refers to undefined secret {secret}")
            for network in service.networks:
                if network != DEFAULT_NETWORK and network not in project.networks:
                    raise ComposeError(f"service {name!r} refers to undefined network {network}")
            for dependency in service.depends_on:
                if dependency not in project.services:
                    raise ComposeError(f"service {name!r} depends on undefined service {dependency}")

    # Service normalization

    def _parse_service(self, name: str, raw: Any, working_dir: str) -> ServiceConfig:
        raw = _as_mapping(raw, f"services.{name}")
        service = ServiceConfig(name=name)

        image = raw.get("image")
        service.image = str(image) if image else None
        platform = raw.get("platform")
        service.platform = str(platform) if platform else None

        if raw.get("build") is not None:
            service.build = self._parse_build(raw["build"], working_dir, name)

        for item in _as_list(raw.get("ports"), f"services.{name}.ports"):
            service.ports.extend(self._parse_port(item, name))

        service.environment = self._parse_environment(raw.get("environment"), name)
        env_files = raw.get("env_file")
        if isinstance(env_files, (str, dict)):
            env_files = [env_files]
        env_files = _as_list(env_files, f"services.{name}.env_file")
        if env_files:
            merged = self._read_env_files(env_files, working_dir, name)
            merged.update(service.environment)
            service.environment = merged
            if not self.discard_env_files:
                service.env_file = [
                    f["path"] if isinstance(f, dict) else str(f) for f in env_files
                ]

        service.networks = self._parse_networks(raw.get("networks"), name)
        service.secrets = self._parse_secrets(raw.get("secrets"), name)
        service.command = _split_command(raw.get("command"), f"services.{name}.command")
        service.entrypoint = _split_command(raw.get("entrypoint"), f"services.{name}.entrypoint")

        depends_on = raw.get("depends_on")
        if isinstance(depends_on, dict):
            service.depends_on = list(depends_on)
        else:
            service.depends_on = [str(d) for d in _as_list(depends_on, f"services.{name}.depends_on")]

        service.volumes = list(_as_list(raw.get("volumes"), f"services.{name}.volumes"))

        if raw.get("deploy") is not None:
            service.deploy = self._parse_deploy(raw["deploy"], name)
        if raw.get("healthcheck") is not None:
            service.healthcheck = self._parse_healthcheck(raw["healthcheck"], name)

        for key, value in raw.items():
            if key not in _SERVICE_KEYS:
                service.extras[key] = value

        return service

    def _parse_build(self, raw: Any, working_dir: str, name: str) -> BuildConfig:
        if isinstance(raw, str):
            return BuildConfig(context=os.path.normpath(os.path.join(working_dir, raw)))

        raw = _as_mapping(raw, f"services.{name}.build")
        context = os.path.normpath(os.path.join(working_dir, str(raw.get("context") or ".")))

        args_raw = raw.get("args")
        args: Dict[str, Optional[str]] = {}
        if isinstance(args_raw, list):
            for item in args_raw:
                key, sep, value = str(item).partition("=")
                args[key] = value if sep else None
        else:
            for key, value in _as_mapping(args_raw, f"services.{name}.build.args").items():
                args[key] = None if value is None else _scalar_to_str(value)

        return BuildConfig(
            context=context,
            dockerfile=str(raw.get("dockerfile") or ""),
            args=args,
            target=raw.get("target"),
        )

    def _parse_port(self, item: Any, name: str) -> List[ServicePortConfig]:
        if isinstance(item, (str, int)) and not isinstance(item, bool):
            return parse_port_short_syntax(str(item))

        item = _as_mapping(item, f"services.{name}.ports")
        try:
            target = int(item.get("target", 0))
        except (TypeError, ValueError):
            raise ComposeError(f"service {name!r}: invalid port target {item.get('target')!r}")

        published = item.get("published")
        return [ServicePortConfig(
            target=target,
            published="" if published is None else str(published),
            host_ip=str(item.get("host_ip") or ""),
            protocol=str(item.get("protocol") or ""),
            mode=str(item.get("mode") or ""),
            app_protocol=str(item.get("app_protocol") or ""),
        )]

    def _parse_environment(self, raw: Any, name: str) -> Dict[str, Optional[str]]:
        if isinstance(raw, list):
            pairs = []
            for item in raw:
                key, sep, value = str(item).partition("=")
                pairs.append((key, value if sep else None))
        else:
            pairs = list(_as_mapping(raw, f"services.{name}.environment").items())

        environment: Dict[str, Optional[str]] = {}
        for key, value in pairs:
            if value is None:
                value = self.resolve_env(key)
                # Unresolved keys are dropped
                if value is None:
                    continue
            environment[key] = _scalar_to_str(value)
        return environment

    def _read_env_files(self, env_files: List[Any], working_dir: str, name: str) -> Dict[str, str]:
        merged: Dict[str, str] = {}
        for entry in env_files:
            required = True
            if isinstance(entry, dict):
                path = entry.get("path", "")
                required = bool(entry.get("required", True))
            else:
                path = str(entry)
            full_path = os.path.join(working_dir, path)

            try:
                with open(full_path, 'r', encoding='utf-8') as f:
                    lines = f.read().splitlines()
            except OSError as e:
                if not required:
                    self.logger.debug(f" - Skipping optional env file {path}")
                    continue
                raise ComposeError(f"service {name!r}: failed to read env file {path!r}: {e}")
            except UnicodeDecodeError as e:
                raise ComposeError(f"service {name!r}: env file {path!r} is not valid UTF-8: {e}")

            for line in lines:
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                if line.startswith("export "):
                    line = line[len("export "):].lstrip()
                key, sep, value = line.partition("=")
                key = key.strip()
                if not sep:
                    resolved = self.resolve_env(key)
                    if resolved is not None:
                        merged[key] = resolved
                    continue
                value = value.strip()
                if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
                    value = value[1:-1]
                merged[key] = value
        return merged

    def _parse_networks(self, raw: Any, name: str) -> Dict[str, Optional[ServiceNetworkConfig]]:
        if isinstance(raw, list):
            return {str(net): None for net in raw}

        networks: Dict[str, Optional[ServiceNetworkConfig]] = {}
        for net, cfg in _as_mapping(raw, f"services.{name}.networks").items():
            if cfg is None:
                networks[net] = None
            else:
                cfg = _as_mapping(cfg, f"services.{name}.networks.{net}")
                aliases = _as_list(cfg.get("aliases"), f"services.{name}.networks.{net}.aliases")
                networks[net] = ServiceNetworkConfig(aliases=[str(a) for a in aliases])
        return networks

    def _parse_secrets(self, raw: Any, name: str) -> List[str]:
        secrets = []
        for item in _as_list(raw, f"services.{name}.secrets"):
            if isinstance(item, dict):
                if "source" not in item:
                    raise ComposeError(f"service {name!r}: secret is missing 'source'")
                secrets.append(str(item["source"]))
            else:
                secrets.append(str(item))
        return secrets

    def _parse_resource(self, raw: Any, field_name: str) -> Resource:
        raw = _as_mapping(raw, field_name)
        resource = Resource()
        try:
            if raw.get("cpus") is not None:
                resource.cpus = float(raw["cpus"])
            if raw.get("memory") is not None:
                resource.memory = parse_memory(raw["memory"])
        except ValueError as e:
            raise ComposeError(f"{field_name}: {e}")
        return resource

    def _parse_deploy(self, raw: Any, name: str) -> DeployConfig:
        field_name = f"services.{name}.deploy"
        raw = _as_mapping(raw, field_name)
        deploy = DeployConfig()

        if raw.get("replicas") is not None:
            try:
                deploy.replicas = int(raw["replicas"])
            except (TypeError, ValueError):
                raise ComposeError(f"{field_name}.replicas must be an integer")

        resources = _as_mapping(raw.get("resources"), f"{field_name}.resources")
        deploy.resources = Resources(
            limits=(self._parse_resource(resources["limits"], f"{field_name}.resources.limits")
                    if resources.get("limits") is not None else None),
            reservations=(self._parse_resource(resources["reservations"],
                                               f"{field_name}.resources.reservations")
                          if resources.get("reservations") is not None else None),
        )
        return deploy

    def _parse_healthcheck(self, raw: Any, name: str) -> HealthCheckConfig:
        field_name = f"services.{name}.healthcheck"
        raw = _as_mapping(raw, field_name)

        test = raw.get("test")
        if isinstance(test, str):
            test = ["CMD-SHELL", test]
        test = [str(t) for t in _as_list(test, f"{field_name}.test")]

        healthcheck = HealthCheckConfig(test=test, disable=bool(raw.get("disable", False)))
        try:
            for key in ("interval", "timeout", "start_period"):
                if raw.get(key) is not None:
                    setattr(healthcheck, key, parse_duration(raw[key]))
            if raw.get("retries") is not None:
                healthcheck.retries = int(raw["retries"])
        except (TypeError, ValueError) as e:
            raise ComposeError(f"{field_name}: {e}")
        return healthcheck


def load_compose(file_path: str, tenant_id: str,
                 logger: Optional[logging.Logger] = None) -> Project:
    """
    Load a compose file, naming the project after the tenant unless the
    manifest declares a name itself
    """
    return ComposeLoader(logger).load(file_path, tenant_id, override=False)


def load_compose_with_project_name(file_path: str, project_name: str,
                                   logger: Optional[logging.Logger] = None) -> Project:
    """Load a compose file under an explicit project name"""
    return ComposeLoader(logger).load(file_path, project_name, override=True)
