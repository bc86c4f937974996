"""Configuration data models"""

import os
from dataclasses import dataclass, fields
from typing import Dict, Optional, Any, Mapping

from ..constants import (
    MAX_BUILD_CONTEXT_SIZE,
    FILE_COUNT_WARNING_THRESHOLD,
    DEFAULT_UPLOAD_TIMEOUT,
    ENV_VERBOSE,
    ENV_DEBUG,
    ENV_DRY_RUN,
    ENV_FORCE,
    ENV_MAX_CONTEXT_SIZE,
    ENV_UPLOAD_TIMEOUT,
    ENV_TENANT,
    ENV_PROJECT_NAME,
)

_TRUE_VALUES = ("1", "true", "yes", "on")


def _env_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


@dataclass
class Settings:
    """Runtime settings for one invocation"""

    verbose: bool = False
    debug: bool = False
    dry_run: bool = False
    force: bool = False

    # Packaging
    max_context_size: int = MAX_BUILD_CONTEXT_SIZE
    file_count_warning: int = FILE_COUNT_WARNING_THRESHOLD

    # Upload
    upload_timeout: float = DEFAULT_UPLOAD_TIMEOUT

    # Identity
    tenant: str = ""
    project_name: Optional[str] = None

    # Environment variable -> (field, converter)
    _ENV_MAP = {
        ENV_VERBOSE: ("verbose", _env_bool),
        ENV_DEBUG: ("debug", _env_bool),
        ENV_DRY_RUN: ("dry_run", _env_bool),
        ENV_FORCE: ("force", _env_bool),
        ENV_MAX_CONTEXT_SIZE: ("max_context_size", int),
        ENV_UPLOAD_TIMEOUT: ("upload_timeout", float),
        ENV_TENANT: ("tenant", str),
        ENV_PROJECT_NAME: ("project_name", str),
    }

    def apply_env(self, environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        """Override settings from environment variables

        Args:
            environ: Environment mapping (default: os.environ)

        Returns:
            self, for chaining
        """
        environ = os.environ if environ is None else environ
        for env_name, (attr, convert) in self._ENV_MAP.items():
            value = environ.get(env_name)
            if value is None or value == "":
                continue
            try:
                setattr(self, attr, convert(value))
            except ValueError:
                raise ValueError(f"Invalid value for {env_name}: {value!r}")
        return self

    def update(self, **overrides: Any) -> 'Settings':
        """Apply explicit overrides, ignoring None values"""
        names = {f.name for f in fields(self)}
        for key, value in overrides.items():
            if key not in names:
                raise ValueError(f"Unknown setting: {key}")
            if value is not None:
                setattr(self, key, value)
        return self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Settings':
        """Create from dictionary"""
        packaging = data.get("packaging", {}) or {}
        upload = data.get("upload", {}) or {}
        return cls(
            verbose=bool(data.get("verbose", False)),
            debug=bool(data.get("debug", False)),
            dry_run=bool(data.get("dry_run", False)),
            force=bool(data.get("force", False)),
            max_context_size=int(packaging.get("max_context_size", MAX_BUILD_CONTEXT_SIZE)),
            file_count_warning=int(packaging.get("file_count_warning", FILE_COUNT_WARNING_THRESHOLD)),
            upload_timeout=float(upload.get("timeout", DEFAULT_UPLOAD_TIMEOUT)),
            tenant=str(data.get("tenant", "") or ""),
            project_name=data.get("project_name"),
        )
