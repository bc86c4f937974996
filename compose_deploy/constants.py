"""Global constants for compose-deploy"""

import re

APP_NAME = "compose-deploy"
LOG_FORMAT = "%(message)s"

# Size units
KiB = 1024
MiB = 1024 * KiB
GiB = 1024 * MiB

# Project configuration
PROJECT_CONFIG_FILE = ".compose-deploy.yaml"

# Compose file discovery, in order of preference
COMPOSE_FILE_NAMES = [
    "compose.yaml",
    "compose.yml",
    "docker-compose.yaml",
    "docker-compose.yml",
]

# Build context packaging
DEFAULT_DOCKERFILE = "Dockerfile"
DOCKERIGNORE_FILE = ".dockerignore"
SOURCE_DATE_EPOCH = 315532800  # 1980-01-01, same as nix-shell
MAX_BUILD_CONTEXT_SIZE = 10 * MiB
FILE_COUNT_WARNING_THRESHOLD = 10
ARCHIVE_CONTENT_TYPE = "application/gzip"
DIGEST_PREFIX = "sha256-"

DEFAULT_DOCKERIGNORE = """# Default .dockerignore file for compose-deploy
**/.DS_Store
**/.direnv
**/.envrc
**/.git
**/.github
**/.idea
**/.next
**/.vscode
**/__pycache__
**/compose.yaml
**/compose.yml
**/compose-deploy.exe
**/docker-compose.yml
**/docker-compose.yaml
**/node_modules
**/Thumbs.db
# Ignore our own binary, but only in the root to avoid ignoring subfolders
compose-deploy
"""

# Platform limits
MIN_PORT_TARGET = 1
MAX_PORT_TARGET = 32767
MAX_SERVICE_NAME_LENGTH = 36
DEFAULT_NETWORK = "default"

SUPPORTED_PROTOCOLS = ["tcp", "udp", "http", "http2", "grpc"]
SUPPORTED_MODES = ["host", "ingress"]
HEALTHCHECK_TEST_KINDS = ["NONE", "CMD", "CMD-SHELL"]

# Upload
DEFAULT_UPLOAD_TIMEOUT = 60.0  # seconds

# Validation patterns
PROJECT_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_-]*$")
NON_ALPHANUMERIC_PATTERN = re.compile(r"[^a-zA-Z0-9]+")


# Error codes
class ErrorCode:
    CONFIG_FORMAT_ERROR = "CD001"
    COMPOSE_LOAD_FAILED = "CD002"
    COMPOSE_FILE_AMBIGUOUS = "CD003"
    PROJECT_VALIDATION_FAILED = "CD004"
    PORT_CONFIG_INVALID = "CD005"
    IGNORE_PATTERN_INVALID = "CD006"
    BUILD_CONTEXT_NOT_FOUND = "CD007"
    BUILD_CONTEXT_TOO_LARGE = "CD008"
    DOCKERFILE_NOT_FOUND = "CD009"
    UPLOAD_FAILED = "CD010"
    OPERATION_CANCELLED = "CD011"
    PACK_FAILED = "CD012"


# Environment variables
ENV_CONFIG_PATH = "COMPOSE_DEPLOY_CONFIG"
ENV_VERBOSE = "COMPOSE_DEPLOY_VERBOSE"
ENV_DEBUG = "COMPOSE_DEPLOY_DEBUG"
ENV_DRY_RUN = "COMPOSE_DEPLOY_DRY_RUN"
ENV_FORCE = "COMPOSE_DEPLOY_FORCE"
ENV_MAX_CONTEXT_SIZE = "COMPOSE_DEPLOY_MAX_CONTEXT_SIZE"
ENV_UPLOAD_TIMEOUT = "COMPOSE_DEPLOY_UPLOAD_TIMEOUT"
ENV_TENANT = "COMPOSE_DEPLOY_TENANT"
ENV_PROJECT_NAME = "COMPOSE_PROJECT_NAME"

# Display constants
EMOJI_SUCCESS = "✓"
EMOJI_WARNING = "⚠"
EMOJI_PACKAGE = "📦"
