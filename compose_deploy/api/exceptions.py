"""Exception definitions for compose-deploy API"""

from ..constants import ErrorCode


class ComposeDeployError(Exception):
    """Base exception for compose-deploy"""

    def __init__(self, message: str, error_code: str = None):
        super().__init__(message)
        self.error_code = error_code


class ConfigError(ComposeDeployError):
    """Configuration error"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CONFIG_FORMAT_ERROR)


class PackError(ComposeDeployError):
    """Build context packaging error"""

    def __init__(self, message: str, error_code: str = ErrorCode.PACK_FAILED):
        super().__init__(message, error_code)


class IgnorePatternError(PackError):
    """Malformed .dockerignore pattern"""

    def __init__(self, pattern: str, reason: str = "syntax error in pattern"):
        super().__init__(
            f"invalid ignore pattern {pattern!r}: {reason}",
            ErrorCode.IGNORE_PATTERN_INVALID
        )
        self.pattern = pattern


class BuildContextError(PackError):
    """Build context directory is missing or unreadable"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.BUILD_CONTEXT_NOT_FOUND)


class BuildContextTooLargeError(PackError):
    """Compressed build context exceeded the size ceiling"""

    def __init__(self, limit: int):
        super().__init__(
            f"build context is too large; limited to {limit // (1024 * 1024)}MiB",
            ErrorCode.BUILD_CONTEXT_TOO_LARGE
        )
        self.limit = limit


class DockerfileNotFoundError(PackError):
    """Declared Dockerfile was not found in the build context"""

    def __init__(self, dockerfile: str):
        super().__init__(
            f"dockerfile not found: the specified dockerfile could not be read: {dockerfile!r}",
            ErrorCode.DOCKERFILE_NOT_FOUND
        )
        self.dockerfile = dockerfile


class OperationCancelledError(PackError):
    """Operation was cancelled while writing"""

    def __init__(self, message: str = "operation cancelled"):
        super().__init__(message, ErrorCode.OPERATION_CANCELLED)


class UploadError(ComposeDeployError):
    """Build context upload error"""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message, ErrorCode.UPLOAD_FAILED)
        self.status_code = status_code


class ComposeError(ComposeDeployError):
    """Compose file could not be loaded"""

    def __init__(self, message: str, error_code: str = ErrorCode.COMPOSE_LOAD_FAILED):
        super().__init__(message, error_code)


class AmbiguousComposeFileError(ComposeError):
    """More than one compose file matched"""

    def __init__(self, files):
        super().__init__(
            f"multiple Compose files found: {list(files)!r}; use -f to specify which one to use",
            ErrorCode.COMPOSE_FILE_AMBIGUOUS
        )
        self.files = list(files)


class ValidationError(ComposeDeployError):
    """Project validation error"""

    def __init__(self, message: str, error_code: str = ErrorCode.PROJECT_VALIDATION_FAILED):
        super().__init__(message, error_code)


class PortConfigError(ValidationError):
    """Port definition cannot be converted"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.PORT_CONFIG_INVALID)
