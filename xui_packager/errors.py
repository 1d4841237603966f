from __future__ import annotations


class PackagerError(Exception):
    pass


class ConfigError(PackagerError):
    pass


class MissingFieldError(ConfigError):
    def __init__(self, field: str) -> None:
        super().__init__(f"{field} is required")
        self.field = field


class InvalidFormatError(ConfigError):
    def __init__(self, field: str, value: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.value = value


class DirectoryReadError(PackagerError):
    def __init__(self, directory: str, cause: OSError) -> None:
        reason = cause.strerror or str(cause)
        super().__init__(f"Unable to read directory {directory}: {reason}")
        self.directory = directory
        self.cause = cause


class MirrorError(PackagerError):
    pass


class ArchiveError(PackagerError):
    pass


class StageFailed(PackagerError):
    """A pipeline stage halted the run; ``cause`` is the error it raised."""

    def __init__(self, stage: str, cause: BaseException) -> None:
        super().__init__(f"{stage} failed: {cause}")
        self.stage = stage
        self.cause = cause
