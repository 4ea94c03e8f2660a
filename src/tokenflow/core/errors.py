from typing import Optional


class TracerError(Exception):
    pass


class InvalidInputError(TracerError):
    """Rejected trace parameter; raised before any provider call."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


class ConfigurationError(TracerError):
    """Data source unusable as configured, e.g. a missing or rejected API key."""


class DataSourceError(TracerError):
    pass


class RateLimitError(DataSourceError):
    pass


class TraceFailedError(TracerError):
    def __init__(self, stage: str, cause: Optional[BaseException] = None) -> None:
        detail = f"{cause.__class__.__name__}: {cause}" if cause is not None else "unknown error"
        super().__init__(f"Trace failed during {stage}: {detail}")
        self.stage = stage
        self.cause = cause
