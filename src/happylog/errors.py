"""Exceptions raised while validating and rendering log calls."""


class HappyLogError(Exception):
    """Base exception for all happylog errors."""

    def __init__(self, message: str, *, details: dict[str, object] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class FatalUsageError(HappyLogError):
    """Raised for call sites that must never run; the process is expected to stop."""


class ReservedKeyError(FatalUsageError):
    """Raised when a caller uses a reserved key as a custom field name."""

    def __init__(self, key: str) -> None:
        super().__init__(
            f"Key conflicts with reserved key: {key!r}. Avoid using reserved keys.",
            details={"key": key},
        )
        self.key = key


class UnrecoverableRenderError(HappyLogError):
    """Raised when a single record cannot be rendered safely."""


class ComplexKeyError(UnrecoverableRenderError):
    """Raised when a key would need escaping in the canonical encoding."""

    def __init__(self, key: str) -> None:
        super().__init__(
            f"Key is complex. Use simpler key for: {key!r}",
            details={"key": key},
        )
        self.key = key
