"""Errors raised while resolving references."""

from typing import Iterable, Optional


class RefError(ValueError):
    """Base class for user-facing reference errors."""

    pass


class RefSyntaxError(RefError):
    """Malformed reference string or option value."""

    pass


class RefInferenceError(RefError):
    """Format could not be inferred from the path."""

    pass


class RefPolicyError(RefError):
    """Resolved format, compression or option is not allowed here.

    Attributes:
        format: The offending format name (if known)
        kind: The kind of the offending format (if known)
        allowed: The formats allowed in the calling context
    """

    def __init__(
        self,
        message: str,
        format: Optional[str] = None,
        kind: Optional[str] = None,
        allowed: Iterable[str] = (),
    ):
        super().__init__(message)
        self.format = format
        self.kind = kind
        self.allowed = tuple(allowed)


class RefInternalError(RuntimeError):
    """Internal invariant violation. Never caused by user input."""

    pass


class ConfigError(ValueError):
    """Invalid parser configuration."""

    pass


__all__ = [
    "ConfigError",
    "RefError",
    "RefInferenceError",
    "RefInternalError",
    "RefPolicyError",
    "RefSyntaxError",
]
