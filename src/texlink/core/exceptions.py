"""Custom exceptions for texture resolution."""

from typing import Any, Mapping, Optional


class TexLinkError(Exception):
    """Base exception for all texlink errors.

    Attributes:
        message: Human-readable error message.
        details: Optional dictionary of additional error context.
    """

    def __init__(
        self, message: str, details: Optional[Mapping[str, Any]] = None
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message.
            details: Optional dictionary of additional error context.
        """
        super().__init__(message)
        self._details = dict(details) if details else {}

    @property
    def message(self) -> str:
        """Return the human-readable error message."""
        if self.args:
            return str(self.args[0])
        return ""

    @property
    def details(self) -> Mapping[str, Any]:
        """Return an immutable view of error details."""
        return self._details

    def __str__(self) -> str:
        message = self.message
        if not self._details:
            return message
        return f"{message} (details={self._details!r})"


class ConfigurationError(TexLinkError):
    """Raised when resolver settings are invalid."""

    pass


class ValidationError(TexLinkError):
    """Raised when input validation fails."""

    pass


class FileSystemError(TexLinkError):
    """Raised when file system operations fail."""

    pass


class AssetDecodeError(TexLinkError):
    """Raised when a texture entry cannot be turned into an image handle."""

    pass


class MaterialTargetError(TexLinkError):
    """Raised when a scene material rejects a slot mutation."""

    pass


class USDStageError(TexLinkError):
    """Raised when USD stage operations fail."""

    pass
