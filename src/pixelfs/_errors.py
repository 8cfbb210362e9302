"""Normalized error hierarchy for pixelfs."""

from __future__ import annotations

from typing import Optional


class PixelFSError(Exception):
    """Base class for all pixelfs errors.

    :param message: Human-readable error description.
    :param path: The path involved in the error, if any.
    :param backend: The backend name involved, if any.
    """

    def __init__(self, message: str = "", *, path: Optional[str] = None, backend: Optional[str] = None) -> None:
        self.path = path
        self.backend = backend
        super().__init__(message)

    def _context(self) -> list[str]:
        parts = []
        if self.path is not None:
            parts.append(f"path={self.path!r}")
        if self.backend is not None:
            parts.append(f"backend={self.backend!r}")
        return parts

    def __str__(self) -> str:
        message = self.args[0] if self.args else ""
        context = self._context()
        return " | ".join([message, *context]) if context else message

    def __repr__(self) -> str:
        cls = type(self).__name__
        args = [repr(self.args[0] if self.args else ""), *self._context()]
        return f"{cls}({', '.join(args)})"


class NotFound(PixelFSError):
    """Raised when a file or directory does not exist."""


class AlreadyExists(PixelFSError):
    """Raised when a target already exists and overwrite is not allowed."""


class PermissionDenied(PixelFSError):
    """Raised when the credential may not perform the operation."""


class DirectoryNotEmpty(PixelFSError):
    """Raised when a non-recursive delete targets a directory with children."""


class AuthenticationFailed(PixelFSError):
    """Raised when the remote service rejects the configured credentials."""


class InvalidPath(PixelFSError):
    """Raised for malformed, unsafe, or out-of-scope paths."""


class DecodeError(PixelFSError):
    """Raised when a response body cannot be decoded."""


class ApiError(PixelFSError):
    """An API error whose code has no dedicated error class.

    Both the machine-readable ``code`` and the server ``message`` are kept
    verbatim so callers can still inspect codes this client does not know.

    :param message: The server message, kept as ``message`` even when empty.
        The exception text falls back to ``code`` when it is empty.
    :param code: The ``value`` field of the error payload.
    :param status_code: The HTTP status of the response, if known.
    """

    def __init__(
        self,
        message: str = "",
        *,
        code: str = "",
        status_code: Optional[int] = None,
        path: Optional[str] = None,
        backend: Optional[str] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message or code, path=path, backend=backend)

    def _context(self) -> list[str]:
        parts = [f"code={self.code!r}"]
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")
        return [*parts, *super()._context()]


class CapabilityNotSupported(PixelFSError):
    """Raised when an operation requires an unsupported capability.

    :param capability: The name of the unsupported capability.
    """

    def __init__(
        self,
        message: str = "",
        *,
        path: Optional[str] = None,
        backend: Optional[str] = None,
        capability: str = "",
    ) -> None:
        self.capability = capability
        super().__init__(message, path=path, backend=backend)

    def _context(self) -> list[str]:
        parts = super()._context()
        if self.capability:
            parts.append(f"capability={self.capability!r}")
        return parts


class BackendUnavailable(PixelFSError):
    """Raised when the remote service cannot be reached."""
