"""
Exception classes for the Dropbox filesystem adapter
"""

import enum
import errno as errno_codes
import functools
from typing import Optional


class ErrorKind(enum.Enum):
    """Local error taxonomy every remote failure is mapped onto."""

    INVALID_ARGUMENT = "invalid_argument"
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    RATE_LIMITED = "rate_limited"
    IO_ERROR = "io_error"


DEFAULT_ERRNO = {
    ErrorKind.INVALID_ARGUMENT: errno_codes.EINVAL,
    ErrorKind.PERMISSION_DENIED: errno_codes.EACCES,
    ErrorKind.NOT_FOUND: errno_codes.ENOENT,
    ErrorKind.CONFLICT: errno_codes.EEXIST,
    ErrorKind.RATE_LIMITED: errno_codes.EAGAIN,
    ErrorKind.IO_ERROR: errno_codes.EIO,
}


class DropboxFSException(Exception):
    """
    Base exception for all dropboxfs errors.
    """

    kind = ErrorKind.IO_ERROR

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_tag: Optional[str] = None,
        errno: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_tag = error_tag
        self.errno = errno if errno is not None else DEFAULT_ERRNO[self.kind]

    def with_prefix(self, prefix: str) -> "DropboxFSException":
        """Copy this error with the failing operation's name in front of the message."""
        return self.__class__(
            f"{prefix}: {self.message}",
            status_code=self.status_code,
            error_tag=self.error_tag,
            errno=self.errno,
        )


class InvalidArgumentException(DropboxFSException):
    """Malformed URL, bad configuration or a request the server rejected as invalid."""

    kind = ErrorKind.INVALID_ARGUMENT


class PermissionDeniedException(DropboxFSException):
    """Authentication or authorization failure."""

    kind = ErrorKind.PERMISSION_DENIED


class NotFoundException(DropboxFSException):
    """The path does not exist or has been deleted."""

    kind = ErrorKind.NOT_FOUND


class ConflictException(DropboxFSException):
    """The remote state conflicts with the request, e.g. the path already exists."""

    kind = ErrorKind.CONFLICT


class RateLimitedException(DropboxFSException):
    """The server asked us to slow down. Never retried internally."""

    kind = ErrorKind.RATE_LIMITED


class RemoteIOException(DropboxFSException):
    """Transport failure, unparsable response or unsupported document shape."""

    kind = ErrorKind.IO_ERROR


_EXCEPTION_FOR_KIND = {
    cls.kind: cls
    for cls in (
        InvalidArgumentException,
        PermissionDeniedException,
        NotFoundException,
        ConflictException,
        RateLimitedException,
        RemoteIOException,
    )
}


def exception_for(
    kind: ErrorKind,
    message: str,
    status_code: Optional[int] = None,
    error_tag: Optional[str] = None,
    errno: Optional[int] = None,
) -> DropboxFSException:
    """Build the exception class matching an ErrorKind."""
    return _EXCEPTION_FOR_KIND[kind](
        message, status_code=status_code, error_tag=error_tag, errno=errno
    )


def prefixed_errors(name: str):
    """Re-raise any DropboxFSException from the wrapped call prefixed with ``name``."""

    def _decorator(cb):

        @functools.wraps(cb)
        def _inner(*args, **kwargs):
            try:
                return cb(*args, **kwargs)
            except DropboxFSException as ex:
                raise ex.with_prefix(name) from ex

        return _inner

    return _decorator
