from collections.abc import Generator
from contextlib import contextmanager
from enum import Enum

import httpx


class ErrorCode(str, Enum):
    """Error codes reported back to the host synchronization engine."""

    INVALID_DATASOURCE_CONFIG = "ERROR_CODE_INVALID_DATASOURCE_CONFIG"
    INVALID_ENTITY_CONFIG = "ERROR_CODE_INVALID_ENTITY_CONFIG"
    INVALID_PAGE_REQUEST_CONFIG = "ERROR_CODE_INVALID_PAGE_REQUEST_CONFIG"
    INTERNAL = "ERROR_CODE_INTERNAL"
    DATASOURCE_FAILED = "ERROR_CODE_DATASOURCE_FAILED"

    @property
    def retryable(self) -> bool:
        """Configuration errors need a fix on the caller side; the rest may succeed on retry."""
        return self in (ErrorCode.INTERNAL, ErrorCode.DATASOURCE_FAILED)


class AdapterError(Exception):
    """Base exception for all adapter errors."""

    def __init__(
        self, message: str, code: ErrorCode, original_error: Exception | None = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.original_error = original_error

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code.name}, message={self.message!r})"


class InvalidDatasourceConfigError(AdapterError):
    """Raised when the address, auth or config blob of a request is unusable."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message, ErrorCode.INVALID_DATASOURCE_CONFIG, original_error)


class InvalidEntityConfigError(AdapterError):
    """Raised when the requested entity shape is not supported by the datasource."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message, ErrorCode.INVALID_ENTITY_CONFIG, original_error)


class InvalidPageRequestConfigError(AdapterError):
    """Raised when the page size or cursor violates datasource limits."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message, ErrorCode.INVALID_PAGE_REQUEST_CONFIG, original_error)


class InternalError(AdapterError):
    """Raised for request construction, transport and response decoding failures."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message, ErrorCode.INTERNAL, original_error)


class DatasourceFailedError(AdapterError):
    """Raised when the response body cannot be read after a successful status line."""

    def __init__(
        self,
        message: str = "Failed to read response body.",
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.DATASOURCE_FAILED, original_error)


@contextmanager
def handle_transport_errors(url: str | None = None) -> Generator[None, None, None]:
    """
    Context manager that catches httpx exceptions raised while building
    or sending a request and raises InternalError instead.

    Args:
        url: Optional request URL for better error messages

    Usage:
        with handle_transport_errors(url):
            client.get(url)
    """
    try:
        yield
    except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
        raise InternalError(
            f"Failed to create HTTP request to datasource: {e!s}.", original_error=e
        ) from e
    except httpx.TimeoutException as e:
        target = url or "datasource"
        raise InternalError(
            f"Failed to send request to datasource: request to {target} timed out.",
            original_error=e,
        ) from e
    except httpx.HTTPError as e:
        raise InternalError(f"Failed to send request to datasource: {e!s}.", original_error=e) from e
