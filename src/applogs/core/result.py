"""Tagged success/error envelope returned by every store operation."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ErrorCode(StrEnum):
    """Closed set of error codes."""

    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    NOT_IMPLEMENTED = "NOT_IMPLEMENTED"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]


_HTTP_STATUS = {
    ErrorCode.BAD_REQUEST: 400,
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.VALIDATION_ERROR: 422,
    ErrorCode.INTERNAL_ERROR: 500,
    ErrorCode.NOT_IMPLEMENTED: 501,
    ErrorCode.SERVICE_UNAVAILABLE: 503,
}


@dataclass(frozen=True)
class ApiError:
    """Error payload: a code, a message and optional details."""

    code: ErrorCode
    message: str
    details: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code.value, "message": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful result carrying a payload."""

    data: T

    ok = True

    @property
    def http_status(self) -> int:
        return 200

    def to_dict(self) -> dict[str, Any]:
        return {"ok": True, "data": to_jsonable(self.data)}


@dataclass(frozen=True)
class Err:
    """Error result carrying an ApiError."""

    error: ApiError

    ok = False

    @property
    def http_status(self) -> int:
        return self.error.code.http_status

    def to_dict(self) -> dict[str, Any]:
        return {"ok": False, "error": self.error.to_dict()}


Result = Ok[Any] | Err


class AppLogsError(Exception):
    """Base error that maps onto an error envelope."""

    code = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_api_error(self) -> ApiError:
        return ApiError(self.code, self.message, self.details)


class BadRequestError(AppLogsError):
    """A required payload field is missing or the payload is malformed."""

    code = ErrorCode.BAD_REQUEST


class ValidationError(AppLogsError):
    """A payload field is present but has an invalid value."""

    code = ErrorCode.VALIDATION_ERROR


class NotFoundError(AppLogsError):
    """The operation or resource does not exist."""

    code = ErrorCode.NOT_FOUND


def err(code: ErrorCode, message: str, details: dict[str, Any] | None = None) -> Err:
    """Build an Err result."""
    return Err(ApiError(code, message, details))


def wrap_error(exc: BaseException) -> Err:
    """Convert an exception into an Err result.

    AppLogsError keeps its own code; anything else becomes INTERNAL_ERROR
    carrying only the exception message.
    """
    if isinstance(exc, AppLogsError):
        return Err(exc.to_api_error())
    message = str(exc) or type(exc).__name__
    return err(ErrorCode.INTERNAL_ERROR, message)


def to_jsonable(value: Any) -> Any:
    """Convert result payloads (models, lists of models) to JSON-ready values."""
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, list | tuple):
        return [to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    return value
