"""Error taxonomy shared by the services and rendered by the API layer."""

from __future__ import annotations

from typing import Any

VALIDATION = "VALIDATION"
NOT_FOUND = "NOT_FOUND"
EXTERNAL_API_ERROR = "EXTERNAL_API_ERROR"
INTERNAL = "INTERNAL"


class ApiError(RuntimeError):
    def __init__(
        self,
        message: str,
        *,
        status_code: int = 500,
        code: str = INTERNAL,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details

    @classmethod
    def validation(
        cls,
        parameter: str,
        value: Any,
        allowed: Any,
    ) -> "ApiError":
        if isinstance(allowed, (list, tuple, set, frozenset)):
            allowed_text = ", ".join(str(a) for a in allowed)
            allowed_value: Any = list(allowed)
        else:
            allowed_text = str(allowed)
            allowed_value = allowed
        return cls(
            f"Invalid value {value!r} for '{parameter}'. Allowed: {allowed_text}",
            status_code=400,
            code=VALIDATION,
            details={"parameter": parameter, "received": value, "allowed": allowed_value},
        )

    @classmethod
    def not_found(cls, message: str = "Resource not found") -> "ApiError":
        return cls(message, status_code=404, code=NOT_FOUND)

    @classmethod
    def internal(cls, message: str = "Internal server error") -> "ApiError":
        return cls(message, status_code=500, code=INTERNAL)


class UpstreamError(ApiError):
    """The provider could not be reached or answered with something unusable.

    ``upstream_status`` and ``upstream_body`` are kept for logs only; the
    caller-facing message stays generic.
    """

    def __init__(
        self,
        message: str = "Upstream market data provider failed",
        *,
        upstream_status: int | None = None,
        upstream_body: str | None = None,
    ):
        super().__init__(message, status_code=502, code=EXTERNAL_API_ERROR)
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body
