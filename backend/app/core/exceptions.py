"""Error envelope for every non-success API response.

Failures render as ``{"error": {code, domain, name, message, detail?, extra?}}``
from the ``ErrorCode`` catalogue. Framework errors (unknown routes, bearer
rejections, request validation) are translated into the same envelope.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, NoReturn

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.errors import ErrorCode

logger = logging.getLogger(__name__)

_CODES_BY_STATUS: dict[int, ErrorCode] = {
    status.HTTP_401_UNAUTHORIZED: ErrorCode.COMMON_UNAUTHENTICATED,
    status.HTTP_403_FORBIDDEN: ErrorCode.COMMON_PERMISSION_DENIED,
    status.HTTP_404_NOT_FOUND: ErrorCode.COMMON_RESOURCE_NOT_FOUND,
    status.HTTP_422_UNPROCESSABLE_ENTITY: ErrorCode.COMMON_VALIDATION_ERROR,
}

# pydantic also attaches ``input`` and ``ctx``, which may not serialise
_VALIDATION_KEYS = ("type", "loc", "msg")


class BaseAppException(Exception):
    def __init__(
        self,
        error_code: ErrorCode,
        *,
        detail: Any | None = None,
        extra: dict[str, Any] | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(error_code.value)
        self.error_code = error_code
        self.detail = detail
        self.extra = extra or {}
        self.status_code = status_code or error_code.http_status

    @property
    def payload(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "code": self.error_code.value,
            "domain": self.error_code.domain,
            "name": self.error_code.label,
            "message": self.error_code.message,
        }
        if self.detail not in (None, ""):
            body["detail"] = self.detail
        if self.extra:
            body["extra"] = self.extra
        return {"error": body}

    def to_response(self) -> JSONResponse:
        return JSONResponse(status_code=self.status_code, content=self.payload)


def raise_app_error(
    error_code: ErrorCode,
    *,
    detail: Any | None = None,
    extra: dict[str, Any] | None = None,
    status_code: int | None = None,
) -> NoReturn:
    raise BaseAppException(error_code, detail=detail, extra=extra, status_code=status_code)


def _is_missing_credentials(exc: StarletteHTTPException) -> bool:
    # Older HTTPBearer releases answer a missing header with 403
    return isinstance(exc.detail, str) and exc.detail.lower() == "not authenticated"


def translate_http_exception(exc: StarletteHTTPException) -> BaseAppException:
    if _is_missing_credentials(exc):
        return BaseAppException(ErrorCode.COMMON_UNAUTHENTICATED, detail=exc.detail)

    error_code = _CODES_BY_STATUS.get(exc.status_code, ErrorCode.COMMON_UNEXPECTED_ERROR)
    extra = {"source": "http_exception"} if error_code is ErrorCode.COMMON_VALIDATION_ERROR else None
    return BaseAppException(error_code, detail=exc.detail, extra=extra, status_code=exc.status_code)


def translate_validation_error(exc: RequestValidationError) -> BaseAppException:
    errors = [{key: error[key] for key in _VALIDATION_KEYS if key in error} for error in exc.errors()]
    return BaseAppException(
        ErrorCode.COMMON_VALIDATION_ERROR,
        detail="Validation failed",
        extra={"errors": errors},
    )


def _envelope_handler(translate: Callable[[Any], BaseAppException]):
    async def handle(_: Request, exc: Exception) -> JSONResponse:
        return translate(exc).to_response()

    return handle


async def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: path=%s", request.url.path, exc_info=exc)
    return BaseAppException(ErrorCode.COMMON_UNEXPECTED_ERROR).to_response()


_TRANSLATORS: tuple[tuple[type[Exception], Callable[[Any], BaseAppException]], ...] = (
    (BaseAppException, lambda exc: exc),
    (StarletteHTTPException, translate_http_exception),
    (RequestValidationError, translate_validation_error),
)


def register_exception_handlers(app: FastAPI) -> None:
    for exc_type, translate in _TRANSLATORS:
        app.add_exception_handler(exc_type, _envelope_handler(translate))
    app.add_exception_handler(Exception, _unexpected_error_handler)


__all__ = [
    "BaseAppException",
    "raise_app_error",
    "register_exception_handlers",
    "translate_http_exception",
    "translate_validation_error",
]
