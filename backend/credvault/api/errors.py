"""Map credential error kinds onto HTTP responses."""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from credvault.core.errors import CredentialError, ErrorKind

_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.AUTHENTICATION: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.DELIVERY: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _error_response(
    kind: ErrorKind, message: str, headers: dict[str, str] | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=_STATUS_BY_KIND[kind],
        content={"detail": message, "kind": kind.value},
        headers=headers,
    )


async def _credential_error_handler(
    _: Request, exc: CredentialError
) -> JSONResponse:
    headers = None
    if exc.kind is ErrorKind.AUTHENTICATION:
        headers = {"WWW-Authenticate": "Bearer"}
    elif exc.kind is ErrorKind.DELIVERY:
        headers = {"Retry-After": "60"}
    return _error_response(exc.kind, exc.message, headers)


async def _request_validation_handler(
    _: Request, exc: RequestValidationError
) -> JSONResponse:
    fields = sorted(
        {
            ".".join(str(part) for part in error["loc"][1:]) or "body"
            for error in exc.errors()
        }
    )
    return _error_response(
        ErrorKind.VALIDATION, f"Invalid request fields: {', '.join(fields)}"
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CredentialError, _credential_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
