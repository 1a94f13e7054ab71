"""Gestion standardisée des erreurs API avec enveloppes d'erreur.

Toutes les erreurs atteignant la frontière HTTP sont converties en une enveloppe unique
`{"status": <code HTTP>, "message": <texte>, "errors": {<champ>: <message>}}`, la clé `errors`
n'étant présente que pour les erreurs de désérialisation ou de validation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from bilemo.core.http_constants import (
    HTTP_BAD_REQUEST,
    HTTP_FORBIDDEN,
    HTTP_INTERNAL_SERVER_ERROR,
    HTTP_METHOD_NOT_ALLOWED,
    HTTP_NOT_FOUND,
)
from bilemo.domain.errors import DomainError, ValidationError

log = logging.getLogger(__name__)

# Messages fixes par statut pour les erreurs levées par le framework
STATUS_MESSAGES = {
    HTTP_FORBIDDEN: "Access denied.",
    HTTP_NOT_FOUND: "Resource not found.",
    HTTP_METHOD_NOT_ALLOWED: "Method not allowed on the targeted resource.",
    HTTP_INTERNAL_SERVER_ERROR: "Internal server error.",
}


@dataclass
class ErrorEnvelope:
    """Standard error envelope for API responses."""

    status: int
    message: str
    errors: dict[str, Any] | None = None

    def as_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"status": self.status, "message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


def create_error_response(
    status_code: int,
    message: str,
    errors: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Create a standardized error response."""
    envelope = ErrorEnvelope(status=status_code, message=message, errors=errors)
    return JSONResponse(status_code=status_code, content=envelope.as_dict(), headers=headers)


def handle_domain_error(request: Request, exc: DomainError) -> JSONResponse:
    """Handle domain errors (not found, forbidden, validation...) with standard envelope."""
    errors = getattr(exc, "errors", None) or None
    log.info(
        "Domain error",
        extra={
            "path": request.url.path,
            "status_code": exc.status_code,
            "error_message": exc.message,
            "error_type": type(exc).__name__,
        },
    )
    return create_error_response(exc.status_code, exc.message, errors)


def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle framework HTTP exceptions (unknown route, wrong method...)."""
    message = STATUS_MESSAGES.get(exc.status_code) or str(exc.detail)
    log.info(
        "HTTP exception occurred",
        extra={"path": request.url.path, "status_code": exc.status_code, "error_message": message},
    )
    return create_error_response(exc.status_code, message, headers=getattr(exc, "headers", None))


def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Map FastAPI request validation errors (query/path/body parsing) to a 400 envelope."""
    errors: dict[str, str] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("query", "path", "body")]
        errors.setdefault(".".join(loc) or "request", err.get("msg", "Invalid value."))
    message = ValidationError.summary(len(errors))
    log.info(
        "Request validation failed",
        extra={"path": request.url.path, "errors": errors},
    )
    return create_error_response(HTTP_BAD_REQUEST, message, errors)


def handle_generic_exception(request: Request, exc: Exception) -> JSONResponse:
    """Handle generic exceptions with standard envelope."""
    log.error(
        "Unexpected error occurred",
        extra={
            "path": request.url.path,
            "exception_type": type(exc).__name__,
            "exception_message": str(exc),
        },
        exc_info=True,
    )
    return create_error_response(
        HTTP_INTERNAL_SERVER_ERROR, STATUS_MESSAGES[HTTP_INTERNAL_SERVER_ERROR]
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, handle_domain_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(Exception, handle_generic_exception)
