"""Map domain exceptions to HTTP error responses"""

import logging
from typing import Dict, Type

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from data4me_wallet.domain.exceptions import (
    AuthenticationError,
    DomainException,
    ExternalServiceError,
    InsufficientFundsError,
    InvalidStateError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

STATUS_BY_EXCEPTION: Dict[Type[DomainException], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidStateError: status.HTTP_409_CONFLICT,
    InsufficientFundsError: status.HTTP_402_PAYMENT_REQUIRED,
    ValidationError: status.HTTP_400_BAD_REQUEST,
    AuthenticationError: status.HTTP_401_UNAUTHORIZED,
    PersistenceError: status.HTTP_503_SERVICE_UNAVAILABLE,
    ExternalServiceError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def error_body(request: Request, code: str, message: str) -> dict:
    body = {"error": {"code": code, "message": message}}
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        body["request_id"] = request_id
    return body


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    status_code = STATUS_BY_EXCEPTION.get(type(exc), status.HTTP_400_BAD_REQUEST)
    request_id = getattr(request.state, "request_id", "unknown")
    if status_code >= 500:
        logging.error(f"{exc.code}: {exc.message}", extra={"request_id": request_id})
    else:
        logging.warning(f"{exc.code}: {exc.message}", extra={"request_id": request_id})
    return JSONResponse(status_code=status_code, content=error_body(request, exc.code, exc.message))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "unknown")
    logging.exception(f"Unexpected error: {exc}", extra={"request_id": request_id})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(request, "internal_error", "Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
