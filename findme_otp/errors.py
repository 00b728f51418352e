from __future__ import annotations
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class OtpError(Exception):
    """Base for errors surfaced to callers of the OTP endpoints."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_status = "INTERNAL"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidArgument(OtpError):
    """Required input missing or malformed; retrying without fixing it won't help."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_status = "INVALID_ARGUMENT"


class Internal(OtpError):
    """Unexpected fault in the issue/verify path; the caller may retry."""


def _envelope(error_status: str, message: str) -> dict:
    return {"error": {"status": error_status, "message": message}}


async def otp_error_handler(_: Request, exc: OtpError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=_envelope(exc.error_status, exc.message))


async def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_envelope(InvalidArgument.error_status, "Malformed request body"),
    )
