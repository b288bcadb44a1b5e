"""HTTP error raised by routes for a failed use-case Result"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from src.libs.result import Error


class ClientError(Exception):
    def __init__(self, error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        self.error = error
        self.status_code = status_code
        super().__init__(error.message)


async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "code": exc.error.code,
                "message": exc.error.message,
                "reason": exc.error.reason,
            }
        },
    )


ERROR_STATUS_CODES = {
    "AUTHENTICATION_REQUIRED": status.HTTP_401_UNAUTHORIZED,
    "FORBIDDEN": status.HTTP_403_FORBIDDEN,
    "DEPARTMENT_ACCESS_DENIED": status.HTTP_403_FORBIDDEN,
    "PAYMENT_CYCLE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "SUBSCRIPTION_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "USER_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "INVALID_CYCLE_STATE": status.HTTP_409_CONFLICT,
    "CYCLE_STATE_CHANGED": status.HTTP_409_CONFLICT,
    "INVOICE_ALREADY_UPLOADED": status.HTTP_409_CONFLICT,
    "CYCLES_ALREADY_EXIST": status.HTTP_409_CONFLICT,
    "SUBSCRIPTION_NOT_ACTIVE": status.HTTP_409_CONFLICT,
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
}


def raise_for_error(error: Error):
    """Raise ClientError with the HTTP status matching the error code"""
    raise ClientError(
        error,
        status_code=ERROR_STATUS_CODES.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR),
    )
