"""HTTP error surface

Use case errors travel to the client as {"error": {"code", "message"}}.
"""

from typing import Optional
from fastapi import Request, status
from fastapi.responses import JSONResponse
from libs.result import Error

# Lifecycle error code -> HTTP status
ERROR_STATUS_CODES = {
    "DOCUMENT_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "LEDGER_ENTRY_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "INVALID_TRANSITION": status.HTTP_409_CONFLICT,
    "DOCUMENT_TERMINAL": status.HTTP_409_CONFLICT,
    "BALANCE_BOUND_VIOLATION": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
}


class ClientError(Exception):
    """Raised by routes to return a use case Error to the client"""

    def __init__(self, error: Error, status_code: Optional[int] = None):
        super().__init__(error.message)
        self.error = error
        self.status_code = status_code or ERROR_STATUS_CODES.get(
            error.code, status.HTTP_400_BAD_REQUEST
        )


async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    body = {"code": exc.error.code, "message": exc.error.message}
    if exc.error.reason:
        body["reason"] = exc.error.reason
    return JSONResponse(status_code=exc.status_code, content={"error": body})
