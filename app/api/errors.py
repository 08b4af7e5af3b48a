"""
Error responses - maps service error codes to HTTP statuses

Body shape: {"error": str, "code": str} (+ "allowed" for status transitions)
"""
from fastapi import status
from fastapi.responses import JSONResponse

from app.application.subscriptions import OperationResult
from app.domain.subscription import SubscriptionErrorCode


_ERROR_STATUS = {
    SubscriptionErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    SubscriptionErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_response(result: OperationResult) -> JSONResponse:
    """Client-fault codes are 400; not-found 404; internal 500."""
    return JSONResponse(
        status_code=_ERROR_STATUS.get(result.code, status.HTTP_400_BAD_REQUEST),
        content=result.error_body(),
    )


def bad_request(message: str, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": message, "code": code},
    )
