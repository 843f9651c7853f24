"""API error handling

Use case errors are raised as ClientError and rendered as
{"error": {"code": ..., "message": ...}}.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from libs.result import Error


class ClientError(Exception):
    """Error caused by the request; carries the use case Error and HTTP status"""

    def __init__(self, error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(error.message)
        self.error = error
        self.status_code = status_code


_STATUS_BY_CODE = {
    "UNAUTHORIZED": status.HTTP_403_FORBIDDEN,
    "CHILD_TIER_NOT_ELIGIBLE": status.HTTP_403_FORBIDDEN,
    "DUPLICATE_ACTIVE_SUBSCRIPTION": status.HTTP_409_CONFLICT,
    "ALREADY_ACTIVE": status.HTTP_409_CONFLICT,
    "INVALID_TRANSITION": status.HTTP_409_CONFLICT,
    "BELOW_MINIMUM_PURCHASE": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "MONTHLY_LIMIT_EXCEEDED": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "MEMBERSHIP_REQUIRED": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "GATEWAY_REJECTED": status.HTTP_502_BAD_GATEWAY,
    "GATEWAY_UNAVAILABLE": status.HTTP_503_SERVICE_UNAVAILABLE,
    "GATEWAY_NOT_CONFIGURED": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for(error: Error) -> int:
    """HTTP status for a use case error code"""
    if error.code.endswith("_NOT_FOUND"):
        return status.HTTP_404_NOT_FOUND
    return _STATUS_BY_CODE.get(error.code, status.HTTP_400_BAD_REQUEST)


def raise_client_error(error: Error):
    raise ClientError(error, status_code=status_for(error))


async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": exc.error.code, "message": exc.error.message}},
    )
