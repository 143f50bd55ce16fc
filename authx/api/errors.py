"""
Account error to HTTP response mapping.
"""

import logging

from fastapi import HTTPException, status

from authx.domain.exceptions import (
    AccountError,
    BadRequest,
    Conflict,
    NotFound,
    OperationCancelled,
    Unknown,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type[AccountError], int] = {
    BadRequest: status.HTTP_400_BAD_REQUEST,
    Conflict: status.HTTP_409_CONFLICT,
    NotFound: status.HTTP_404_NOT_FOUND,
    OperationCancelled: status.HTTP_503_SERVICE_UNAVAILABLE,
    Unknown: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

INTERNAL_ERROR_DETAIL = "internal server error"


def to_http_exception(err: AccountError) -> HTTPException:
    """
    Convert a workflow error into an HTTPException.

    Unknown errors (and any unmapped AccountError) are logged with their
    cause and answered with a generic 500.
    """
    status_code = STATUS_BY_ERROR.get(type(err), status.HTTP_500_INTERNAL_SERVER_ERROR)

    if status_code == status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("Unhandled account error: %s", err, exc_info=err)
        return HTTPException(status_code=status_code, detail=INTERNAL_ERROR_DETAIL)

    logger.debug("Account error: %s", err)
    return HTTPException(status_code=status_code, detail=err.message)
