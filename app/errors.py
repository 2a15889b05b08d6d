import logging
from contextlib import contextmanager
from typing import Any, List, Optional

from fastapi import HTTPException

logger = logging.getLogger(__name__)


class ApiError(HTTPException):
    """HTTPException carrying the envelope message and optional details."""

    status_code_default = 500

    def __init__(self, message: str, error: Optional[str] = None,
                 errors: Optional[List[Any]] = None, status_code: Optional[int] = None):
        super().__init__(status_code=status_code or self.status_code_default, detail=message)
        self.message = message
        self.error = error
        self.errors = errors


class BadRequestError(ApiError):
    status_code_default = 400


class UnauthorizedError(ApiError):
    status_code_default = 401


class ForbiddenError(ApiError):
    status_code_default = 403


class NotFoundError(ApiError):
    status_code_default = 404


class ServerError(ApiError):
    status_code_default = 500


@contextmanager
def server_errors(message: str, operation: str):
    """Turn anything unexpected raised inside the block into a 500 envelope."""
    try:
        yield
    except HTTPException:
        raise
    except Exception as e:
        logger.error("%s error: %s", operation, e)
        raise ServerError(message, error=str(e)) from e
