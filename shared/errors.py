# shared/errors.py
from typing import Optional

from fastapi import HTTPException, status


class AppError(HTTPException):
    """Categorised failure raised by the service layer.

    Subclasses carry their own status code, so FastAPI renders them exactly
    like a plain ``HTTPException`` (``{"detail": message}``).
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind = "internal_error"
    default_detail = "Internal server error"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(status_code=type(self).status_code, detail=detail or self.default_detail)

    def __str__(self):
        return f"{self.kind}: {self.detail}"


class BadRequest(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "bad_request"
    default_detail = "Bad request"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    kind = "forbidden"
    default_detail = "Access denied"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    kind = "not_found"
    default_detail = "Not found"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    kind = "conflict"
    default_detail = "Conflicting record already exists"
