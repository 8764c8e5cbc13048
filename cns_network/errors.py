"""Error kinds raised by the service layer.

Each kind is an ``HTTPException`` whose ``detail`` is a dict carrying a
machine-readable ``kind`` next to the human ``message``.
"""
from typing import Any

from fastapi import HTTPException, status


class ServiceError(HTTPException):
    kind = "Internal"
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, **extra: Any):
        self.message = message
        self.extra = extra
        super().__init__(
            status_code=self.http_status,
            detail={"kind": self.kind, "message": message, **extra},
        )


class NotFoundError(ServiceError):
    kind = "NotFound"
    http_status = status.HTTP_404_NOT_FOUND


class ForbiddenError(ServiceError):
    kind = "Forbidden"
    http_status = status.HTTP_403_FORBIDDEN


class ConflictError(ServiceError):
    kind = "Conflict"
    http_status = status.HTTP_409_CONFLICT


class InvalidStateError(ServiceError):
    kind = "InvalidState"
    http_status = status.HTTP_400_BAD_REQUEST


class InvalidArgumentError(ServiceError):
    kind = "InvalidArgument"
    http_status = status.HTTP_400_BAD_REQUEST
