"""
Request-facing errors.

Services raise these; `api/main.py` turns them into JSON responses using the
carried status code. Store failures (asyncpg errors) are never wrapped here.
"""

from __future__ import annotations

from fastapi import status


class ResponseError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidRequestError(ResponseError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(ResponseError):
    status_code = status.HTTP_404_NOT_FOUND


# Relation conflicts are reported as bad requests, not 409.
class ConflictError(ResponseError):
    status_code = status.HTTP_400_BAD_REQUEST
