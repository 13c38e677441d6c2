from typing import Dict, Optional

from fastapi import HTTPException, status


class ApiError(HTTPException):
    """Base for errors answered directly to the client."""

    code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Server error"

    def __init__(self, detail: Optional[str] = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(status_code=self.code, detail=detail or self.default_detail, headers=headers)


class BadRequest(ApiError):
    code = status.HTTP_400_BAD_REQUEST
    default_detail = "Bad request"


class Unauthorized(ApiError):
    code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class Forbidden(ApiError):
    code = status.HTTP_403_FORBIDDEN
    default_detail = "Forbidden"


class Conflict(ApiError):
    code = status.HTTP_409_CONFLICT
    default_detail = "Conflict"


class ServerError(ApiError):
    pass
