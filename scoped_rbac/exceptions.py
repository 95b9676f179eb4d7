from fastapi import HTTPException
from starlette.status import HTTP_403_FORBIDDEN


class Forbidden(HTTPException):
    """403 Forbidden - user lacks required permissions."""

    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(status_code=HTTP_403_FORBIDDEN, detail=detail)


class InvalidPermission(ValueError):
    """A permission string that does not match the ``scope:resource-action`` grammar."""

    def __init__(self, permission: str, reason: str = "malformed permission") -> None:
        self.permission = permission
        self.reason = reason
        super().__init__(f"Invalid permission {permission!r}: {reason}")
