# backend/utils/errors.py
"""
Access-control error hierarchy.

Every business-rule violation is raised by the component owning the
invariant and rendered by the handlers in ``main.py`` as
``{"success": false, "message": ...}`` with the status below.

    AccessControlError
    ├── ValidationError      400  malformed or missing input
    ├── ForbiddenError       403  protected role / account
    ├── NotFoundError        404  unknown id
    ├── ConflictError        409  uniqueness or "role still in use"
    └── TransientStoreError  500  datastore unavailable, safe to retry
"""
from typing import Any, Dict, Optional


class AccessControlError(Exception):
    status_code: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> Dict[str, Any]:
        return {"success": False, "message": self.message}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r})"


class ValidationError(AccessControlError):
    status_code = 400


class ForbiddenError(AccessControlError):
    status_code = 403


class NotFoundError(AccessControlError):
    status_code = 404


class ConflictError(AccessControlError):
    status_code = 409

    def __init__(self, message: str, user_count: Optional[int] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.user_count = user_count

    def to_response(self) -> Dict[str, Any]:
        body = super().to_response()
        if self.user_count is not None:
            body["userCount"] = self.user_count
        return body


class TransientStoreError(AccessControlError):
    status_code = 500

    def to_response(self) -> Dict[str, Any]:
        body = super().to_response()
        # Original driver message only; tracebacks stay in the server log
        if self.details.get("error"):
            body["error"] = self.details["error"]
        return body
