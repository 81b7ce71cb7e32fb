from __future__ import annotations

from typing import Any, Dict, List, Optional


class RBACError(Exception):
    """
    Terminal authorization outcome. Never retried; the route layer renders it.
    """

    status_code: int = 403
    code: str = "rbac_error"
    message: str = "Access denied."

    def __init__(self, message: Optional[str] = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_detail(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message}


class Unauthenticated(RBACError):
    status_code = 401
    code = "unauthenticated"
    message = "Authentication required."


class Forbidden(RBACError):
    status_code = 403
    code = "not_team_member"
    message = "Access denied - not a team member."


class InsufficientPermissions(RBACError):
    status_code = 403
    code = "rbac_forbidden"
    message = "You do not have permission to perform this action."

    def __init__(self, *, required: List[str], role: str, message: Optional[str] = None) -> None:
        self.required = list(required)
        self.role = role
        super().__init__(message)

    def to_detail(self) -> Dict[str, Any]:
        detail = super().to_detail()
        detail["required"] = self.required
        detail["role"] = self.role
        return detail


class BadRequest(RBACError):
    """
    The caller did not say which team it is acting on. A calling error,
    not a denial.
    """

    status_code = 400
    code = "team_id_required"
    message = "Team ID is required."

    def __init__(self, message: Optional[str] = None, *, code: Optional[str] = None) -> None:
        if code is not None:
            self.code = code
        super().__init__(message)


class AuthorizationUnavailable(RuntimeError):
    """
    A collaborator failed while resolving the caller's role, so no decision
    could be made. Deliberately not an RBACError: this is not a denial.
    """

    status_code = 500
    code = "authorization_unavailable"
    message = "Authorization could not be determined."

    def to_detail(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message}
