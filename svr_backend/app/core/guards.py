"""
Security guards for admin-only operations.

The client disables admin controls for ordinary users; these guards make
the same decision server-side.
"""

from fastapi import Depends
from svr_backend.app.core.dependencies import get_current_user
from svr_backend.app.core.exceptions import InsufficientPermissionsError


def is_admin(current_user: dict) -> bool:
    return current_user.get("admin") is True


def require_admin(current_user: dict = Depends(get_current_user)) -> dict:
    """
    Dependency for admin-only endpoints.

    Usage:
        @router.delete("/requests/{request_id}")
        async def delete_request(
            request_id: str,
            admin: dict = Depends(require_admin)
        ):
            ...

    Returns:
        Principal if it carries the admin claim

    Raises:
        InsufficientPermissionsError: principal is not an admin
    """
    if not is_admin(current_user):
        raise InsufficientPermissionsError(details={"email": current_user.get("email")})

    return current_user
