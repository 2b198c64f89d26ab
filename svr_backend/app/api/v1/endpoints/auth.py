"""
Authentication API endpoints.

Sign-in happens at the identity provider; this router only reports the
principal carried by the bearer token.
"""

from fastapi import APIRouter, Depends
from svr_backend.app.core.dependencies import get_current_user
from svr_backend.app.schemas.auth import PrincipalResponse

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.get("/me", response_model=PrincipalResponse)
async def get_current_user_info(current_user: dict = Depends(get_current_user)):
    """
    Get current authenticated principal.

    Requires valid JWT token in Authorization header.
    """
    return PrincipalResponse(
        sub=current_user["sub"],
        email=current_user.get("email"),
        admin=current_user["admin"]
    )
