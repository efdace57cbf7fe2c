from fastapi import APIRouter, Depends, status

from app.core.dependencies import get_auth_service
from app.services.auth import AuthService
from app.models.auth import TokenAccess, TokenRefresh


router = APIRouter()


@router.post(
    "/refresh",
    response_model=TokenAccess,
    status_code=status.HTTP_200_OK,
    summary="Refresh Session",
    description="Exchanges a valid Refresh Token (any role) for a new Access Token."
)
def refresh_token(
    refresh_data: TokenRefresh,
    service: AuthService = Depends(get_auth_service)
):
    """
    1. Validates the signature of the refresh token.
    2. Ensures the token is actually a 'refresh' type.
    3. Verifies the account still exists and is active.
    4. Returns a fresh Access token carrying the same role.
    """
    return TokenAccess(access_token=service.refresh_session(refresh_data.refresh_token))
