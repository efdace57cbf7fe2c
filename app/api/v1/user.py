from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger

from app.core.dependencies import get_user_service, get_auth_service, get_current_user
from app.services.user import UserService
from app.services.auth import AuthService
from app.db.schema import User, ActorRole
from app.models.auth import Token
from app.models.user import (
    UserSignin, UserRead, UserCreate, UserUpdate, QRCodeRead, WalletRead
)
from app.models.collection import CollectionRead


router = APIRouter()


@router.post(
    "/signup",
    status_code=status.HTTP_201_CREATED,
    response_model=UserRead,
    summary="Register a citizen",
    description="Creates a user account and generates the QR code transporters scan at pickup."
)
def signup(
    user_in: UserCreate,
    service: UserService = Depends(get_user_service)
):
    """
    1. Validates input (Pydantic).
    2. Checks Mobile and Email uniqueness.
    3. Creates the User and their QR code.
    """
    try:
        return service.create_user(user_in)

    except ValueError as e:
        logger.warning(f"Signup validation failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )
    except Exception:
        logger.exception("Unexpected error during signup")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while processing your request."
        )


@router.post(
    "/token",
    response_model=Token,
    status_code=status.HTTP_200_OK,
    summary="Signin to get tokens",
    description="Accepts email or mobile number. Returns an Access Token and a Refresh Token."
)
def token(
    signin_data: UserSignin,
    service: UserService = Depends(get_user_service),
    auth: AuthService = Depends(get_auth_service)
):
    user = service.authenticate_user(signin_data.login_id, signin_data.password)

    if not user:
        # Security: Return generic error to prevent user enumeration
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect login or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated. Please contact support."
        )

    logger.info(f"User logged in: {user.id}")
    return auth.generate_tokens(user.id, ActorRole.USER)


@router.get(
    "/me",
    response_model=UserRead,
    summary="Get current user"
)
def get_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.put(
    "/me",
    response_model=UserRead,
    summary="Update profile",
    description="Updates name and address. Omitted fields are left untouched."
)
def update_me(
    data: UserUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    return service.update_profile(current_user, data)


@router.get(
    "/me/qr",
    response_model=QRCodeRead,
    summary="Get my QR code",
    description="The QR code encodes the user id. Transporters scan it when picking waste up."
)
def get_qr(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    return QRCodeRead(qr_code_url=service.ensure_qr_code(current_user))


@router.get(
    "/me/collections",
    response_model=List[CollectionRead],
    summary="My pickup history"
)
def get_collections(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    return service.list_collections(current_user)


@router.get(
    "/me/wallet",
    response_model=WalletRead,
    summary="My wallet",
    description="Current balance plus every credit received from approved revenue requests."
)
def get_wallet(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    return service.get_wallet(current_user)
