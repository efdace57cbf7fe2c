from typing import List, Optional
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query, status
from loguru import logger

from app.core.dependencies import (
    get_transporter_service, get_auth_service, get_current_transporter
)
from app.services.transporter import TransporterService
from app.services.auth import AuthService
from app.db.schema import Transporter, ActorRole, CollectionStatus
from app.models.auth import Token
from app.models.user import UserSignin, QRCodeRead
from app.models.transporter import (
    TransporterCreate, TransporterRead, TransporterUpdate, PickupScan, CheckpointRead
)
from app.models.collection import CollectionRead


router = APIRouter()


@router.post(
    "/signup",
    status_code=status.HTTP_201_CREATED,
    response_model=TransporterRead,
    summary="Register a transporter",
    description="Creates a transporter account and the QR code recyclers scan to claim its load."
)
def signup(
    data: TransporterCreate,
    service: TransporterService = Depends(get_transporter_service)
):
    try:
        return service.create_transporter(data)

    except ValueError as e:
        logger.warning(f"Transporter signup validation failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )
    except Exception:
        logger.exception("Unexpected error during transporter signup")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while processing your request."
        )


@router.post(
    "/token",
    response_model=Token,
    summary="Signin to get tokens",
    description="Accepts email or mobile number."
)
def token(
    signin_data: UserSignin,
    service: TransporterService = Depends(get_transporter_service),
    auth: AuthService = Depends(get_auth_service)
):
    transporter = service.authenticate_transporter(
        signin_data.login_id, signin_data.password)

    if not transporter:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not transporter.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated. Please contact support."
        )

    logger.info(f"Transporter logged in: {transporter.id}")
    return auth.generate_tokens(transporter.id, ActorRole.TRANSPORTER)


@router.get("/me", response_model=TransporterRead, summary="Get current transporter")
def get_me(current_transporter: Transporter = Depends(get_current_transporter)):
    return current_transporter


@router.put("/me", response_model=TransporterRead, summary="Update profile")
def update_me(
    data: TransporterUpdate,
    current_transporter: Transporter = Depends(get_current_transporter),
    service: TransporterService = Depends(get_transporter_service)
):
    try:
        return service.update_profile(current_transporter, data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.get(
    "/me/qr",
    response_model=QRCodeRead,
    summary="Get my QR code",
    description="Generated on the fly if the account has none yet."
)
def get_qr(
    current_transporter: Transporter = Depends(get_current_transporter),
    service: TransporterService = Depends(get_transporter_service)
):
    return QRCodeRead(qr_code_url=service.ensure_qr_code(current_transporter))


@router.post(
    "/scan",
    status_code=status.HTTP_201_CREATED,
    response_model=CollectionRead,
    summary="Record a pickup",
    description="Scan a user's QR code and record the waste handed over. Also logs a route checkpoint."
)
def scan(
    data: PickupScan,
    current_transporter: Transporter = Depends(get_current_transporter),
    service: TransporterService = Depends(get_transporter_service)
):
    return service.record_pickup(current_transporter, data)


@router.get(
    "/me/collections",
    response_model=List[CollectionRead],
    summary="My pickups"
)
def get_collections(
    status_filter: Optional[CollectionStatus] = Query(
        default=None, alias="status"),
    current_transporter: Transporter = Depends(get_current_transporter),
    service: TransporterService = Depends(get_transporter_service)
):
    return service.list_collections(current_transporter, status_filter)


@router.get(
    "/me/history",
    response_model=List[CheckpointRead],
    summary="My route for a day",
    description="Checkpoints left by pickup scans. Defaults to today."
)
def get_history(
    day: Optional[date] = None,
    current_transporter: Transporter = Depends(get_current_transporter),
    service: TransporterService = Depends(get_transporter_service)
):
    return service.list_checkpoints(current_transporter, day)
