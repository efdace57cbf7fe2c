from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from loguru import logger

from app.core.dependencies import (
    get_recycler_service, get_revenue_service, get_auth_service, get_current_recycler
)
from app.services.recycler import RecyclerService
from app.services.revenue import RevenueService
from app.services.auth import AuthService
from app.db.schema import Recycler, ActorRole, CollectionStatus
from app.models.auth import Token
from app.models.recycler import (
    RecyclerCreate, RecyclerRead, RecyclerSignin, RecyclerUpdate, ClaimScan, ClaimResult
)
from app.models.revenue import RevenueRequestCreate, RevenueRequestRead
from app.models.collection import CollectionRead


router = APIRouter()


@router.post(
    "/signup",
    status_code=status.HTTP_201_CREATED,
    response_model=RecyclerRead,
    summary="Register a recycler"
)
def signup(
    data: RecyclerCreate,
    service: RecyclerService = Depends(get_recycler_service)
):
    try:
        return service.create_recycler(data)

    except ValueError as e:
        logger.warning(f"Recycler signup validation failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )
    except Exception:
        logger.exception("Unexpected error during recycler signup")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while processing your request."
        )


@router.post("/token", response_model=Token, summary="Signin to get tokens")
def token(
    signin_data: RecyclerSignin,
    service: RecyclerService = Depends(get_recycler_service),
    auth: AuthService = Depends(get_auth_service)
):
    recycler = service.authenticate_recycler(
        signin_data.email, signin_data.password)

    if not recycler:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not recycler.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated. Please contact support."
        )

    logger.info(f"Recycler logged in: {recycler.id}")
    return auth.generate_tokens(recycler.id, ActorRole.RECYCLER)


@router.get("/me", response_model=RecyclerRead, summary="Get current recycler")
def get_me(current_recycler: Recycler = Depends(get_current_recycler)):
    return current_recycler


@router.put("/me", response_model=RecyclerRead, summary="Update profile")
def update_me(
    data: RecyclerUpdate,
    current_recycler: Recycler = Depends(get_current_recycler),
    service: RecyclerService = Depends(get_recycler_service)
):
    try:
        return service.update_profile(current_recycler, data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post(
    "/scan",
    response_model=ClaimResult,
    summary="Claim a transporter's load",
    description=(
        "Scan a transporter's QR code. Every collection the transporter carries "
        "that no recycler has claimed yet moves to this recycler as 'Trash Dumped'. "
        "A claimed_count of 0 means there was nothing new to claim."
    )
)
def scan(
    data: ClaimScan,
    current_recycler: Recycler = Depends(get_current_recycler),
    service: RecyclerService = Depends(get_recycler_service)
):
    return service.claim_by_transporter(current_recycler, data.scanned_transporter_id)


@router.get(
    "/me/collections",
    response_model=List[CollectionRead],
    summary="My claimed collections",
    description="Filter with status='Trash Dumped' to list collections eligible for a revenue request."
)
def get_collections(
    status_filter: Optional[CollectionStatus] = Query(
        default=None, alias="status"),
    current_recycler: Recycler = Depends(get_current_recycler),
    service: RecyclerService = Depends(get_recycler_service)
):
    return service.list_claimed(current_recycler, status_filter)


@router.get(
    "/me/revenue-requests",
    response_model=List[RevenueRequestRead],
    summary="My revenue requests"
)
def list_revenue_requests(
    current_recycler: Recycler = Depends(get_current_recycler),
    service: RevenueService = Depends(get_revenue_service)
):
    return service.list_for_recycler(current_recycler)


@router.post(
    "/me/revenue-requests",
    status_code=status.HTTP_201_CREATED,
    response_model=RevenueRequestRead,
    summary="Submit a revenue request",
    description=(
        "Cash out a batch of claimed collections at the given per-kg prices. "
        "Fails with 409 if any collection is not yours or no longer 'Trash Dumped'."
    )
)
def submit_revenue_request(
    data: RevenueRequestCreate,
    background_tasks: BackgroundTasks,
    current_recycler: Recycler = Depends(get_current_recycler),
    service: RevenueService = Depends(get_revenue_service)
):
    return service.submit(current_recycler, data, background_tasks)
