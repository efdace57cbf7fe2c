import uuid
from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from loguru import logger

from app.core.audit import _perform_audit_log
from app.core.dependencies import (
    get_admin_service, get_auth_service, get_transporter_service,
    get_recycler_service, get_revenue_service, get_current_admin
)
from app.services.admin import AdminService
from app.services.auth import AuthService
from app.services.transporter import TransporterService
from app.services.recycler import RecyclerService
from app.services.revenue import RevenueService
from app.db.schema import Admin, ActorRole, AuditAction, RevenueRequestStatus
from app.models.auth import Token
from app.models.admin import (
    AdminRead, AdminSignin, DashboardStats, UserAdminUpdate, AccountCreated
)
from app.models.user import UserRead
from app.models.transporter import TransporterCreate, TransporterRead, TransporterAdminUpdate
from app.models.recycler import RecyclerCreate, RecyclerRead
from app.models.revenue import RevenueRequestRead, RevenueDecision


router = APIRouter()


@router.post("/token", response_model=Token, summary="Admin signin")
def token(
    signin_data: AdminSignin,
    service: AdminService = Depends(get_admin_service),
    auth: AuthService = Depends(get_auth_service)
):
    admin = service.authenticate_admin(signin_data.email, signin_data.password)

    if not admin:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not admin.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated."
        )

    service.record_login(admin)
    logger.info(f"Admin logged in: {admin.id}")
    return auth.generate_tokens(admin.id, ActorRole.ADMIN)


@router.get("/me", response_model=AdminRead, summary="Get current admin")
def get_me(current_admin: Admin = Depends(get_current_admin)):
    return current_admin


# ==============================================================================
# DASHBOARD
# ==============================================================================

@router.get(
    "/stats",
    response_model=DashboardStats,
    summary="Dashboard KPIs",
    description="Account counts, total collected weight and pending payout requests."
)
def get_dashboard_stats(
    current_admin: Admin = Depends(get_current_admin),
    service: AdminService = Depends(get_admin_service)
):
    return service.dashboard_stats()


# ==============================================================================
# USER MANAGEMENT
# ==============================================================================

@router.get("/users", response_model=List[UserRead], summary="List users")
def list_users(
    current_admin: Admin = Depends(get_current_admin),
    service: AdminService = Depends(get_admin_service)
):
    return service.list_users()


@router.get("/users/{user_id}", response_model=UserRead, summary="Get user")
def get_user(
    user_id: uuid.UUID,
    current_admin: Admin = Depends(get_current_admin),
    service: AdminService = Depends(get_admin_service)
):
    return service.get_user(user_id)


@router.put(
    "/users/{user_id}",
    response_model=UserRead,
    summary="Correct user details",
    description="Support / data-correction edit of name and address."
)
def update_user(
    user_id: uuid.UUID,
    data: UserAdminUpdate,
    background_tasks: BackgroundTasks,
    current_admin: Admin = Depends(get_current_admin),
    service: AdminService = Depends(get_admin_service)
):
    user = service.update_user(user_id, data)

    background_tasks.add_task(
        _perform_audit_log,
        actor_id=current_admin.id,
        actor_role=ActorRole.ADMIN,
        entity_type="User",
        entity_id=user.id,
        action=AuditAction.UPDATE,
        changes=data.model_dump(exclude_unset=True)
    )
    return user


# ==============================================================================
# TRANSPORTER MANAGEMENT
# ==============================================================================

@router.get("/transporters", response_model=List[TransporterRead], summary="List transporters")
def list_transporters(
    current_admin: Admin = Depends(get_current_admin),
    service: AdminService = Depends(get_admin_service)
):
    return service.list_transporters()


@router.post(
    "/transporters",
    status_code=status.HTTP_201_CREATED,
    response_model=AccountCreated,
    summary="Create transporter"
)
def create_transporter(
    data: TransporterCreate,
    current_admin: Admin = Depends(get_current_admin),
    service: TransporterService = Depends(get_transporter_service)
):
    try:
        transporter = service.create_transporter(data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return AccountCreated(message="Transporter created successfully", id=transporter.id)


@router.put(
    "/transporters/{transporter_id}",
    response_model=TransporterRead,
    summary="Update transporter",
    description="Profile, vehicle and active flag. Wallet balances cannot be edited."
)
def update_transporter(
    transporter_id: uuid.UUID,
    data: TransporterAdminUpdate,
    background_tasks: BackgroundTasks,
    current_admin: Admin = Depends(get_current_admin),
    service: AdminService = Depends(get_admin_service)
):
    try:
        transporter = service.update_transporter(transporter_id, data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    background_tasks.add_task(
        _perform_audit_log,
        actor_id=current_admin.id,
        actor_role=ActorRole.ADMIN,
        entity_type="Transporter",
        entity_id=transporter.id,
        action=AuditAction.UPDATE,
        changes=data.model_dump(exclude_unset=True)
    )
    return transporter


# ==============================================================================
# RECYCLER MANAGEMENT
# ==============================================================================

@router.get("/recyclers", response_model=List[RecyclerRead], summary="List recyclers")
def list_recyclers(
    current_admin: Admin = Depends(get_current_admin),
    service: AdminService = Depends(get_admin_service)
):
    return service.list_recyclers()


@router.post(
    "/recyclers",
    status_code=status.HTTP_201_CREATED,
    response_model=AccountCreated,
    summary="Create recycler"
)
def create_recycler(
    data: RecyclerCreate,
    current_admin: Admin = Depends(get_current_admin),
    service: RecyclerService = Depends(get_recycler_service)
):
    try:
        recycler = service.create_recycler(data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return AccountCreated(message="Recycler created successfully", id=recycler.id)


# ==============================================================================
# REVENUE REQUESTS
# ==============================================================================

@router.get(
    "/revenue-requests",
    response_model=List[RevenueRequestRead],
    summary="List revenue requests",
    description="All payout requests, newest first. Optionally filter by status."
)
def list_revenue_requests(
    status_filter: Optional[RevenueRequestStatus] = Query(
        default=None, alias="status"),
    current_admin: Admin = Depends(get_current_admin),
    service: RevenueService = Depends(get_revenue_service)
):
    return service.list_all(status_filter)


@router.post(
    "/revenue-requests/{request_id}/approve",
    response_model=RevenueDecision,
    summary="Approve and distribute",
    description=(
        "Atomically credits user and transporter wallets, records the government "
        "and recycler shares and settles every collection in the request. "
        "Returns 409 if the request is unknown or was already processed."
    )
)
def approve_revenue_request(
    request_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    current_admin: Admin = Depends(get_current_admin),
    service: RevenueService = Depends(get_revenue_service)
):
    return service.approve(current_admin, request_id, background_tasks)


@router.post(
    "/revenue-requests/{request_id}/decline",
    response_model=RevenueDecision,
    summary="Decline",
    description="Pending requests only. No money moves and collections stay claimable."
)
def decline_revenue_request(
    request_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    current_admin: Admin = Depends(get_current_admin),
    service: RevenueService = Depends(get_revenue_service)
):
    return service.decline(current_admin, request_id, background_tasks)
