from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session

from app.db.core import get_session
from app.db.schema import ActorRole
from app.services.auth import AuthService
from app.services.user import UserService
from app.services.transporter import TransporterService
from app.services.recycler import RecyclerService
from app.services.revenue import RevenueService
from app.services.admin import AdminService

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/users/token")


def get_auth_service(session: Session = Depends(get_session)) -> AuthService:
    return AuthService(session)


def get_user_service(session: Session = Depends(get_session)) -> UserService:
    """Creates a UserService instance using the active DB session."""
    return UserService(session)


def get_transporter_service(session: Session = Depends(get_session)) -> TransporterService:
    return TransporterService(session)


def get_recycler_service(session: Session = Depends(get_session)) -> RecyclerService:
    return RecyclerService(session)


def get_revenue_service(session: Session = Depends(get_session)) -> RevenueService:
    return RevenueService(session)


def get_admin_service(session: Session = Depends(get_session)) -> AdminService:
    return AdminService(session)


def require_role(role: ActorRole):
    """
    Builds the gatekeeper dependency for one role.
    Validates the JWT, checks the role claim and loads the account row.
    """
    def dependency(
        token: str = Depends(oauth2_scheme),
        service: AuthService = Depends(get_auth_service)
    ):
        credentials_exception = HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

        # 1. Verify the Token
        token_data = service.verify_access_token(token)
        if not token_data:
            raise credentials_exception

        # 2. Verify the Role
        if token_data.role != role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"This action requires the '{role.value}' role."
            )

        # 3. Load the Account
        actor = service.get_actor(role, token_data.actor_id)
        if actor is None:
            raise credentials_exception

        if not actor.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Account is deactivated. Please contact support."
            )

        return actor

    return dependency


get_current_user = require_role(ActorRole.USER)
get_current_transporter = require_role(ActorRole.TRANSPORTER)
get_current_recycler = require_role(ActorRole.RECYCLER)
get_current_admin = require_role(ActorRole.ADMIN)
