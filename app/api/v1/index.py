import os

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger
from sqlmodel import Session, text

from app.core.config import settings
from app.db.core import get_session

router = APIRouter()


@router.get("/", status_code=status.HTTP_200_OK, summary="Liveness")
def index():
    return {"status": f"{settings.app_name} is running"}


@router.get("/readiness", status_code=status.HTTP_200_OK, summary="Readiness")
def readiness_check(session: Session = Depends(get_session)):
    """Database reachable and QR storage writable."""
    try:
        session.exec(text("SELECT 1"))
    except Exception:
        logger.exception("Readiness check failed: database unreachable")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not ready"
        )

    if not os.access(settings.qr_code_dir, os.W_OK):
        logger.error(f"Readiness check failed: {settings.qr_code_dir} is not writable")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="QR code storage not ready"
        )

    return {
        "status": "ready",
        "database": "online",
        "distribution_policy": settings.distribution_policy,
    }
