import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, text

from storefront.config import settings
from storefront.database import get_session

logger = logging.getLogger(__name__)

router = APIRouter()


def _ping_database(session: Session) -> bool:
    try:
        session.exec(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check database ping failed: {e}")
        return False
    return True


@router.get("/check")
def health_check(session: Session = Depends(get_session)):
    database_ok = _ping_database(session)

    return {
        "status": "ok" if database_ok else "degraded",
        "service": "storefront",
        "environment": settings.env,
        "database": "ok" if database_ok else "failed",
        "timestamp": datetime.utcnow().isoformat(),
    }
