"""Liveness/readiness probe: database reachability and presence of the default policy."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from taskify.core.config import settings
from taskify.core.database import check_db_connected, get_db
from taskify.schemas.health import HealthResponse
from taskify.services.policy import DEFAULT_ROLE_PERMISSIONS, get_role

logger = logging.getLogger(__name__)
router = APIRouter()


def _policy_seeded(db: Session) -> bool:
    try:
        return all(get_role(db, name) is not None for name in DEFAULT_ROLE_PERMISSIONS)
    except SQLAlchemyError as e:
        logger.warning("Policy check failed: %s", e)
        return False


@router.get("", response_model=HealthResponse)
def get_health(db: Annotated[Session, Depends(get_db)]) -> HealthResponse:
    connected = check_db_connected(db)
    seeded = connected and _policy_seeded(db)
    return HealthResponse(
        status="ok" if seeded else "degraded",
        environment=settings.APP_ENV,
        database="connected" if connected else "disconnected",
        policy_seeded=seeded,
    )
