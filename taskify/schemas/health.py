"""Health check response."""

from typing import Literal

from pydantic import BaseModel

ConnectionStatus = Literal["connected", "disconnected"]


class HealthResponse(BaseModel):
    """
    status is "ok" only when the database answers and the default roles
    exist; without them no token would carry any grant.
    """

    status: Literal["ok", "degraded"]
    environment: str
    database: ConnectionStatus
    policy_seeded: bool
