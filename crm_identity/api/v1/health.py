"""Health check: database connectivity and presence of the seeded lifecycle states."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from crm_identity.core.config import settings
from crm_identity.core.database import check_db_connected, check_reference_data_seeded, get_db
from crm_identity.schemas.health import HealthResponse

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def get_health(db: Session = Depends(get_db)) -> HealthResponse:
    """
    Report database connectivity and whether reference data was seeded.
    Status stays "ok" so load balancers keep routing; check the detail fields.
    """
    connected = check_db_connected(db)
    seeded = check_reference_data_seeded(db) if connected else None

    return HealthResponse(
        status="ok",
        environment=settings.APP_ENV,
        database="connected" if connected else "disconnected",
        reference_data=None if seeded is None else ("seeded" if seeded else "missing"),
    )
