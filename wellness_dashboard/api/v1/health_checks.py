"""Health check endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from wellness_dashboard.core.logging import get_logger
from wellness_dashboard.db.base import get_db
from wellness_dashboard.db.schemas import DatabaseHealthOut
from wellness_dashboard.services.source import RecordSource

logger = get_logger(__name__)

router = APIRouter()


@router.get(
    "/health/database",
    response_model=DatabaseHealthOut,
    summary="Database connectivity",
    description="Round-trips the reporting store and reports invoice volume. 503 when the store is unreachable."
)
def database_health(db: Session = Depends(get_db)) -> DatabaseHealthOut:
    status = RecordSource(db).connection_status()
    logger.info("Database health check passed", **{k: str(v) for k, v in status.items()})
    return DatabaseHealthOut(status="healthy", **status)
