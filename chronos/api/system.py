"""
Health and metrics endpoints.
"""
from datetime import datetime

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from chronos.database import get_session
from chronos.logging_config import get_logger
from chronos.monitoring import get_metrics, METRICS_CONTENT_TYPE
from chronos.schemas import HealthCheck

logger = get_logger(__name__)

router = APIRouter(tags=["system"])


@router.get("/health", response_model=HealthCheck)
async def health_check(session: AsyncSession = Depends(get_session)):
    """Health check endpoint for monitoring."""
    try:
        await session.execute(text("SELECT 1"))
        db_status = "connected"
    except SQLAlchemyError as e:
        logger.warning("health_check_database_unavailable", error=str(e))
        db_status = "disconnected"

    return HealthCheck(
        status="healthy",
        database=db_status,
        timestamp=datetime.now().isoformat()
    )


@router.get("/metrics")
async def metrics():
    """Prometheus metrics."""
    return Response(content=get_metrics(), media_type=METRICS_CONTENT_TYPE)
