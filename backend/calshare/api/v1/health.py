import logging

from fastapi import APIRouter, Response, status

from calshare.db import engine, schema_present

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", summary="Liveness check")
def read_health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/ready", summary="Readiness check")
def read_ready(response: Response) -> dict[str, str]:
    """Ready once the calendar schema answers the same probe startup uses."""
    if schema_present(engine):
        return {"status": "ready"}
    logger.warning("Readiness probe failed: calendar schema unreachable")
    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {"status": "not_ready"}
