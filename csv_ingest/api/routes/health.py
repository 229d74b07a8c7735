"""Health check endpoint — store connectivity probe."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from csv_ingest.api.deps import get_gateway
from csv_ingest.api.schemas import HealthResponse
from csv_ingest.db.gateway import TableGateway

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
def health_check(gateway: TableGateway = Depends(get_gateway)):
    if gateway.ping():
        return HealthResponse(ok=True)
    return JSONResponse(status_code=503, content=HealthResponse(ok=False).model_dump())
