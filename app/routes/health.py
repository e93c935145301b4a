"""
DevOps Learning API: Health, Info and Hello Routes
==================================================

What:  Liveness probe (/health), service description (/), and a static
       smoke-test endpoint (/api/hello).
How:   Served from in-process state only; none of these touch the store,
       so they answer 200 even while the database is down.
Who:   Load balancers, container health checks, CI smoke tests.
"""

from fastapi import APIRouter, Depends

from app.database import get_status_service
from app.schemas.envelope import HealthResponse, HelloResponse, InfoResponse
from app.services.status_service import StatusService

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Always 200 while the process is serving requests.",
)
async def health_check(
    service: StatusService = Depends(get_status_service),
) -> HealthResponse:
    return HealthResponse(**service.health())


@router.get("/", response_model=InfoResponse, summary="Service info and endpoint list")
async def root(service: StatusService = Depends(get_status_service)) -> InfoResponse:
    return InfoResponse(**service.info())


@router.get("/api/hello", response_model=HelloResponse, summary="Static smoke test")
async def hello(service: StatusService = Depends(get_status_service)) -> HelloResponse:
    return HelloResponse(**service.hello())
