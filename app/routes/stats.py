"""
DevOps Learning API: Store Statistics Route
===========================================

What:  GET /api/stats reports the document store connection state and the
       number of stored users.
How:   Delegates to StatusService.stats(); a failed count surfaces as a
       StoreError, rendered as 500 with the connection state still attached.
"""

from fastapi import APIRouter, Depends

from app.database import get_status_service
from app.schemas.envelope import Envelope, ErrorResponse, StatsData
from app.services.status_service import StatusService

router = APIRouter(prefix="/api", tags=["Stats"])


@router.get(
    "/stats",
    response_model=Envelope[StatsData],
    response_model_exclude_none=True,
    responses={500: {"description": "Database unavailable", "model": ErrorResponse}},
    summary="Database connection state and user count",
)
async def database_stats(
    service: StatusService = Depends(get_status_service),
) -> Envelope[StatsData]:
    stats = await service.stats()
    return Envelope[StatsData](
        success=True,
        message="Database stats retrieved successfully",
        data=StatsData(**stats),
    )
