"""pm_resolution REST endpoints.

POST /markets/{period_id}/resolve     — settle an ended period
GET  /markets/{period_id}/resolution  — stored resolution record
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_market.application.service import get_market_service
from src.pm_resolution.application.schemas import ResolutionResponse, ResolveRequest

router = APIRouter(prefix="/markets", tags=["resolution"])

_service = get_market_service()


@router.post("/{period_id}/resolve")
async def resolve_market(
    period_id: str,
    body: ResolveRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    ranking = [e.to_domain() for e in body.final_ranking]
    resolution, payouts = await _service.resolve(db, period_id, ranking)
    result = ResolutionResponse.from_domain(resolution, payouts)
    resp = success_response(result.model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/{period_id}/resolution")
async def get_resolution(
    period_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    resolution = await _service.get_resolution(db, period_id)
    result = ResolutionResponse.from_domain(resolution)
    resp = success_response(result.model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
