"""pm_market REST endpoints.

GET /markets/current         — summary of the current period's market
GET /markets/current/quote   — price preview for a buy or sell
"""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import get_db_session
from src.pm_common.datetime_utils import utc_now
from src.pm_common.response import ApiResponse, success_response
from src.pm_market.application.schemas import MarketSummaryResponse
from src.pm_market.application.service import get_market_service

router = APIRouter(prefix="/markets", tags=["markets"])

_service = get_market_service()


@router.get("/current")
async def get_current_market(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    summary = await _service.get_summary(db)
    result = MarketSummaryResponse.from_domain(summary, utc_now())
    resp = success_response(result.model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/current/quote")
async def quote(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    candidate_id: str = Query(...),
    amount: float = Query(
        ..., gt=0, allow_inf_nan=False, description="PILLS for buy, shares for sell"
    ),
    side: Literal["buy", "sell"] = Query("buy"),
) -> ApiResponse:
    result = await _service.quote(db, candidate_id, amount, side)
    resp = success_response(result.model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
