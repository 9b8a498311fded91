"""pm_position REST endpoints.

GET /positions/{user_id}  — portfolio, optionally limited to one period
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_market.application.service import get_market_service
from src.pm_position.application.schemas import PortfolioResponse

router = APIRouter(prefix="/positions", tags=["positions"])

_service = get_market_service()


@router.get("/{user_id}")
async def get_portfolio(
    user_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    period_id: str | None = Query(None),
) -> ApiResponse:
    portfolio = await _service.get_portfolio(db, user_id, period_id)
    result = PortfolioResponse.from_domain(portfolio)
    resp = success_response(result.model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
