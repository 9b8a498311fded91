"""pm_order REST endpoints.

POST /orders/buy         — bet PILLS on a candidate
POST /orders/sell        — sell shares back at the current price
GET  /orders             — a user's order history
GET  /orders/{order_id}  — single order
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_market.application.service import get_market_service
from src.pm_order.application.schemas import (
    BuyRequest,
    OrderFillResponse,
    OrderListResponse,
    OrderResponse,
    SellRequest,
)
from src.pm_position.application.schemas import PositionOut

router = APIRouter(prefix="/orders", tags=["orders"])

_service = get_market_service()


@router.post("/buy")
async def buy(
    body: BuyRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result, share, position = await _service.buy(
        db, body.user_id, body.candidate_id, body.amount, body.period_id
    )
    fill = OrderFillResponse(
        order=OrderResponse.from_domain(result.order),
        new_price=result.new_price,
        probability=share.probability,
        shares_received=result.shares_received,
        position=PositionOut.from_domain(position),
    )
    resp = success_response(fill.model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/sell")
async def sell(
    body: SellRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result, share, position = await _service.sell(
        db, body.user_id, body.candidate_id, body.shares, body.period_id
    )
    fill = OrderFillResponse(
        order=OrderResponse.from_domain(result.order),
        new_price=result.new_price,
        probability=share.probability,
        value_received=result.value_received,
        position=PositionOut.from_domain(position),
    )
    resp = success_response(fill.model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("")
async def list_orders(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    user_id: str = Query(...),
    period_id: str | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    orders = await _service.list_orders(db, user_id, period_id, limit)
    result = OrderListResponse(orders=[OrderResponse.from_domain(o) for o in orders])
    resp = success_response(result.model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/{order_id}")
async def get_order(
    order_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    order = await _service.get_order(db, order_id)
    resp = success_response(OrderResponse.from_domain(order).model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
