"""pm_leaderboard REST endpoints.

POST /leaderboard/{period_id}  — rank candidates from submitted swap events
"""

from fastapi import APIRouter, Request

from config.settings import settings
from src.pm_common.datetime_utils import utc_now
from src.pm_common.response import ApiResponse, success_response
from src.pm_leaderboard.application.schemas import (
    LeaderboardEntryOut,
    LeaderboardRequest,
    LeaderboardResponse,
)
from src.pm_leaderboard.domain.exchange_rate import StaticExchangeRateProvider
from src.pm_leaderboard.domain.leaderboard import build_leaderboard, to_final_ranking
from src.pm_period.domain.clock import period_from_id
from src.pm_resolution.application.schemas import RankingEntryOut

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])

_rates = StaticExchangeRateProvider()


@router.post("/{period_id}")
async def rank_period(
    period_id: str, body: LeaderboardRequest, request: Request
) -> ApiResponse:
    period = period_from_id(period_id, utc_now())
    events = [e.to_trade_event() for e in body.events]
    entries = build_leaderboard(events, period, _rates, settings.TRACKED_CANDIDATES)
    result = LeaderboardResponse(
        period_id=period.id,
        sol_usd=_rates.sol_usd(),
        entries=[LeaderboardEntryOut.from_domain(e) for e in entries],
        final_ranking=[
            RankingEntryOut(candidate_id=r.candidate_id, rank=r.rank, pnl_sol=r.pnl_sol)
            for r in to_final_ranking(entries)
        ],
    )
    resp = success_response(result.model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
