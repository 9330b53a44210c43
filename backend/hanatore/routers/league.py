from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ..deps import User, get_current_user, get_league_service
from ..league import LeagueService
from ..schemas import LeagueHistoryResponse, LeagueInfo, PromotionStatus, RankingResponse


router = APIRouter(prefix="/league", tags=["league"])


@router.get("/current", response_model=LeagueInfo)
def league_current(user: User = Depends(get_current_user), service: LeagueService = Depends(get_league_service)):
	return service.current(user.user_id)


@router.get("/ranking", response_model=RankingResponse)
def league_ranking(
	limit: int = Query(20, ge=1, le=100),
	user: User = Depends(get_current_user),
	service: LeagueService = Depends(get_league_service),
):
	return service.ranking(user.user_id, limit)


@router.get("/promotion", response_model=PromotionStatus)
def league_promotion(user: User = Depends(get_current_user), service: LeagueService = Depends(get_league_service)):
	return service.promotion(user.user_id)


@router.get("/history", response_model=LeagueHistoryResponse)
def league_history(user: User = Depends(get_current_user), service: LeagueService = Depends(get_league_service)):
	return service.history(user.user_id)
