from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ..deps import User, get_current_user, get_ledger, get_training_service
from ..progression import ProgressionLedger
from ..schemas import (
	AnswerDetail,
	AnswerResult,
	CompleteTrainingRequest,
	CompleteTrainingResponse,
	SessionDetail,
	SessionHistoryItem,
	SessionHistoryResponse,
	StartTrainingRequest,
	StartTrainingResponse,
	SubmitAnswerRequest,
)
from ..training import TrainingService


router = APIRouter(prefix="/training", tags=["training"])


@router.post("/start", response_model=StartTrainingResponse, status_code=201)
def start_training(
	req: StartTrainingRequest,
	user: User = Depends(get_current_user),
	service: TrainingService = Depends(get_training_service),
):
	session = service.start(user.user_id, req.mode, req.training_type)
	return StartTrainingResponse(
		session_id=session.id,
		mode=session.mode,
		training_type=session.training_type,
		started_at=session.started_at,
	)


@router.post("/answer", response_model=AnswerResult)
async def submit_answer(
	req: SubmitAnswerRequest,
	user: User = Depends(get_current_user),
	service: TrainingService = Depends(get_training_service),
):
	return await service.submit_answer(
		user.user_id,
		req.session_id,
		req.question_id,
		req.content,
		req.time_spent_seconds,
	)


@router.post("/complete", response_model=CompleteTrainingResponse)
async def complete_training(
	req: CompleteTrainingRequest,
	user: User = Depends(get_current_user),
	service: TrainingService = Depends(get_training_service),
	ledger: ProgressionLedger = Depends(get_ledger),
):
	session, summary = await service.complete(user.user_id, req.session_id)
	ledger.record_session(user.user_id, summary.total_xp_earned, session.completed_at)
	return CompleteTrainingResponse(
		session_id=session.id,
		completed_at=session.completed_at,
		summary=summary,
	)


@router.get("/history", response_model=SessionHistoryResponse)
def training_history(
	limit: int = Query(10, ge=1, le=50),
	offset: int = Query(0, ge=0),
	user: User = Depends(get_current_user),
	service: TrainingService = Depends(get_training_service),
):
	sessions, total = service.history(user.user_id, limit, offset)
	return SessionHistoryResponse(
		sessions=[
			SessionHistoryItem(
				session_id=s.id,
				mode=s.mode,
				training_type=s.training_type,
				started_at=s.started_at,
				completed_at=s.completed_at,
				questions_count=s.questions_count,
				total_xp_earned=s.total_xp_earned,
				average_score=s.average_score(),
			)
			for s in sessions
		],
		total=total,
		limit=limit,
		offset=offset,
		has_more=offset + limit < total,
	)


@router.get("/session/{session_id}", response_model=SessionDetail)
def session_detail(
	session_id: str,
	user: User = Depends(get_current_user),
	service: TrainingService = Depends(get_training_service),
):
	session = service.get_session(user.user_id, session_id)
	return SessionDetail(
		session_id=session.id,
		mode=session.mode,
		training_type=session.training_type,
		started_at=session.started_at,
		completed_at=session.completed_at,
		questions_count=session.questions_count,
		total_xp_earned=session.total_xp_earned,
		answers=[AnswerDetail.model_validate(a.model_dump()) for a in session.answers],
	)
