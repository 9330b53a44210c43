from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..clock import Clock
from ..deps import get_clock
from ..questions import daily_questions, get_question, list_questions
from ..schemas import DailyQuestionsResponse, PublicQuestion, QuestionListResponse, TrainingMode, TrainingType


router = APIRouter(prefix="/questions", tags=["questions"])


@router.get("", response_model=QuestionListResponse)
def questions_list(
	mode: Optional[TrainingMode] = Query(None),
	training_type: Optional[TrainingType] = Query(None, alias="trainingType"),
	difficulty: Optional[int] = Query(None, ge=1, le=5),
	limit: int = Query(10, ge=1, le=50),
	offset: int = Query(0, ge=0),
):
	page, total = list_questions(mode, training_type, difficulty, limit, offset)
	return QuestionListResponse(
		questions=page,
		total=total,
		limit=limit,
		offset=offset,
		has_more=offset + limit < total,
	)


@router.get("/daily", response_model=DailyQuestionsResponse)
def questions_daily(clock: Clock = Depends(get_clock)):
	# TODO: personalise from the user's history once sessions carry per-mode scores
	picked = daily_questions()
	return DailyQuestionsResponse(day=clock.now().date(), questions=picked, total_count=len(picked))


@router.get("/{question_id}", response_model=PublicQuestion)
def question_detail(question_id: str):
	return get_question(question_id).public()
