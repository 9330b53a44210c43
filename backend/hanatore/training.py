"""
Training session lifecycle.

A session is OPEN from ``start`` until ``complete`` stamps ``completed_at``;
after that it only serves history queries. Answers are evaluated first and
appended afterwards, all under a per-session lock, so concurrent submissions
cannot break ``questions_count == len(answers)`` and a request that fails
mid-evaluation leaves the session as it was. Store reads and writes inside
the async operations run in the threadpool so a database store does not
block the event loop.
"""

from __future__ import annotations

import logging
import uuid
from typing import List, Optional, Tuple

from starlette.concurrency import run_in_threadpool

from .clock import Clock
from .errors import NoAnswers, NotFoundError, SessionAlreadyCompleted
from .evaluation import EvaluationGateway
from .questions import get_question
from .scoring import round_half_up
from .schemas import (
	Answer,
	AnswerResult,
	EvaluationRequest,
	SessionSummary,
	TrainingMode,
	TrainingSession,
	TrainingType,
)
from .store import KeyedLock, KeyValueStore


logger = logging.getLogger(__name__)

SESSION_NS = "sessions"


class TrainingService:
	def __init__(self, store: KeyValueStore, gateway: EvaluationGateway, clock: Clock) -> None:
		self.store = store
		self.gateway = gateway
		self.clock = clock
		self._locks = KeyedLock()

	def _load(self, session_id: str, user_id: Optional[str] = None) -> TrainingSession:
		record = self.store.get(SESSION_NS, session_id)
		if record is None:
			raise NotFoundError("Session not found")
		session = TrainingSession.model_validate(record)
		if user_id is not None and session.user_id != user_id:
			raise NotFoundError("Session not found")
		return session

	def _save(self, session: TrainingSession) -> None:
		self.store.put(SESSION_NS, session.id, session.to_record())

	def start(self, user_id: str, mode: TrainingMode, training_type: TrainingType) -> TrainingSession:
		session = TrainingSession(
			id=str(uuid.uuid4()),
			user_id=user_id,
			mode=mode,
			training_type=training_type,
			started_at=self.clock.now(),
		)
		self._save(session)
		logger.info("Session %s started (%s/%s)", session.id, mode.value, training_type.value)
		return session

	async def submit_answer(
		self,
		user_id: str,
		session_id: str,
		question_id: str,
		content: str,
		time_spent_seconds: Optional[int] = None,
	) -> AnswerResult:
		async with self._locks.hold(session_id):
			session = await run_in_threadpool(self._load, session_id, user_id)
			if session.is_completed:
				raise SessionAlreadyCompleted()
			question = get_question(question_id)

			evaluation = await self.gateway.evaluate(EvaluationRequest(
				question=question.title,
				answer=content,
				method=question.method,
				mode=question.mode.value,
				difficulty=question.difficulty,
			))

			answer = Answer(
				id=str(uuid.uuid4()),
				question_id=question_id,
				content=content,
				score=evaluation.score,
				score_detail=evaluation.score_detail,
				feedback=evaluation.feedback,
				improvements=list(evaluation.improvements),
				xp_earned=evaluation.xp_earned,
				time_spent_seconds=time_spent_seconds,
				created_at=self.clock.now(),
			)
			session.answers.append(answer)
			session.questions_count += 1
			session.total_xp_earned += answer.xp_earned
			await run_in_threadpool(self._save, session)

		logger.info(
			"Session %s answer %s scored %d (+%d XP)", session_id, answer.id, answer.score, answer.xp_earned
		)
		return AnswerResult(
			answer_id=answer.id,
			score=answer.score,
			score_detail=answer.score_detail,
			feedback=answer.feedback,
			improvements=answer.improvements,
			xp_earned=answer.xp_earned,
		)

	async def complete(self, user_id: str, session_id: str) -> Tuple[TrainingSession, SessionSummary]:
		"""Close the session; the caller credits ``summary.total_xp_earned`` to progression."""
		async with self._locks.hold(session_id):
			session = await run_in_threadpool(self._load, session_id, user_id)
			if session.is_completed:
				raise SessionAlreadyCompleted()
			if not session.answers:
				raise NoAnswers()
			session.completed_at = self.clock.now()
			await run_in_threadpool(self._save, session)

		summary = SessionSummary(
			questions_count=session.questions_count,
			total_xp_earned=session.total_xp_earned,
			average_score=session.average_score(),
			duration=round_half_up((session.completed_at - session.started_at).total_seconds()),
		)
		logger.info(
			"Session %s completed: %d answers, %d XP", session_id, summary.questions_count, summary.total_xp_earned
		)
		return session, summary

	def get_session(self, user_id: str, session_id: str) -> TrainingSession:
		return self._load(session_id, user_id)

	def history(self, user_id: str, limit: int = 10, offset: int = 0) -> Tuple[List[TrainingSession], int]:
		"""Completed sessions of ``user_id``, most recently completed first."""
		completed = [
			s for s in (TrainingSession.model_validate(r) for r in self.store.list(SESSION_NS))
			if s.user_id == user_id and s.is_completed
		]
		completed.sort(key=lambda s: s.completed_at, reverse=True)
		return completed[offset:offset + limit], len(completed)
