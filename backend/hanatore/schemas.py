"""
Domain and wire schemas.

Everything crossing the HTTP boundary or the keyed store is a pydantic model.
Python attributes are snake_case; the wire format uses the camelCase names
the mobile client expects (``scoreDetail``, ``xpEarned``, ``totalXpEarned``...),
produced by the shared alias generator. Store payloads are dumped with the
same aliases so a record read back validates into the same model.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

	def to_record(self) -> dict:
		return self.model_dump(mode="json", by_alias=True)


# ============================================================================
# ENUMERATIONS
# ============================================================================

class TrainingMode(str, Enum):
	BUSINESS = "BUSINESS"
	PRESENTATION = "PRESENTATION"
	ONE_ON_ONE = "ONE_ON_ONE"
	DAILY_TALK = "DAILY_TALK"
	THINKING = "THINKING"


class TrainingType(str, Enum):
	QUICK = "QUICK"
	STRUCTURED = "STRUCTURED"
	AI_DIALOG = "AI_DIALOG"


class LeagueTier(str, Enum):
	BRONZE = "BRONZE"
	SILVER = "SILVER"
	GOLD = "GOLD"
	PLATINUM = "PLATINUM"


# ============================================================================
# QUESTIONS
# ============================================================================

class PublicQuestion(CamelModel):
	"""Question as served to clients (no sample answer)."""
	id: str
	mode: TrainingMode
	training_type: TrainingType
	method: Optional[str] = None
	title: str
	context: Optional[str] = None
	hint: Optional[str] = None
	difficulty: int = Field(ge=1, le=5)
	is_premium: bool = False


class Question(PublicQuestion):
	model_config = ConfigDict(frozen=True)

	sample_answer: Optional[str] = None

	def public(self) -> PublicQuestion:
		return PublicQuestion.model_validate(self.model_dump(exclude={"sample_answer"}))


class QuestionListResponse(CamelModel):
	questions: List[PublicQuestion]
	total: int
	limit: int
	offset: int
	has_more: bool


class DailyQuestionsResponse(CamelModel):
	day: date = Field(alias="date")
	questions: List[PublicQuestion]
	total_count: int


# ============================================================================
# EVALUATION
# ============================================================================

class ScoreDetail(CamelModel):
	specificity: int = Field(ge=0, le=100)
	structure: int = Field(ge=0, le=100)
	persuasiveness: int = Field(ge=0, le=100)


class EvaluationRequest(CamelModel):
	question: str = ""
	answer: str = ""
	method: Optional[str] = None
	mode: Optional[str] = None
	difficulty: Optional[int] = Field(default=None, ge=1, le=5)


class EvaluationResult(CamelModel):
	model_config = ConfigDict(frozen=True)

	score: int = Field(ge=0, le=100)
	score_detail: ScoreDetail
	feedback: str
	improvements: List[str] = Field(default_factory=list, max_length=3)
	xp_earned: int = Field(ge=0)


class AIStatus(CamelModel):
	available: bool
	model: str


# ============================================================================
# TRAINING SESSIONS
# ============================================================================

class Answer(CamelModel):
	id: str
	question_id: str
	content: str
	score: int
	score_detail: ScoreDetail
	feedback: str
	improvements: List[str] = Field(default_factory=list)
	xp_earned: int = 0
	time_spent_seconds: Optional[int] = None
	created_at: datetime


class TrainingSession(CamelModel):
	id: str
	user_id: str
	mode: TrainingMode
	training_type: TrainingType
	started_at: datetime
	completed_at: Optional[datetime] = None
	total_xp_earned: int = 0
	questions_count: int = 0
	answers: List[Answer] = Field(default_factory=list)

	@property
	def is_completed(self) -> bool:
		return self.completed_at is not None

	def average_score(self) -> int:
		if not self.answers:
			return 0
		total = sum(a.score for a in self.answers)
		# half-up, matching the score rounding elsewhere
		return int(total / len(self.answers) + 0.5)


class StartTrainingRequest(CamelModel):
	mode: TrainingMode
	training_type: TrainingType


class StartTrainingResponse(CamelModel):
	session_id: str
	mode: TrainingMode
	training_type: TrainingType
	started_at: datetime


class SubmitAnswerRequest(CamelModel):
	session_id: str = Field(min_length=1)
	question_id: str = Field(min_length=1)
	content: str = Field(min_length=1)
	time_spent_seconds: Optional[int] = Field(default=None, ge=0)


class AnswerResult(CamelModel):
	answer_id: str
	score: int
	score_detail: ScoreDetail
	feedback: str
	improvements: List[str]
	xp_earned: int


class CompleteTrainingRequest(CamelModel):
	session_id: str = Field(min_length=1)


class SessionSummary(CamelModel):
	questions_count: int
	total_xp_earned: int
	average_score: int
	duration: int


class CompleteTrainingResponse(CamelModel):
	session_id: str
	completed_at: datetime
	summary: SessionSummary


class SessionHistoryItem(CamelModel):
	session_id: str
	mode: TrainingMode
	training_type: TrainingType
	started_at: datetime
	completed_at: Optional[datetime]
	questions_count: int
	total_xp_earned: int
	average_score: int


class SessionHistoryResponse(CamelModel):
	sessions: List[SessionHistoryItem]
	total: int
	limit: int
	offset: int
	has_more: bool


class AnswerDetail(CamelModel):
	id: str
	question_id: str
	content: str
	score: int
	score_detail: ScoreDetail
	feedback: str
	improvements: List[str]
	xp_earned: int
	time_spent_seconds: Optional[int]
	created_at: datetime


class SessionDetail(CamelModel):
	session_id: str
	mode: TrainingMode
	training_type: TrainingType
	started_at: datetime
	completed_at: Optional[datetime]
	questions_count: int
	total_xp_earned: int
	answers: List[AnswerDetail]


# ============================================================================
# USERS AND PROGRESSION
# ============================================================================

class UserProgress(CamelModel):
	level: int = Field(default=1, ge=1)
	total_xp: int = Field(default=0, ge=0)
	current_xp: int = Field(default=0, ge=0)
	xp_to_next_level: int = 100
	current_streak: int = Field(default=0, ge=0)
	longest_streak: int = Field(default=0, ge=0)
	last_training_date: Optional[date] = None

	@computed_field  # type: ignore[prop-decorator]
	@property
	def title(self) -> str:
		from .progression import title_for_level
		return title_for_level(self.level)


class ProgressResponse(UserProgress):
	today_completed: bool = False


class UserProfile(CamelModel):
	id: str
	display_name: Optional[str] = None
	preferred_modes: Optional[List[TrainingMode]] = None
	created_at: datetime


class UpdateProfileRequest(CamelModel):
	display_name: Optional[str] = Field(default=None, min_length=1, max_length=50)
	preferred_modes: Optional[List[TrainingMode]] = None


class UserResponse(CamelModel):
	id: str
	display_name: Optional[str]
	level: int
	total_xp: int
	current_streak: int
	longest_streak: int
	last_training_date: Optional[date]
	preferred_modes: Optional[List[TrainingMode]]
	created_at: datetime


# ============================================================================
# LEAGUE
# ============================================================================

class RankingEntry(CamelModel):
	rank: int
	user_id: str
	display_name: str
	weekly_xp: int = Field(ge=0)
	tier: LeagueTier
	is_current_user: bool = False


class LeagueInfo(CamelModel):
	league_id: str
	tier: LeagueTier
	weekly_xp: int
	rank: Optional[int]
	start_date: datetime
	end_date: datetime
	total_participants: int


class RankingResponse(CamelModel):
	league_id: str
	ranking: List[RankingEntry]
	current_user: Optional[RankingEntry]
	total_participants: int


class PromotionStatus(CamelModel):
	league_id: str
	rank: Optional[int]
	in_promotion_zone: bool
	xp_to_promotion: Optional[int]


class LeagueHistoryEntry(CamelModel):
	league_id: str
	tier: LeagueTier
	final_rank: int
	weekly_xp: int
	total_participants: int
	promoted: bool


class LeagueHistoryResponse(CamelModel):
	history: List[LeagueHistoryEntry]
	total_weeks: int
