from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel

from .clock import Clock, SystemClock, resolve_timezone
from .db import build_engine
from .evaluation import EvaluationGateway, build_gateway
from .league import LeagueService
from .progression import ProgressionLedger
from .settings import settings
from .store import InMemoryStore, KeyValueStore, SqlStore
from .training import TrainingService


class User(BaseModel):
	user_id: str


# No authentication yet: every request acts as the configured default user
def get_current_user() -> User:
	return User(user_id=settings.default_user_id)


@lru_cache
def get_store() -> KeyValueStore:
	if settings.database_url:
		return SqlStore(build_engine(settings.database_url))
	return InMemoryStore()


@lru_cache
def get_clock() -> Clock:
	return SystemClock(resolve_timezone(settings.app_timezone))


@lru_cache
def get_gateway() -> EvaluationGateway:
	return build_gateway(settings)


@lru_cache
def get_training_service() -> TrainingService:
	return TrainingService(get_store(), get_gateway(), get_clock())


@lru_cache
def get_ledger() -> ProgressionLedger:
	return ProgressionLedger(get_store(), get_clock(), default_display_name=settings.default_display_name)


@lru_cache
def get_league_service() -> LeagueService:
	return LeagueService(
		get_store(),
		get_ledger(),
		get_clock(),
		jitter=settings.league_jitter,
		user_slot=settings.league_user_slot,
		seed=settings.league_seed,
	)
