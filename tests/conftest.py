from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
BACKEND = ROOT / "backend"
if str(BACKEND) not in sys.path:
	sys.path.insert(0, str(BACKEND))

from hanatore import deps  # noqa: E402
from hanatore.clock import FixedClock  # noqa: E402
from hanatore.evaluation import EvaluationGateway  # noqa: E402
from hanatore.league import LeagueService  # noqa: E402
from hanatore.main import app  # noqa: E402
from hanatore.progression import ProgressionLedger  # noqa: E402
from hanatore.store import InMemoryStore  # noqa: E402
from hanatore.training import TrainingService  # noqa: E402

USER_ID = "user-test-001"

# Wednesday of league week 2024-W15
WEDNESDAY = datetime(2024, 4, 10, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def clock() -> FixedClock:
	return FixedClock(WEDNESDAY)


@pytest.fixture
def store() -> InMemoryStore:
	return InMemoryStore()


@pytest.fixture
def gateway() -> EvaluationGateway:
	# No backend configured: every evaluation takes the heuristic path
	return EvaluationGateway(primary=None)


@pytest.fixture
def training_service(store, gateway, clock) -> TrainingService:
	return TrainingService(store, gateway, clock)


@pytest.fixture
def ledger(store, clock) -> ProgressionLedger:
	return ProgressionLedger(store, clock, default_display_name="テストユーザー")


@pytest.fixture
def league_service(store, ledger, clock) -> LeagueService:
	return LeagueService(store, ledger, clock, jitter=0, user_slot=12)


@pytest.fixture
def client(store, clock, gateway, training_service, ledger, league_service):
	app.dependency_overrides[deps.get_current_user] = lambda: deps.User(user_id=USER_ID)
	app.dependency_overrides[deps.get_store] = lambda: store
	app.dependency_overrides[deps.get_clock] = lambda: clock
	app.dependency_overrides[deps.get_gateway] = lambda: gateway
	app.dependency_overrides[deps.get_training_service] = lambda: training_service
	app.dependency_overrides[deps.get_ledger] = lambda: ledger
	app.dependency_overrides[deps.get_league_service] = lambda: league_service
	try:
		with TestClient(app) as test_client:
			yield test_client
	finally:
		app.dependency_overrides.clear()
