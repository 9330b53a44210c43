from __future__ import annotations

from fastapi import APIRouter, Depends

from ..deps import User, get_current_user, get_ledger
from ..progression import ProgressionLedger
from ..schemas import ProgressResponse, UpdateProfileRequest, UserResponse


router = APIRouter(prefix="/users", tags=["users"])


def _user_response(ledger: ProgressionLedger, user_id: str) -> UserResponse:
	profile = ledger.get_profile(user_id)
	progress = ledger.get_progress(user_id)
	return UserResponse(
		id=profile.id,
		display_name=profile.display_name,
		level=progress.level,
		total_xp=progress.total_xp,
		current_streak=progress.current_streak,
		longest_streak=progress.longest_streak,
		last_training_date=progress.last_training_date,
		preferred_modes=profile.preferred_modes,
		created_at=profile.created_at,
	)


@router.get("/me", response_model=UserResponse)
def read_me(user: User = Depends(get_current_user), ledger: ProgressionLedger = Depends(get_ledger)):
	return _user_response(ledger, user.user_id)


@router.patch("/me", response_model=UserResponse)
def update_me(
	req: UpdateProfileRequest,
	user: User = Depends(get_current_user),
	ledger: ProgressionLedger = Depends(get_ledger),
):
	ledger.update_profile(user.user_id, req.display_name, req.preferred_modes)
	return _user_response(ledger, user.user_id)


@router.get("/me/progress", response_model=ProgressResponse)
def read_progress(user: User = Depends(get_current_user), ledger: ProgressionLedger = Depends(get_ledger)):
	progress = ledger.get_progress(user.user_id)
	return ProgressResponse(
		**progress.model_dump(exclude={"title"}),
		today_completed=ledger.trained_today(user.user_id),
	)
