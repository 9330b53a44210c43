"""
XP, levels, titles and streaks.

Leveling: XP accrues into ``current_xp``; while it reaches ``xp_to_next_level``
the threshold is consumed, the level increases, and the next threshold becomes
``100 + (level - 1) * 20``. ``total_xp`` only ever grows.

Streaks advance at most once per calendar day: training the day after the last
training extends the streak, training again on the same day changes nothing,
anything else starts over at 1.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from .clock import Clock, current_week_key, local_date
from .schemas import TrainingMode, UserProfile, UserProgress
from .store import KeyValueStore


logger = logging.getLogger(__name__)


LEVEL_TITLES = [
	"言語化ビギナー",
	"言語化チャレンジャー",
	"言語化プラクティショナー",
	"言語化エキスパート",
	"言語化マスター",
	"言語化レジェンド",
]
LEVELS_PER_TITLE = 5

PROGRESS_NS = "progress"
PROFILE_NS = "users"
WEEKLY_XP_NS = "weekly_xp"


def title_for_level(level: int) -> str:
	index = min(max(level - 1, 0) // LEVELS_PER_TITLE, len(LEVEL_TITLES) - 1)
	return LEVEL_TITLES[index]


def xp_threshold_for(level: int) -> int:
	return 100 + (level - 1) * 20


def apply_xp(progress: UserProgress, xp_delta: int) -> UserProgress:
	if xp_delta < 0:
		raise ValueError("xp_delta must be non-negative")
	current = progress.current_xp + xp_delta
	level = progress.level
	to_next = progress.xp_to_next_level
	while current >= to_next:
		current -= to_next
		level += 1
		to_next = xp_threshold_for(level)
	return progress.model_copy(update={
		"level": level,
		"current_xp": current,
		"xp_to_next_level": to_next,
		"total_xp": progress.total_xp + xp_delta,
	})


def update_streak(progress: UserProgress, today: date) -> UserProgress:
	last = progress.last_training_date
	if last == today:
		return progress
	if last is not None and last == today - timedelta(days=1):
		streak = progress.current_streak + 1
	else:
		streak = 1
	return progress.model_copy(update={
		"current_streak": streak,
		"longest_streak": max(progress.longest_streak, streak),
		"last_training_date": today,
	})


class ProgressionLedger:
	"""Per-user progress, profile and weekly XP backed by a keyed store."""

	def __init__(self, store: KeyValueStore, clock: Clock, default_display_name: Optional[str] = None) -> None:
		self.store = store
		self.clock = clock
		self.default_display_name = default_display_name

	def get_progress(self, user_id: str) -> UserProgress:
		record = self.store.get(PROGRESS_NS, user_id)
		if record is None:
			return UserProgress()
		return UserProgress.model_validate(record)

	def trained_today(self, user_id: str) -> bool:
		progress = self.get_progress(user_id)
		return progress.last_training_date == local_date(self.clock.now())

	def record_session(self, user_id: str, xp: int, now: Optional[datetime] = None) -> UserProgress:
		now = now or self.clock.now()
		before = self.get_progress(user_id)
		after = update_streak(apply_xp(before, xp), local_date(now))
		self.store.put(PROGRESS_NS, user_id, after.to_record())
		self.add_weekly_xp(user_id, current_week_key(now), xp)
		if after.level > before.level:
			logger.info("User %s reached level %d (%s)", user_id, after.level, after.title)
		return after

	def weekly_xp(self, user_id: str, week_key: str) -> int:
		record = self.store.get(WEEKLY_XP_NS, f"{user_id}:{week_key}")
		return int(record["weeklyXp"]) if record else 0

	def add_weekly_xp(self, user_id: str, week_key: str, xp: int) -> int:
		total = self.weekly_xp(user_id, week_key) + xp
		self.store.put(WEEKLY_XP_NS, f"{user_id}:{week_key}", {
			"userId": user_id,
			"leagueId": week_key,
			"weeklyXp": total,
		})
		return total

	def get_profile(self, user_id: str) -> UserProfile:
		record = self.store.get(PROFILE_NS, user_id)
		if record is not None:
			return UserProfile.model_validate(record)
		profile = UserProfile(
			id=user_id,
			display_name=self.default_display_name,
			preferred_modes=None,
			created_at=self.clock.now(),
		)
		self.store.put(PROFILE_NS, user_id, profile.to_record())
		return profile

	def update_profile(
		self,
		user_id: str,
		display_name: Optional[str] = None,
		preferred_modes: Optional[list[TrainingMode]] = None,
	) -> UserProfile:
		profile = self.get_profile(user_id)
		changes = {}
		if display_name is not None:
			changes["display_name"] = display_name
		if preferred_modes is not None:
			changes["preferred_modes"] = preferred_modes
		if changes:
			profile = profile.model_copy(update=changes)
			self.store.put(PROFILE_NS, user_id, profile.to_record())
		return profile
