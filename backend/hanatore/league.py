"""
Weekly league standings.

The league is a snapshot, not a live system. For each week key a pool of
synthetic participants is generated once and cached; when a request arrives
with a different week key the old snapshot is archived and a new one is
generated (lazy reset). Every read injects the requesting user's live weekly
XP into the designated slot, sorts by XP descending (stable, so ties keep
slot order) and numbers ranks from 1.

Jitter comes from a ``random.Random`` seeded per week key, so a week's pool
is reproducible and a jitter of 0 makes it fully fixed.
"""

from __future__ import annotations

import logging
import random
from typing import Callable, List, Optional, Tuple

from .clock import Clock, current_week_key, week_bounds
from .progression import ProgressionLedger
from .schemas import (
	LeagueHistoryEntry,
	LeagueHistoryResponse,
	LeagueInfo,
	LeagueTier,
	PromotionStatus,
	RankingEntry,
	RankingResponse,
)
from .store import KeyValueStore


logger = logging.getLogger(__name__)

LEAGUE_NS = "league"
CURRENT_KEY = "current"
ARCHIVE_NS = "league_archive"

PROMOTION_ZONE = 3
TOP_XP = 1000
XP_STEP = 45

PARTICIPANT_NAMES = [
	"話し上手さん", "プレゼンマスター", "ビジネス達人", "説明の鬼",
	"論理的思考", "コミュ力UP", "PREP使い", "瞬発力トレーナー",
	"毎日継続", "ストリーク維持", "努力の人", "成長中",
	"デモユーザー", "がんばり屋", "もくもく", "朝活派",
	"スキマ時間", "通勤トレ", "ランチ練習", "寝る前5分",
]

RngFactory = Callable[[str], random.Random]


def tier_for_slot(index: int) -> LeagueTier:
	if index < 3:
		return LeagueTier.GOLD
	if index < 10:
		return LeagueTier.SILVER
	return LeagueTier.BRONZE


def generate_pool(rng: random.Random, jitter: int) -> List[dict]:
	pool = []
	for index, name in enumerate(PARTICIPANT_NAMES):
		noise = rng.randrange(jitter) if jitter > 0 else 0
		pool.append({
			"userId": f"user-{index + 1}",
			"displayName": name,
			"weeklyXp": max(0, TOP_XP - index * XP_STEP + noise),
			"tier": tier_for_slot(index).value,
		})
	return pool


def rank_entries(entries: List[RankingEntry]) -> List[RankingEntry]:
	ordered = sorted(entries, key=lambda e: e.weekly_xp, reverse=True)
	return [e.model_copy(update={"rank": i + 1}) for i, e in enumerate(ordered)]


def find_user(ranking: List[RankingEntry]) -> Optional[RankingEntry]:
	return next((e for e in ranking if e.is_current_user), None)


class LeagueService:
	def __init__(
		self,
		store: KeyValueStore,
		ledger: ProgressionLedger,
		clock: Clock,
		*,
		jitter: int = 30,
		user_slot: Optional[int] = 12,
		seed: Optional[int] = None,
		rng_factory: Optional[RngFactory] = None,
	) -> None:
		self.store = store
		self.ledger = ledger
		self.clock = clock
		self.jitter = jitter
		self.user_slot = user_slot
		self.seed = seed
		self.rng_factory = rng_factory

	def _rng(self, week_key: str) -> random.Random:
		if self.rng_factory is not None:
			return self.rng_factory(week_key)
		if self.seed is not None:
			return random.Random(f"{self.seed}:{week_key}")
		return random.Random(week_key)

	def _snapshot(self) -> dict:
		week_key = current_week_key(self.clock.now())
		cached = self.store.get(LEAGUE_NS, CURRENT_KEY)
		if cached is not None and cached["leagueId"] == week_key:
			return cached
		if cached is not None:
			self.store.put(ARCHIVE_NS, cached["leagueId"], cached)
			logger.info("League rollover %s -> %s", cached["leagueId"], week_key)
		else:
			logger.info("League snapshot created for %s", week_key)
		snapshot = {
			"leagueId": week_key,
			"participants": generate_pool(self._rng(week_key), self.jitter),
		}
		self.store.put(LEAGUE_NS, CURRENT_KEY, snapshot)
		return snapshot

	def _standings(self, snapshot: dict, user_id: str) -> List[RankingEntry]:
		entries = [RankingEntry(rank=0, is_current_user=False, **p) for p in snapshot["participants"]]
		slot = self.user_slot
		if slot is not None and 0 <= slot < len(entries):
			profile = self.ledger.get_profile(user_id)
			entries[slot] = entries[slot].model_copy(update={
				"user_id": user_id,
				"display_name": profile.display_name or entries[slot].display_name,
				"weekly_xp": self.ledger.weekly_xp(user_id, snapshot["leagueId"]),
				"is_current_user": True,
			})
		return rank_entries(entries)

	def standings(self, user_id: str) -> Tuple[str, List[RankingEntry]]:
		snapshot = self._snapshot()
		return snapshot["leagueId"], self._standings(snapshot, user_id)

	def current(self, user_id: str) -> LeagueInfo:
		league_id, ranking = self.standings(user_id)
		start, end = week_bounds(self.clock.now())
		entry = find_user(ranking)
		return LeagueInfo(
			league_id=league_id,
			tier=entry.tier if entry else LeagueTier.BRONZE,
			weekly_xp=entry.weekly_xp if entry else self.ledger.weekly_xp(user_id, league_id),
			rank=entry.rank if entry else None,
			start_date=start,
			end_date=end,
			total_participants=len(ranking),
		)

	def ranking(self, user_id: str, limit: int = 20) -> RankingResponse:
		league_id, ranking = self.standings(user_id)
		top = ranking[:limit]
		in_top = find_user(top) is not None
		return RankingResponse(
			league_id=league_id,
			ranking=top,
			current_user=None if in_top else find_user(ranking),
			total_participants=len(ranking),
		)

	def promotion(self, user_id: str) -> PromotionStatus:
		league_id, ranking = self.standings(user_id)
		entry = find_user(ranking)
		if entry is None:
			return PromotionStatus(league_id=league_id, rank=None, in_promotion_zone=False, xp_to_promotion=None)
		if entry.rank <= PROMOTION_ZONE:
			return PromotionStatus(league_id=league_id, rank=entry.rank, in_promotion_zone=True, xp_to_promotion=None)
		third = ranking[PROMOTION_ZONE - 1]
		return PromotionStatus(
			league_id=league_id,
			rank=entry.rank,
			in_promotion_zone=False,
			xp_to_promotion=third.weekly_xp - entry.weekly_xp + 1,
		)

	def history(self, user_id: str) -> LeagueHistoryResponse:
		# Trigger the lazy reset so a finished week is archived before reading
		self._snapshot()
		history: List[LeagueHistoryEntry] = []
		for snapshot in self.store.list(ARCHIVE_NS):
			entry = find_user(self._standings(snapshot, user_id))
			if entry is None:
				continue
			history.append(LeagueHistoryEntry(
				league_id=snapshot["leagueId"],
				tier=entry.tier,
				final_rank=entry.rank,
				weekly_xp=entry.weekly_xp,
				total_participants=len(snapshot["participants"]),
				promoted=entry.rank <= PROMOTION_ZONE,
			))
		history.sort(key=lambda h: h.league_id, reverse=True)
		return LeagueHistoryResponse(history=history, total_weeks=len(history))
