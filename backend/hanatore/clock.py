from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Protocol, Tuple
from zoneinfo import ZoneInfo


class Clock(Protocol):
	def now(self) -> datetime: ...


class SystemClock:
	def __init__(self, tz: tzinfo = timezone.utc) -> None:
		self.tz = tz

	def now(self) -> datetime:
		return datetime.now(self.tz)


class FixedClock:
	"""Clock frozen at a given instant; ``advance`` moves it forward."""

	def __init__(self, current: datetime) -> None:
		self.current = current

	def now(self) -> datetime:
		return self.current

	def advance(self, **kwargs) -> datetime:
		self.current = self.current + timedelta(**kwargs)
		return self.current


def resolve_timezone(name: str) -> tzinfo:
	if name.upper() == "UTC":
		return timezone.utc
	return ZoneInfo(name)


def local_date(now: datetime) -> date:
	"""Calendar day of ``now`` in its own timezone; streaks and "today" use it."""
	return now.date()


def current_week_key(now: datetime) -> str:
	"""League id for the week containing ``now``, e.g. ``2024-W15``.

	Week number is ceil((days since Jan 1 + weekday of Jan 1 + 1) / 7) with
	Sunday as weekday 0. This is not ISO-8601: weeks roll over on Sunday and
	the first week of a year may hold a single day.
	"""
	jan1 = date(now.year, 1, 1)
	days = (now.date() - jan1).days
	jan1_weekday = jan1.isoweekday() % 7
	week_number = math.ceil((days + jan1_weekday + 1) / 7)
	return f"{now.year}-W{week_number:02d}"


def week_bounds(now: datetime) -> Tuple[datetime, datetime]:
	"""Monday 00:00:00.000 to Sunday 23:59:59.999 around ``now``, same tzinfo."""
	monday = now.date() - timedelta(days=now.weekday())
	start = datetime.combine(monday, time.min, tzinfo=now.tzinfo)
	sunday = monday + timedelta(days=6)
	end = datetime.combine(sunday, time(23, 59, 59, 999000), tzinfo=now.tzinfo)
	return start, end
