"""
Keyed record storage.

Services never hold state themselves; sessions, progress, weekly XP and
league snapshots live in a ``KeyValueStore`` addressed by (namespace, key).
Records are plain JSON-compatible dicts. Two implementations ship:
``InMemoryStore`` for development and tests, ``SqlStore`` for a database
configured through ``DATABASE_URL``.
"""

from __future__ import annotations

import asyncio
import copy
import json
import threading
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.engine import Engine

from .db import build_sessionmaker, init_schema
from .models import KeyValueEntry


Record = Dict[str, Any]


class KeyValueStore(Protocol):
	def get(self, namespace: str, key: str) -> Optional[Record]: ...

	def put(self, namespace: str, key: str, value: Record) -> None: ...

	def list(self, namespace: str) -> List[Record]: ...

	def delete(self, namespace: str, key: str) -> bool: ...


class InMemoryStore:
	"""Process-local store; sync routes call it from the threadpool, so every access holds one lock."""

	def __init__(self) -> None:
		self._data: Dict[str, Dict[str, Record]] = defaultdict(dict)
		self._mutex = threading.Lock()

	def get(self, namespace: str, key: str) -> Optional[Record]:
		with self._mutex:
			value = self._data[namespace].get(key)
			# Copies keep callers from mutating stored state in place
			return copy.deepcopy(value) if value is not None else None

	def put(self, namespace: str, key: str, value: Record) -> None:
		value = copy.deepcopy(value)
		with self._mutex:
			self._data[namespace][key] = value

	def list(self, namespace: str) -> List[Record]:
		with self._mutex:
			values = list(self._data[namespace].values())
			return [copy.deepcopy(v) for v in values]

	def delete(self, namespace: str, key: str) -> bool:
		with self._mutex:
			return self._data[namespace].pop(key, None) is not None


class SqlStore:
	"""Store backed by the ``kv_entries`` table."""

	def __init__(self, engine: Engine) -> None:
		init_schema(engine)
		self._sessionmaker = build_sessionmaker(engine)

	def get(self, namespace: str, key: str) -> Optional[Record]:
		with self._sessionmaker() as db:
			row = db.get(KeyValueEntry, (namespace, key))
			if row is None:
				return None
			return json.loads(row.payload)

	def put(self, namespace: str, key: str, value: Record) -> None:
		payload = json.dumps(value, ensure_ascii=False)
		with self._sessionmaker() as db:
			row = db.get(KeyValueEntry, (namespace, key))
			if row is None:
				row = KeyValueEntry(namespace=namespace, key=key, payload=payload)
			else:
				row.payload = payload
			db.add(row)
			db.commit()

	def list(self, namespace: str) -> List[Record]:
		with self._sessionmaker() as db:
			rows = db.execute(
				select(KeyValueEntry).where(KeyValueEntry.namespace == namespace).order_by(KeyValueEntry.created_at)
			).scalars().all()
			return [json.loads(r.payload) for r in rows]

	def delete(self, namespace: str, key: str) -> bool:
		with self._sessionmaker() as db:
			row = db.get(KeyValueEntry, (namespace, key))
			if row is None:
				return False
			db.delete(row)
			db.commit()
			return True


class KeyedLock:
	"""At most one holder per key at a time; other keys proceed independently."""

	def __init__(self) -> None:
		self._locks: Dict[str, asyncio.Lock] = {}
		self._waiters: Dict[str, int] = defaultdict(int)

	@asynccontextmanager
	async def hold(self, key: str) -> AsyncIterator[None]:
		lock = self._locks.setdefault(key, asyncio.Lock())
		self._waiters[key] += 1
		try:
			async with lock:
				yield
		finally:
			self._waiters[key] -= 1
			if self._waiters[key] == 0:
				self._locks.pop(key, None)
				self._waiters.pop(key, None)

	def __len__(self) -> int:
		return len(self._locks)
