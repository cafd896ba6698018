"""
Schedule Store

Persistence collaborator consumed by the scheduling engine:
- ScheduleFilters: what to load for an owner
- ScheduleStore: protocol implemented by the Frappe store (persistence.py)
- MemoryScheduleStore: process-local store for tests and embedded use
"""

import itertools
import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import date
from typing import Dict, FrozenSet, Iterator, List, Optional, Protocol

from .models import OwnerRef, Schedule, ScheduleType


@dataclass(frozen=True)
class ScheduleFilters:
	"""
	Filters for load_schedules_for_owner.

	schedule_types: restrict to these types (None = all)
	active_only: skip inactive schedules
	date_from / date_to: keep schedules whose [start_date, end_date] intersects the range
	exclude_id: skip one schedule (the one being updated)
	"""

	schedule_types: Optional[FrozenSet[ScheduleType]] = None
	active_only: bool = False
	date_from: Optional[date] = None
	date_to: Optional[date] = None
	exclude_id: Optional[str] = None

	def matches(self, schedule: Schedule) -> bool:
		if self.schedule_types is not None and schedule.schedule_type not in self.schedule_types:
			return False
		if self.active_only and not schedule.is_active:
			return False
		if self.exclude_id is not None and schedule.id == self.exclude_id:
			return False
		if self.date_to is not None and schedule.start_date > self.date_to:
			return False
		if self.date_from is not None and schedule.end_date is not None and schedule.end_date < self.date_from:
			return False
		return True


class ScheduleStore(Protocol):
	def load_schedules_for_owner(self, owner: OwnerRef, filters: Optional[ScheduleFilters] = None) -> List[Schedule]:
		...

	def commit(self, schedule: Schedule) -> Schedule:
		...

	def delete(self, schedule: Schedule) -> bool:
		...

	def transaction(self, owner: OwnerRef):
		...


class MemoryScheduleStore:
	"""
	In-memory ScheduleStore.

	Schedules are kept in insertion order. Transactions are serialised by a
	re-entrant lock and roll back every change when the block raises.
	"""

	def __init__(self, schedules=None):
		self._schedules: Dict[str, Schedule] = {}
		self._lock = threading.RLock()
		self._ids = itertools.count(1)
		for schedule in schedules or []:
			self.commit(schedule)

	def load_schedules_for_owner(self, owner: OwnerRef, filters: Optional[ScheduleFilters] = None) -> List[Schedule]:
		filters = filters or ScheduleFilters()
		with self._lock:
			return [s for s in self._schedules.values() if s.owner == owner and filters.matches(s)]

	def get(self, schedule_id: str) -> Optional[Schedule]:
		with self._lock:
			return self._schedules.get(schedule_id)

	def commit(self, schedule: Schedule) -> Schedule:
		with self._lock:
			if schedule.id is None:
				schedule = replace(schedule, id=f"SCH-{next(self._ids):05d}")
			self._schedules[schedule.id] = schedule
			return schedule

	def delete(self, schedule: Schedule) -> bool:
		with self._lock:
			return self._schedules.pop(schedule.id, None) is not None

	@contextmanager
	def transaction(self, owner: OwnerRef) -> Iterator["MemoryScheduleStore"]:
		with self._lock:
			snapshot = dict(self._schedules)
			try:
				yield self
			except BaseException:
				self._schedules = snapshot
				raise

	def __len__(self) -> int:
		with self._lock:
			return len(self._schedules)
