"""
Scheduling Configuration

Settings consulted by validation, conflict detection and slot generation.
Passed explicitly to every engine function; in a Frappe site they are read from
the `resource_scheduling` key of site_config.json (see persistence.py).
"""

from dataclasses import dataclass, field, fields
from typing import Any, FrozenSet, Mapping, Optional

from .dates import DEFAULT_DAY_NUMBER
from .exceptions import InvalidScheduleError
from .models import ScheduleType

DEFAULT_CHECKED_TYPES = frozenset({ScheduleType.APPOINTMENT, ScheduleType.BLOCKED})


def _schedule_types(values) -> FrozenSet[ScheduleType]:
	try:
		return frozenset(ScheduleType(value) for value in values)
	except ValueError as e:
		raise InvalidScheduleError.for_field("config", str(e)) from e


@dataclass(frozen=True)
class SchedulingConfig:
	"""
	Engine settings.

	no_overlap_types: types conflict-checked without an explicit no_overlap rule
	blocking_types: types whose periods mark bookable slots unavailable
	week_start: Sunday-based first day of the week, used to anchor bi-weekly rules
	max_search_days: horizon of the next-slot search
	conflict_horizon_days: days scanned when two recurring schedules are both open-ended
	min_period_duration / max_period_duration: minutes, 0 disables the check
	allow_overlapping_periods: periods of one schedule may overlap each other
	require_future_dates: reject schedules starting before today
	"""

	no_overlap_types: FrozenSet[ScheduleType] = field(default=DEFAULT_CHECKED_TYPES)
	blocking_types: FrozenSet[ScheduleType] = field(default=DEFAULT_CHECKED_TYPES)
	week_start: int = DEFAULT_DAY_NUMBER
	max_search_days: int = 365
	conflict_horizon_days: int = 730
	min_period_duration: int = 0
	max_period_duration: int = 0
	allow_overlapping_periods: bool = True
	require_future_dates: bool = False

	def __post_init__(self) -> None:
		object.__setattr__(self, "no_overlap_types", _schedule_types(self.no_overlap_types))
		object.__setattr__(self, "blocking_types", _schedule_types(self.blocking_types))

		# Availability never participates in conflicts
		if ScheduleType.AVAILABILITY in self.no_overlap_types:
			raise InvalidScheduleError.for_field(
				"config.no_overlap_types", "Availability schedules cannot be conflict-checked"
			)
		if not 0 <= self.week_start <= 6:
			raise InvalidScheduleError.for_field("config.week_start", "week_start must be between 0 (Sunday) and 6")
		if self.max_search_days <= 0 or self.conflict_horizon_days <= 0:
			raise InvalidScheduleError.for_field("config", "Search horizons must be positive")

	@classmethod
	def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "SchedulingConfig":
		"""Build from plain settings; unknown keys are rejected."""
		data = dict(data or {})
		known = {f.name for f in fields(cls)}
		unknown = sorted(set(data) - known)
		if unknown:
			raise InvalidScheduleError.for_field("config", f"Unknown setting(s): {', '.join(unknown)}")
		return cls(**data)

	def checks_type(self, schedule_type: ScheduleType) -> bool:
		return schedule_type in self.no_overlap_types

	def blocks_slots(self, schedule_type: ScheduleType) -> bool:
		return schedule_type in self.blocking_types


DEFAULT_CONFIG = SchedulingConfig()
