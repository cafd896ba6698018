"""
Scheduling Data Model

Plain value objects consumed by the scheduling engine:
- OwnerRef: the schedulable entity (document type + name)
- Schedule / Period: declared time ownership
- BookableSlot: derived, never persisted
"""

from dataclasses import dataclass, field
from datetime import date, time
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Tuple

from .dates import format_time, minutes_between

if TYPE_CHECKING:
	from .recurrence import RecurrenceRule


class ScheduleType(str, Enum):
	AVAILABILITY = "availability"
	APPOINTMENT = "appointment"
	BLOCKED = "blocked"
	CUSTOM = "custom"

	@classmethod
	def values(cls) -> Tuple[str, ...]:
		return tuple(member.value for member in cls)


class Frequency(str, Enum):
	DAILY = "daily"
	WEEKLY = "weekly"
	WEEKLY_ODD = "weekly_odd"
	WEEKLY_EVEN = "weekly_even"
	BIWEEKLY = "biweekly"
	MONTHLY = "monthly"
	BIMONTHLY = "bimonthly"
	QUARTERLY = "quarterly"
	SEMIANNUALLY = "semiannually"
	ANNUALLY = "annually"


@dataclass(frozen=True)
class OwnerRef:
	"""Opaque reference to the entity owning a schedule (e.g. "User", "jane@example.com")."""

	owner_type: str
	owner_id: str

	def __str__(self) -> str:
		return f"{self.owner_type}:{self.owner_id}"


@dataclass(frozen=True)
class Period:
	start_time: time
	end_time: time
	date: Optional[date] = None
	is_available: bool = True

	@property
	def duration_minutes(self) -> int:
		return minutes_between(self.start_time, self.end_time)

	def overlaps(self, other: "Period") -> bool:
		return self.start_time < other.end_time and other.start_time < self.end_time

	def label(self) -> str:
		return f"{format_time(self.start_time)}-{format_time(self.end_time)}"


@dataclass(frozen=True)
class Schedule:
	"""
	Named, typed, optionally recurring declaration of time ownership.

	Instances are immutable; updates produce a new value via dataclasses.replace.
	"""

	owner: OwnerRef
	start_date: date
	name: str = ""
	schedule_type: ScheduleType = ScheduleType.CUSTOM
	end_date: Optional[date] = None
	description: Optional[str] = None
	is_recurring: bool = False
	frequency: Optional[Frequency] = None
	frequency_config: Optional["RecurrenceRule"] = None
	is_active: bool = True
	metadata: Mapping[str, Any] = field(default_factory=dict)
	periods: Tuple[Period, ...] = ()
	rules: Mapping[str, Dict[str, Any]] = field(default_factory=dict)
	id: Optional[str] = None

	def __post_init__(self) -> None:
		# Accept plain strings and lists from callers and stores
		object.__setattr__(self, "schedule_type", ScheduleType(self.schedule_type))
		if self.frequency is not None:
			object.__setattr__(self, "frequency", Frequency(self.frequency))
		object.__setattr__(self, "periods", tuple(self.periods))

	@property
	def is_availability(self) -> bool:
		return self.schedule_type == ScheduleType.AVAILABILITY

	def has_rule(self, rule_name: str) -> bool:
		return rule_name in self.rules

	def covers(self, value: date) -> bool:
		"""True when `value` falls inside [start_date, end_date]; an absent end_date is unbounded."""
		if value < self.start_date:
			return False
		return self.end_date is None or value <= self.end_date

	def period_date(self, period: Period) -> date:
		return period.date or self.start_date


@dataclass(frozen=True)
class BookableSlot:
	start_time: time
	end_time: time
	is_available: bool
	buffer_minutes: int = 0
	date: Optional[date] = None

	@property
	def duration_minutes(self) -> int:
		return minutes_between(self.start_time, self.end_time)

	def to_dict(self) -> Dict[str, Any]:
		data = {
			"start_time": format_time(self.start_time),
			"end_time": format_time(self.end_time),
			"is_available": self.is_available,
			"buffer_minutes": self.buffer_minutes,
		}
		if self.date is not None:
			data["date"] = self.date.isoformat()
		return data
