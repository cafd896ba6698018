"""
Schedule Builder

Fluent construction of Schedule values:

	schedule = (
		ScheduleBuilder(OwnerRef("User", "jane@example.com"))
		.named("Office hours")
		.availability()
		.from_("2025-01-06")
		.weekly(["monday", "wednesday"])
		.add_period("09:00", "12:00")
		.build()
	)

build() parses times, fixes the recurrence anchor to the start date and
returns an immutable Schedule; save() hands it to a ScheduleService.
"""

import copy
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .config import DEFAULT_CONFIG, SchedulingConfig
from .dates import to_date, to_time
from .exceptions import InvalidScheduleError
from .models import Frequency, OwnerRef, Period, Schedule, ScheduleType
from .recurrence import RecurrenceRule, rule_from_config

DateLike = Union[date, datetime, str]


class ScheduleBuilder:
	def __init__(self, owner: OwnerRef):
		self.owner = owner
		self.reset()

	def reset(self) -> "ScheduleBuilder":
		self.attributes: Dict[str, Any] = {}
		self.periods: List[Dict[str, Any]] = []
		self.rules: Dict[str, Dict[str, Any]] = {}
		return self

	def clone(self) -> "ScheduleBuilder":
		clone = ScheduleBuilder(self.owner)
		clone.attributes = copy.deepcopy(self.attributes)
		clone.periods = copy.deepcopy(self.periods)
		clone.rules = copy.deepcopy(self.rules)
		return clone

	# Identity

	def named(self, name: str) -> "ScheduleBuilder":
		self.attributes["name"] = name
		return self

	def description(self, description: str) -> "ScheduleBuilder":
		self.attributes["description"] = description
		return self

	# Dates

	def from_(self, start_date: DateLike) -> "ScheduleBuilder":
		self.attributes["start_date"] = _parse_date(start_date, "start_date")
		return self

	def on(self, start_date: DateLike) -> "ScheduleBuilder":
		"""Alias de from_() para schedules de un solo día."""
		return self.from_(start_date)

	def to(self, end_date: Optional[DateLike]) -> "ScheduleBuilder":
		self.attributes["end_date"] = _parse_date(end_date, "end_date") if end_date else None
		return self

	def between(self, start: DateLike, end: DateLike) -> "ScheduleBuilder":
		return self.from_(start).to(end)

	def for_year(self, year: int) -> "ScheduleBuilder":
		return self.between(date(year, 1, 1), date(year, 12, 31))

	# Periods

	def add_period(
		self,
		start_time,
		end_time,
		period_date: Optional[DateLike] = None,
		is_available: bool = True,
	) -> "ScheduleBuilder":
		self.periods.append(
			{
				"start_time": start_time,
				"end_time": end_time,
				"date": _parse_date(period_date, "periods.date") if period_date else None,
				"is_available": is_available,
			}
		)
		return self

	def add_periods(self, periods: Iterable[Mapping[str, Any]]) -> "ScheduleBuilder":
		for period in periods:
			self.add_period(
				period["start_time"],
				period["end_time"],
				period.get("date"),
				period.get("is_available", True),
			)
		return self

	# Recurrence

	def recurring(
		self,
		frequency: Union[Frequency, str],
		config: Union[RecurrenceRule, Mapping[str, Any], None] = None,
	) -> "ScheduleBuilder":
		rule = rule_from_config(frequency, config)
		self.attributes["is_recurring"] = True
		self.attributes["frequency"] = rule.frequency
		self.attributes["frequency_config"] = rule
		return self

	def daily(self) -> "ScheduleBuilder":
		return self.recurring(Frequency.DAILY)

	def weekly(self, days: Iterable[str] = ()) -> "ScheduleBuilder":
		return self.recurring(Frequency.WEEKLY, {"days": list(days)})

	def weekly_odd(self, days: Iterable[str] = ()) -> "ScheduleBuilder":
		return self.recurring(Frequency.WEEKLY_ODD, {"days": list(days)})

	def weekly_even(self, days: Iterable[str] = ()) -> "ScheduleBuilder":
		return self.recurring(Frequency.WEEKLY_EVEN, {"days": list(days)})

	def biweekly(self, days: Iterable[str] = (), starts_on: Optional[DateLike] = None) -> "ScheduleBuilder":
		return self.recurring(Frequency.BIWEEKLY, {"days": list(days), "starts_on": starts_on})

	def monthly(self, config: Optional[Mapping[str, Any]] = None) -> "ScheduleBuilder":
		return self.recurring(Frequency.MONTHLY, config)

	def bimonthly(self, config: Optional[Mapping[str, Any]] = None) -> "ScheduleBuilder":
		return self.recurring(Frequency.BIMONTHLY, config)

	def quarterly(self, config: Optional[Mapping[str, Any]] = None) -> "ScheduleBuilder":
		return self.recurring(Frequency.QUARTERLY, config)

	def semiannually(self, config: Optional[Mapping[str, Any]] = None) -> "ScheduleBuilder":
		return self.recurring(Frequency.SEMIANNUALLY, config)

	def annually(self, config: Optional[Mapping[str, Any]] = None) -> "ScheduleBuilder":
		return self.recurring(Frequency.ANNUALLY, config)

	# Type

	def type(self, schedule_type: Union[ScheduleType, str]) -> "ScheduleBuilder":
		try:
			self.attributes["schedule_type"] = ScheduleType(schedule_type)
		except ValueError:
			raise InvalidScheduleError(
				f"Invalid schedule type: {schedule_type}. Valid types are: {', '.join(ScheduleType.values())}"
			) from None
		return self

	def availability(self) -> "ScheduleBuilder":
		return self.type(ScheduleType.AVAILABILITY)

	def appointment(self) -> "ScheduleBuilder":
		return self.type(ScheduleType.APPOINTMENT)

	def blocked(self) -> "ScheduleBuilder":
		return self.type(ScheduleType.BLOCKED)

	def custom(self) -> "ScheduleBuilder":
		return self.type(ScheduleType.CUSTOM)

	# Rules

	def with_rule(self, rule_name: str, config: Optional[Mapping[str, Any]] = None) -> "ScheduleBuilder":
		self.rules[rule_name] = dict(config or {})
		return self

	def no_overlap(self) -> "ScheduleBuilder":
		return self.with_rule("no_overlap")

	def working_hours_only(self, start: str = "09:00", end: str = "17:00") -> "ScheduleBuilder":
		return self.with_rule("working_hours", {"start": start, "end": end})

	def max_duration(self, minutes: int) -> "ScheduleBuilder":
		return self.with_rule("max_duration", {"minutes": minutes})

	def no_weekends(self) -> "ScheduleBuilder":
		return self.with_rule("no_weekends")

	# Misc

	def with_metadata(self, metadata: Mapping[str, Any]) -> "ScheduleBuilder":
		merged = dict(self.attributes.get("metadata") or {})
		merged.update(metadata)
		self.attributes["metadata"] = merged
		return self

	def active(self) -> "ScheduleBuilder":
		self.attributes["is_active"] = True
		return self

	def inactive(self) -> "ScheduleBuilder":
		self.attributes["is_active"] = False
		return self

	def build(self, config: Optional[SchedulingConfig] = None) -> Schedule:
		"""
		Construye el Schedule sin persistirlo.

		Raises:
			InvalidScheduleError: sin start_date o con horas mal formateadas
		"""
		config = config or DEFAULT_CONFIG

		start_date = self.attributes.get("start_date")
		if not start_date:
			raise InvalidScheduleError("Start date must be set using from_() method")

		attributes = dict(self.attributes)

		# Fijar el ancla de la recurrencia a start_date
		rule = attributes.get("frequency_config")
		if rule is not None:
			attributes["frequency_config"] = rule.anchored(start_date, config.week_start)

		return Schedule(
			owner=self.owner,
			periods=self._build_periods(),
			rules=copy.deepcopy(self.rules),
			**attributes,
		)

	def save(self, service):
		"""Build and create through a ScheduleService (validation + conflict screening)."""
		return service.create(self.build(service.config))

	def _build_periods(self) -> List[Period]:
		errors: Dict[str, List[str]] = {}
		periods = []

		for index, raw in enumerate(self.periods):
			start_time = _parse_time(raw["start_time"], f"periods.{index}.start_time", "start", "09:30", errors)
			end_time = _parse_time(raw["end_time"], f"periods.{index}.end_time", "end", "17:30", errors)
			if start_time is None or end_time is None:
				continue
			periods.append(
				Period(
					start_time=start_time,
					end_time=end_time,
					date=raw["date"],
					is_available=raw["is_available"],
				)
			)

		if errors:
			raise InvalidScheduleError(errors=errors)

		return periods


def _parse_date(value: DateLike, field: str) -> date:
	try:
		return to_date(value)
	except ValueError as e:
		raise InvalidScheduleError.for_field(field, str(e)) from e


def _parse_time(value, field: str, label: str, example: str, errors: Dict[str, List[str]]):
	try:
		return to_time(value)
	except ValueError:
		errors.setdefault(field, []).append(
			f"Invalid {label} time format '{value}'. Please use HH:MM format (e.g., {example})"
		)
		return None
