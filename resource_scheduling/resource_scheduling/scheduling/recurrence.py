"""
Recurrence Rules

One rule per Frequency. Every rule answers:
- matches(date): does the date produce an occurrence?
- matches_schedule(schedule, date): same, defaulting missing parameters from the schedule
- next_occurrence(date): first occurrence strictly after the date
- anchored(start_date): copy with its cycle anchor fixed (cycle-based rules only)

Rules are frozen value objects; anchoring returns a new rule and never
overwrites an anchor supplied at construction.
"""

from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from .dates import (
	DEFAULT_DAY_NUMBER,
	add_months,
	day_numbers,
	day_of_week,
	days_in_month,
	is_even_iso_week,
	is_odd_iso_week,
	next_week_even,
	next_week_odd,
	start_of_week,
	to_date,
	weeks_between,
)
from .exceptions import InvalidScheduleError
from .models import Frequency

ONE_DAY = timedelta(days=1)

# Cycles a month-based search may skip when none of the configured days exist
# in the target month (e.g. days_of_month=[30, 31] reaching February).
MAX_MONTH_CYCLES = 24


def _search_forward(current: date, predicate: Callable[[date], bool], max_days: int) -> date:
	"""Walk day by day after `current` until `predicate` holds or `max_days` is exceeded."""
	candidate = current + ONE_DAY
	while not predicate(candidate):
		candidate += ONE_DAY
		if (candidate - current).days > max_days:
			break
	return candidate


def _normalize_days(days: Any, config_name: str) -> Tuple[str, ...]:
	if not isinstance(days, (list, tuple)):
		raise InvalidScheduleError.for_field(
			"frequency_config.days", f"'days' must be a list of weekday names in {config_name}"
		)
	return tuple(str(day).strip().lower() for day in days)


def _normalize_days_of_month(data: Mapping[str, Any], config_name: str) -> Optional[Tuple[int, ...]]:
	data = dict(data)
	if "day_of_month" in data and "days_of_month" not in data:
		data["days_of_month"] = [data.pop("day_of_month")]

	days = data.get("days_of_month")
	if days is None:
		return None
	if isinstance(days, int):
		days = [days]
	if not isinstance(days, (list, tuple)) or not days:
		raise InvalidScheduleError.for_field(
			"frequency_config.days_of_month", f"'days_of_month' must be a non-empty list in {config_name}"
		)

	normalized = []
	for raw_day in days:
		try:
			day = int(raw_day)
		except (TypeError, ValueError):
			day = 0
		if not 1 <= day <= 31:
			raise InvalidScheduleError.for_field(
				"frequency_config.days_of_month", f"Invalid day of month '{raw_day}' in {config_name}. Use 1-31"
			)
		normalized.append(day)
	return tuple(sorted(set(normalized)))


class RecurrenceRule:
	"""Shared interface of all recurrence rules."""

	frequency: Frequency

	@classmethod
	def from_dict(cls, data: Mapping[str, Any]) -> "RecurrenceRule":
		raise NotImplementedError

	def to_dict(self) -> Dict[str, Any]:
		return {}

	def matches(self, value: date) -> bool:
		raise NotImplementedError

	def matches_schedule(self, schedule, value: date) -> bool:
		return self.matches(value)

	def next_occurrence(self, current: date) -> date:
		raise NotImplementedError

	def anchored(self, start_date: date, week_start: int = DEFAULT_DAY_NUMBER) -> "RecurrenceRule":
		return self

	def for_schedule(self, schedule, week_start: int = DEFAULT_DAY_NUMBER) -> "RecurrenceRule":
		"""Rule with every schedule-derived default resolved, for walking occurrences."""
		return self.anchored(schedule.start_date, week_start)


@dataclass(frozen=True)
class DailyRule(RecurrenceRule):
	frequency = Frequency.DAILY

	@classmethod
	def from_dict(cls, data: Mapping[str, Any]) -> "DailyRule":
		return cls()

	def matches(self, value: date) -> bool:
		return True

	def next_occurrence(self, current: date) -> date:
		return current + ONE_DAY


@dataclass(frozen=True)
class WeeklyRule(RecurrenceRule):
	days: Tuple[str, ...] = ()

	frequency = Frequency.WEEKLY
	search_days = 7

	def __post_init__(self) -> None:
		object.__setattr__(self, "days", tuple(day.lower() for day in self.days))

	@classmethod
	def from_dict(cls, data: Mapping[str, Any]):
		if "days" not in data:
			raise InvalidScheduleError.for_field(
				"frequency_config.days", f"Missing 'days' key in {cls.__name__} data"
			)
		return cls(days=_normalize_days(data["days"], cls.__name__))

	def to_dict(self) -> Dict[str, Any]:
		return {"days": list(self.days)}

	def allows_day(self, value: date) -> bool:
		"""Weekday membership; an empty day list allows every day."""
		return not self.days or day_of_week(value) in day_numbers(self.days)

	def matches(self, value: date) -> bool:
		return self.allows_day(value)

	def next_occurrence(self, current: date) -> date:
		return _search_forward(current, self.matches, self.search_days)


class _WeekParityRule(WeeklyRule):
	"""Weekly rule restricted to odd or even ISO weeks."""

	# 21 days covers ISO years with 53 weeks, where two odd weeks are adjacent.
	search_days = 21

	def week_matches(self, value: date) -> bool:
		raise NotImplementedError

	def next_matching_week(self, value: date) -> date:
		raise NotImplementedError

	def matches(self, value: date) -> bool:
		return self.week_matches(value) and self.allows_day(value)

	def next_occurrence(self, current: date) -> date:
		candidate = current + ONE_DAY
		limit = current + timedelta(days=self.search_days)

		while not self.matches(candidate) and candidate <= limit:
			if self.week_matches(candidate):
				candidate += ONE_DAY
			else:
				# ISO weeks start on Monday
				candidate = start_of_week(self.next_matching_week(candidate), DEFAULT_DAY_NUMBER)

		return candidate


@dataclass(frozen=True)
class WeeklyOddRule(_WeekParityRule):
	frequency = Frequency.WEEKLY_ODD

	def week_matches(self, value: date) -> bool:
		return is_odd_iso_week(value)

	def next_matching_week(self, value: date) -> date:
		return next_week_odd(value)


@dataclass(frozen=True)
class WeeklyEvenRule(_WeekParityRule):
	frequency = Frequency.WEEKLY_EVEN

	def week_matches(self, value: date) -> bool:
		return is_even_iso_week(value)

	def next_matching_week(self, value: date) -> date:
		return next_week_even(value)


@dataclass(frozen=True)
class BiWeeklyRule(WeeklyRule):
	"""
	Every other week, counted from the week containing `starts_on`.

	`starts_on` is normalised to the first day of its week (`week_start`,
	Sunday-based, Monday by default).
	"""

	starts_on: Optional[date] = None
	week_start: int = DEFAULT_DAY_NUMBER

	frequency = Frequency.BIWEEKLY
	search_days = 28

	def __post_init__(self) -> None:
		super().__post_init__()
		if self.starts_on is not None:
			object.__setattr__(self, "starts_on", start_of_week(to_date(self.starts_on), self.week_start))

	@classmethod
	def from_dict(cls, data: Mapping[str, Any]) -> "BiWeeklyRule":
		if "days" not in data:
			raise InvalidScheduleError.for_field(
				"frequency_config.days", f"Missing 'days' key in {cls.__name__} data"
			)
		starts_on = data.get("starts_on", data.get("startsOn"))
		try:
			starts_on = to_date(starts_on) if starts_on else None
		except ValueError as e:
			raise InvalidScheduleError.for_field("frequency_config.starts_on", str(e)) from e
		return cls(
			days=_normalize_days(data["days"], cls.__name__),
			starts_on=starts_on,
			week_start=int(data.get("week_start", DEFAULT_DAY_NUMBER)),
		)

	def to_dict(self) -> Dict[str, Any]:
		return {
			"days": list(self.days),
			"starts_on": self.starts_on.isoformat() if self.starts_on else None,
			"week_start": self.week_start,
		}

	def anchored(self, start_date: date, week_start: int = DEFAULT_DAY_NUMBER) -> "BiWeeklyRule":
		if self.starts_on is not None:
			return self
		return replace(self, starts_on=start_date, week_start=week_start)

	def _anchor_for(self, value: date) -> date:
		return self.starts_on or start_of_week(value, self.week_start)

	def matches(self, value: date) -> bool:
		return self.allows_day(value) and weeks_between(self._anchor_for(value), value) % 2 == 0

	def next_occurrence(self, current: date) -> date:
		anchor = self._anchor_for(current)
		return _search_forward(
			current,
			lambda candidate: self.allows_day(candidate) and weeks_between(anchor, candidate) % 2 == 0,
			self.search_days,
		)


@dataclass(frozen=True)
class MonthlyRule(RecurrenceRule):
	"""
	Fixed days of every month. Without `days_of_month` the schedule's start day is used.

	Days that do not exist in a given month (e.g. 31 in April) are skipped for that month.
	"""

	days_of_month: Optional[Tuple[int, ...]] = None

	frequency = Frequency.MONTHLY
	month_step = 1

	@classmethod
	def from_dict(cls, data: Mapping[str, Any]) -> "MonthlyRule":
		return cls(days_of_month=_normalize_days_of_month(data, cls.__name__))

	def to_dict(self) -> Dict[str, Any]:
		return {"days_of_month": list(self.days_of_month) if self.days_of_month else None}

	def for_schedule(self, schedule, week_start: int = DEFAULT_DAY_NUMBER) -> "MonthlyRule":
		rule = self.anchored(schedule.start_date, week_start)
		if rule.days_of_month is None:
			rule = replace(rule, days_of_month=(schedule.start_date.day,))
		return rule

	def _days(self, fallback: date) -> Tuple[int, ...]:
		return self.days_of_month or (fallback.day,)

	def _in_cycle(self, value: date) -> bool:
		return True

	def matches(self, value: date) -> bool:
		return value.day in self._days(value) and self._in_cycle(value)

	def matches_schedule(self, schedule, value: date) -> bool:
		return value.day in self._days(schedule.start_date) and self._in_cycle(value)

	def _months_to_next_cycle(self, current: date) -> int:
		return self.month_step

	def next_occurrence(self, current: date) -> date:
		days = self._days(current)

		if self._in_cycle(current):
			month_length = days_in_month(current.year, current.month)
			later = [day for day in days if current.day < day <= month_length]
			if later:
				return current.replace(day=later[0])

		month_start = add_months(current.replace(day=1), self._months_to_next_cycle(current))
		for _ in range(MAX_MONTH_CYCLES):
			month_length = days_in_month(month_start.year, month_start.month)
			existing = [day for day in days if day <= month_length]
			if existing:
				return month_start.replace(day=existing[0])
			month_start = add_months(month_start, self.month_step)

		return month_start


@dataclass(frozen=True)
class _MonthCycleRule(MonthlyRule):
	"""Days of month repeated every `month_step` months, counted from `start_month`."""

	start_month: Optional[int] = None

	def __post_init__(self) -> None:
		if self.start_month is not None and not 1 <= int(self.start_month) <= 12:
			raise InvalidScheduleError.for_field(
				"frequency_config.start_month", f"Invalid start month '{self.start_month}'. Use 1-12"
			)

	@classmethod
	def from_dict(cls, data: Mapping[str, Any]):
		if data.get("days_of_month") is None and data.get("day_of_month") is None:
			raise InvalidScheduleError.for_field(
				"frequency_config.days_of_month", f"Missing 'days_of_month' key in {cls.__name__} data"
			)
		start_month = data.get("start_month")
		try:
			start_month = int(start_month) if start_month is not None else None
		except (TypeError, ValueError):
			raise InvalidScheduleError.for_field(
				"frequency_config.start_month", f"Invalid start month '{start_month}'. Use 1-12"
			) from None
		return cls(
			days_of_month=_normalize_days_of_month(data, cls.__name__),
			start_month=start_month,
		)

	def to_dict(self) -> Dict[str, Any]:
		data = super().to_dict()
		data["start_month"] = self.start_month
		return data

	def anchored(self, start_date: date, week_start: int = DEFAULT_DAY_NUMBER):
		if self.start_month is not None:
			return self
		return replace(self, start_month=start_date.month)

	def _cycle_offset(self, value: date) -> int:
		start_month = self.start_month or value.month
		return (value.month - start_month) % self.month_step

	def _in_cycle(self, value: date) -> bool:
		return self._cycle_offset(value) == 0

	def _months_to_next_cycle(self, current: date) -> int:
		return self.month_step - self._cycle_offset(current)


@dataclass(frozen=True)
class BiMonthlyRule(_MonthCycleRule):
	frequency = Frequency.BIMONTHLY
	month_step = 2


@dataclass(frozen=True)
class QuarterlyRule(_MonthCycleRule):
	frequency = Frequency.QUARTERLY
	month_step = 3


@dataclass(frozen=True)
class SemiAnnuallyRule(_MonthCycleRule):
	frequency = Frequency.SEMIANNUALLY
	month_step = 6


@dataclass(frozen=True)
class AnnuallyRule(_MonthCycleRule):
	frequency = Frequency.ANNUALLY
	month_step = 12


RULES = {
	Frequency.DAILY: DailyRule,
	Frequency.WEEKLY: WeeklyRule,
	Frequency.WEEKLY_ODD: WeeklyOddRule,
	Frequency.WEEKLY_EVEN: WeeklyEvenRule,
	Frequency.BIWEEKLY: BiWeeklyRule,
	Frequency.MONTHLY: MonthlyRule,
	Frequency.BIMONTHLY: BiMonthlyRule,
	Frequency.QUARTERLY: QuarterlyRule,
	Frequency.SEMIANNUALLY: SemiAnnuallyRule,
	Frequency.ANNUALLY: AnnuallyRule,
}


def parse_frequency(frequency: Union[Frequency, str]) -> Frequency:
	try:
		return Frequency(frequency)
	except ValueError:
		valid = ", ".join(member.value for member in Frequency)
		raise InvalidScheduleError.for_field(
			"frequency", f"Unsupported frequency '{frequency}'. Valid frequencies are: {valid}"
		) from None


def rule_from_config(
	frequency: Union[Frequency, str],
	config: Union[RecurrenceRule, Mapping[str, Any], None] = None,
) -> RecurrenceRule:
	"""
	Build the rule for a frequency tag.

	Args:
		frequency: Frequency or its string value
		config: stored parameters, or an already-built rule

	Returns:
		RecurrenceRule of the variant matching `frequency`

	Raises:
		InvalidScheduleError: unknown frequency, wrong rule variant or malformed parameters
	"""
	frequency = parse_frequency(frequency)
	rule_class = RULES[frequency]

	if isinstance(config, RecurrenceRule):
		if type(config) is not rule_class:
			raise InvalidScheduleError.for_field(
				"frequency_config",
				f"Invalid config class for frequency {frequency.value}. Expected {rule_class.__name__}",
			)
		return config

	return rule_class.from_dict(config or {})
