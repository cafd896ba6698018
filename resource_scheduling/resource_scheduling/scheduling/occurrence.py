"""
Occurrence Resolver

Decides on which calendar dates a schedule is active and which of its
periods apply on a given date.
"""

from datetime import date
from typing import Iterator, List

from .dates import DEFAULT_DAY_NUMBER
from .models import Period, Schedule


def occurs_on(schedule: Schedule, target_date: date, week_start: int = DEFAULT_DAY_NUMBER) -> bool:
	"""
	Indica si el schedule está activo en la fecha.

	Args:
		schedule: Schedule a evaluar
		target_date: fecha objetivo
		week_start: primer día de la semana para anclar reglas bi-semanales sin ancla

	Returns:
		bool: False si está inactivo o fuera de [start_date, end_date];
		para no recurrentes, True sólo en start_date; para recurrentes,
		lo decide la regla de recurrencia
	"""
	if not schedule.is_active:
		return False

	if not schedule.covers(target_date):
		return False

	if not schedule.is_recurring:
		return target_date == schedule.start_date

	rule = schedule.frequency_config.anchored(schedule.start_date, week_start)
	return rule.matches_schedule(schedule, target_date)


def periods_on(schedule: Schedule, target_date: date) -> List[Period]:
	"""
	Periods that apply on a date the schedule occurs on.

	Recurring periods apply on every occurrence; non-recurring periods only on
	their own date (defaulting to the schedule's start date).
	"""
	if schedule.is_recurring:
		return list(schedule.periods)
	return [p for p in schedule.periods if schedule.period_date(p) == target_date]


def iter_occurrences(
	schedule: Schedule,
	start: date,
	end: date,
	week_start: int = DEFAULT_DAY_NUMBER,
) -> Iterator[date]:
	"""
	Ascending occurrence dates of `schedule` within [start, end].

	Non-recurring schedules yield at most their start date.
	"""
	start = max(start, schedule.start_date)
	if schedule.end_date is not None:
		end = min(end, schedule.end_date)
	if start > end or not schedule.is_active:
		return

	if not schedule.is_recurring:
		if start <= schedule.start_date <= end:
			yield schedule.start_date
		return

	rule = schedule.frequency_config.for_schedule(schedule, week_start)
	current = start

	while current <= end:
		if occurs_on(schedule, current, week_start):
			yield current
		current = rule.next_occurrence(current)
