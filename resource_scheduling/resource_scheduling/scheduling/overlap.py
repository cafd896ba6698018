"""
Overlap Detection Service

Detects scheduling conflicts between schedules of the same owner, considering:
- Type policy (Availability never conflicts; no_overlap types from config)
- Explicit no_overlap rules
- Shared occurrence dates of recurring and one-off schedules
- Half-open time overlap of their periods
"""

from datetime import date, timedelta
from typing import Iterable, List, Optional

from .availability import times_overlap
from .config import DEFAULT_CONFIG, SchedulingConfig
from .models import Period, Schedule
from .occurrence import iter_occurrences, occurs_on, periods_on
from .store import ScheduleFilters, ScheduleStore

NO_OVERLAP_RULE = "no_overlap"


def is_conflict_checked(schedule: Schedule, config: SchedulingConfig = DEFAULT_CONFIG) -> bool:
	"""Availability never; otherwise by type policy or an explicit no_overlap rule."""
	if schedule.is_availability:
		return False
	return config.checks_type(schedule.schedule_type) or schedule.has_rule(NO_OVERLAP_RULE)


def find_conflicts(
	store: ScheduleStore,
	schedule: Schedule,
	config: Optional[SchedulingConfig] = None,
) -> List[Schedule]:
	"""
	Detecta schedules del mismo owner que se solapan con `schedule`.

	Args:
		store: colaborador de persistencia
		schedule: schedule candidato (persistido o no)
		config: política de tipos y horizontes

	Returns:
		list[Schedule]: conflictos en orden de descubrimiento, sin duplicados

	Algoritmo:
		1. Si el candidato no es conflict-checked, retornar []
		2. Cargar schedules activos del owner cuyo rango de fechas intersecta
		3. Filtrar por política (con regla no_overlap explícita: todos menos Availability)
		4. Para cada fecha en que ambos ocurren, comparar periods
	"""
	config = config or DEFAULT_CONFIG

	if not is_conflict_checked(schedule, config):
		return []

	explicit_rule = schedule.has_rule(NO_OVERLAP_RULE)

	filters = ScheduleFilters(
		active_only=True,
		date_from=schedule.start_date,
		date_to=schedule.end_date,
		exclude_id=schedule.id,
	)

	conflicts = []

	for other in store.load_schedules_for_owner(schedule.owner, filters):
		if other is schedule or other.is_availability:
			continue

		if not explicit_rule and not is_conflict_checked(other, config):
			continue

		if schedules_overlap(schedule, other, config):
			conflicts.append(other)

	return conflicts


def has_conflicts(
	store: ScheduleStore,
	schedule: Schedule,
	config: Optional[SchedulingConfig] = None,
) -> bool:
	return bool(find_conflicts(store, schedule, config))


def schedules_overlap(a: Schedule, b: Schedule, config: SchedulingConfig = DEFAULT_CONFIG) -> bool:
	"""True when `a` and `b` share an occurrence date on which any of their periods overlap."""
	start = max(a.start_date, b.start_date)
	end = _earliest_end(a, b)

	if end is None:
		end = start + timedelta(days=config.conflict_horizon_days)

	if start > end:
		return False

	# Walk the sparser schedule; a one-off schedule has at most one date
	driver, follower = (a, b) if not a.is_recurring or b.is_recurring else (b, a)

	for day in iter_occurrences(driver, start, end, config.week_start):
		if not occurs_on(follower, day, config.week_start):
			continue
		if _any_period_overlap(periods_on(a, day), periods_on(b, day)):
			return True

	return False


def _earliest_end(a: Schedule, b: Schedule) -> Optional[date]:
	ends = [s.end_date for s in (a, b) if s.end_date is not None]
	return min(ends) if ends else None


def _any_period_overlap(periods_a: Iterable[Period], periods_b: Iterable[Period]) -> bool:
	periods_b = list(periods_b)
	for period_a in periods_a:
		for period_b in periods_b:
			if times_overlap(period_a.start_time, period_a.end_time, period_b.start_time, period_b.end_time):
				return True
	return False
