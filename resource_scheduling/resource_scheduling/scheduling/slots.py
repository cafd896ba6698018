"""
Slot Generation Service

Generates fixed-duration bookable slots for an owner, considering:
- Availability windows of the day
- Buffer minutes between consecutive slots
- Blocking schedules (Appointment / Blocked by default) occurring on the day
"""

from datetime import date, datetime, time, timedelta
from typing import List, Optional, Union

from .availability import get_availability_windows, times_overlap
from .config import DEFAULT_CONFIG, SchedulingConfig
from .dates import to_date, to_datetime
from .models import BookableSlot, OwnerRef, Period, Schedule
from .occurrence import occurs_on, periods_on
from .store import ScheduleFilters, ScheduleStore


def get_bookable_slots(
	store: ScheduleStore,
	owner: OwnerRef,
	target_date: Union[date, str],
	slot_duration_minutes: int,
	buffer_minutes: int = 0,
	config: Optional[SchedulingConfig] = None,
) -> List[BookableSlot]:
	"""
	Genera los slots reservables de un owner para un día.

	Args:
		store: colaborador de persistencia
		owner: owner de los schedules
		target_date: fecha objetivo
		slot_duration_minutes: duración de cada slot
		buffer_minutes: espacio entre el fin de un slot y el inicio del siguiente
		config: política de tipos bloqueantes

	Returns:
		list[BookableSlot]: ordenados cronológicamente; los slots bloqueados
		se emiten con is_available=False

	Algoritmo:
		1. Obtener ventanas de Availability para la fecha
		2. Cortar slots de slot_duration_minutes cada (duración + buffer)
		3. Marcar cada slot contra los periods de schedules bloqueantes
	"""
	if slot_duration_minutes <= 0:
		return []

	config = config or DEFAULT_CONFIG
	target_date = to_date(target_date)
	buffer_minutes = max(buffer_minutes or 0, 0)

	filters = ScheduleFilters(active_only=True, date_from=target_date, date_to=target_date)
	schedules = store.load_schedules_for_owner(owner, filters)

	# 1. Ventanas de disponibilidad
	windows = get_availability_windows(schedules, target_date, config.week_start)
	if not windows:
		return []

	# 2. Periods bloqueantes del día
	blocked = _blocking_periods(schedules, target_date, config)

	slot_length = timedelta(minutes=slot_duration_minutes)
	step = timedelta(minutes=slot_duration_minutes + buffer_minutes)

	slots = []

	# 3. Para cada ventana, generar slots discretos
	for window in windows:
		window_end = datetime.combine(target_date, window["end"])
		current_slot_start = datetime.combine(target_date, window["start"])

		while current_slot_start < window_end:
			current_slot_end = current_slot_start + slot_length

			# Sin slot parcial al final de la ventana
			if current_slot_end > window_end:
				break

			start_time = current_slot_start.time()
			end_time = current_slot_end.time()

			slots.append(
				BookableSlot(
					start_time=start_time,
					end_time=end_time,
					is_available=not _is_blocked(start_time, end_time, blocked),
					buffer_minutes=buffer_minutes,
				)
			)

			current_slot_start += step

	return slots


def get_next_bookable_slot(
	store: ScheduleStore,
	owner: OwnerRef,
	after: Union[date, datetime, str, None] = None,
	duration_minutes: int = 60,
	buffer_minutes: int = 0,
	config: Optional[SchedulingConfig] = None,
) -> Optional[BookableSlot]:
	"""
	Busca el primer slot disponible a partir de `after`.

	Un `after` con hora excluye los slots del primer día que empiezan antes.
	Retorna None si no hay slot en config.max_search_days días.
	"""
	if duration_minutes <= 0:
		return None

	config = config or DEFAULT_CONFIG

	not_before: Optional[time] = None
	if after is None:
		first_day = date.today()
	elif isinstance(after, date) and not isinstance(after, datetime):
		first_day = after
	else:
		# datetime or "YYYY-MM-DD[ HH:MM]"; midnight excludes nothing
		after = to_datetime(after)
		first_day = after.date()
		not_before = after.time()

	for offset in range(config.max_search_days):
		day = first_day + timedelta(days=offset)

		for slot in get_bookable_slots(store, owner, day, duration_minutes, buffer_minutes, config):
			if not slot.is_available:
				continue
			if offset == 0 and not_before is not None and slot.start_time < not_before:
				continue
			return BookableSlot(
				start_time=slot.start_time,
				end_time=slot.end_time,
				is_available=True,
				buffer_minutes=slot.buffer_minutes,
				date=day,
			)

	return None


def is_bookable_at(
	store: ScheduleStore,
	owner: OwnerRef,
	target_date: Union[date, str],
	duration_minutes: int,
	config: Optional[SchedulingConfig] = None,
) -> bool:
	"""True when at least one available slot of `duration_minutes` exists on the date."""
	slots = get_bookable_slots(store, owner, target_date, duration_minutes, config=config)
	return any(slot.is_available for slot in slots)


def is_bookable_at_time(
	store: ScheduleStore,
	owner: OwnerRef,
	target_date: Union[date, str],
	start_time: time,
	end_time: time,
	config: Optional[SchedulingConfig] = None,
) -> bool:
	"""True when [start_time, end_time) fits inside an available slot of its own length."""
	if end_time <= start_time:
		return False

	target_date = to_date(target_date)
	duration = datetime.combine(target_date, end_time) - datetime.combine(target_date, start_time)
	duration_minutes = int(duration.total_seconds() // 60)

	for slot in get_bookable_slots(store, owner, target_date, duration_minutes, config=config):
		if slot.is_available and slot.start_time <= start_time and end_time <= slot.end_time:
			return True

	return False


def _blocking_periods(schedules: List[Schedule], target_date: date, config: SchedulingConfig) -> List[Period]:
	periods = []
	for schedule in schedules:
		if not config.blocks_slots(schedule.schedule_type):
			continue
		if not occurs_on(schedule, target_date, config.week_start):
			continue
		periods.extend(periods_on(schedule, target_date))
	return periods


def _is_blocked(start_time: time, end_time: time, blocked: List[Period]) -> bool:
	return any(times_overlap(start_time, end_time, p.start_time, p.end_time) for p in blocked)
