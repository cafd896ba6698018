"""
Schedule Validation

Checks a Schedule before it is committed. Every error is collected and
reported at once through InvalidScheduleError, keyed by field path
("start_date", "periods.0.end_time", ...).
"""

from datetime import date
from typing import Dict, List, Optional

from .config import DEFAULT_CONFIG, SchedulingConfig
from .dates import day_of_week, format_time, to_time
from .exceptions import InvalidScheduleError
from .models import Period, Schedule
from .recurrence import RULES

KNOWN_RULES = ("no_overlap", "working_hours", "max_duration", "no_weekends")

WEEKEND_DAYS = (0, 6)  # Sunday, Saturday


def validate_schedule(
	schedule: Schedule,
	config: Optional[SchedulingConfig] = None,
	today: Optional[date] = None,
) -> None:
	"""
	Valida un schedule completo.

	Args:
		schedule: schedule a validar
		config: reglas de validación globales (duraciones, solapamiento, fechas futuras)
		today: fecha de referencia para require_future_dates (default: hoy)

	Raises:
		InvalidScheduleError: con todos los errores encontrados
	"""
	config = config or DEFAULT_CONFIG
	errors: Dict[str, List[str]] = {}

	_validate_dates(schedule, config, today or date.today(), errors)
	_validate_recurrence(schedule, errors)
	_validate_rule_names(schedule, errors)

	if not schedule.periods:
		_add(errors, "periods", "At least one period is required")

	for index, period in enumerate(schedule.periods):
		_validate_period(schedule, index, period, config, errors)

	if not config.allow_overlapping_periods:
		_validate_period_overlaps(schedule, errors)

	if errors:
		raise InvalidScheduleError(errors=errors)


def _add(errors: Dict[str, List[str]], field: str, message: str) -> None:
	errors.setdefault(field, []).append(message)


def _validate_dates(schedule: Schedule, config: SchedulingConfig, today: date, errors) -> None:
	if config.require_future_dates and schedule.start_date < today:
		_add(errors, "start_date", "The schedule cannot be created in the past. Please choose a future date")

	if schedule.end_date is not None and schedule.end_date < schedule.start_date:
		_add(errors, "end_date", "End date must be after or equal to start date")

	if schedule.has_rule("no_weekends") and day_of_week(schedule.start_date) in WEEKEND_DAYS:
		_add(
			errors,
			"start_date",
			f"Schedule cannot start on {schedule.start_date:%A}. Weekend schedules are not allowed",
		)


def _validate_recurrence(schedule: Schedule, errors) -> None:
	if not schedule.is_recurring:
		return

	if schedule.frequency is None:
		_add(errors, "frequency", "Recurring schedules require a frequency")
		return

	rule_class = RULES[schedule.frequency]
	if type(schedule.frequency_config) is not rule_class:
		_add(
			errors,
			"frequency_config",
			f"Invalid config class for frequency {schedule.frequency.value}. Expected {rule_class.__name__}",
		)


def _validate_rule_names(schedule: Schedule, errors) -> None:
	for rule_name in schedule.rules:
		if rule_name not in KNOWN_RULES:
			_add(errors, f"rules.{rule_name}", f"Unknown rule '{rule_name}'. Valid rules are: {', '.join(KNOWN_RULES)}")


def _validate_period(schedule: Schedule, index: int, period: Period, config: SchedulingConfig, errors) -> None:
	prefix = f"periods.{index}"

	if period.end_time <= period.start_time:
		_add(
			errors,
			f"{prefix}.end_time",
			f"End time ({format_time(period.end_time)}) must be after start time ({format_time(period.start_time)})",
		)
		return

	duration = period.duration_minutes

	if config.min_period_duration and duration < config.min_period_duration:
		_add(
			errors,
			f"{prefix}.duration",
			f"Period is too short ({duration} minutes). Minimum duration is {config.min_period_duration} minutes",
		)

	if config.max_period_duration and duration > config.max_period_duration:
		_add(
			errors,
			f"{prefix}.duration",
			f"Period is too long ({duration} minutes). Maximum duration is {config.max_period_duration} minutes",
		)

	if schedule.has_rule("working_hours"):
		_validate_working_hours(schedule.rules["working_hours"], prefix, period, errors)

	if schedule.has_rule("max_duration"):
		_validate_max_duration(schedule.rules["max_duration"], prefix, period, errors)

	if schedule.has_rule("no_weekends") and not schedule.is_recurring:
		period_date = schedule.period_date(period)
		if day_of_week(period_date) in WEEKEND_DAYS:
			_add(
				errors,
				f"{prefix}.date",
				f"Period cannot be scheduled on {period_date:%A}. Weekend periods are not allowed",
			)


def _validate_working_hours(rule: dict, prefix: str, period: Period, errors) -> None:
	try:
		start = to_time((rule or {}).get("start", "09:00"))
		end = to_time((rule or {}).get("end", "17:00"))
	except ValueError as e:
		_add(errors, "rules.working_hours", str(e))
		return

	if period.start_time < start or period.end_time > end:
		_add(
			errors,
			f"{prefix}.working_hours",
			f"Period {period.label()} is outside working hours ({format_time(start)}-{format_time(end)})",
		)


def _validate_max_duration(rule: dict, prefix: str, period: Period, errors) -> None:
	try:
		limit = int((rule or {})["minutes"])
	except (KeyError, TypeError, ValueError):
		_add(errors, "rules.max_duration", "max_duration rule requires an integer 'minutes' value")
		return

	if period.duration_minutes > limit:
		_add(
			errors,
			f"{prefix}.max_duration",
			f"Period {period.label()} is too long ({_hours(period.duration_minutes)} hours). "
			f"Maximum allowed is {_hours(limit)} hours",
		)


def _hours(minutes: int) -> str:
	hours = round(minutes / 60, 1)
	return f"{hours:g}"


def _validate_period_overlaps(schedule: Schedule, errors) -> None:
	periods = schedule.periods
	for i, first in enumerate(periods):
		for j in range(i + 1, len(periods)):
			second = periods[j]
			if not schedule.is_recurring and schedule.period_date(first) != schedule.period_date(second):
				continue
			if first.overlaps(second):
				_add(
					errors,
					f"periods.{i}.overlap",
					f"Period {i} ({first.label()}) overlaps with period {j} ({second.label()})",
				)
