"""
Date Helpers

Calendar arithmetic shared by the recurrence rules and the slot generator:
- Weekday names to numbers (Sunday=0 ... Saturday=6)
- ISO week parity and week jumps
- Month arithmetic
- Parsing of dates and wall-clock times
"""

from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Union

from dateutil import parser
from dateutil.relativedelta import relativedelta


DAY_NUMBERS = {
	"sunday": 0,
	"monday": 1,
	"tuesday": 2,
	"wednesday": 3,
	"thursday": 4,
	"friday": 5,
	"saturday": 6,
}

DEFAULT_DAY_NUMBER = 1  # Monday


def day_number(day_name: str) -> int:
	"""Sunday-based number of a weekday name. Unknown names map to Monday."""
	return DAY_NUMBERS.get(str(day_name).strip().lower(), DEFAULT_DAY_NUMBER)


def day_numbers(day_names: Iterable[str]) -> List[int]:
	return [day_number(name) for name in day_names]


def day_of_week(value: date) -> int:
	"""Sunday-based weekday number of a date."""
	return (value.weekday() + 1) % 7


def day_name(value: date) -> str:
	return value.strftime("%A").lower()


def iso_week(value: date) -> int:
	return value.isocalendar()[1]


def is_odd_iso_week(value: date) -> bool:
	return iso_week(value) % 2 == 1


def is_even_iso_week(value: date) -> bool:
	return iso_week(value) % 2 == 0


def next_week_odd(value: date) -> date:
	"""
	Same weekday in the next odd ISO week.

	Advances two weeks when the current week is already odd, one otherwise.
	"""
	return value + timedelta(weeks=2 if is_odd_iso_week(value) else 1)


def next_week_even(value: date) -> date:
	"""Same weekday in the next even ISO week (+2 weeks if already even, else +1)."""
	return value + timedelta(weeks=2 if is_even_iso_week(value) else 1)


def start_of_week(value: date, week_start: int = DEFAULT_DAY_NUMBER) -> date:
	"""
	First day of the week containing `value`.

	Args:
		value: any date
		week_start: Sunday-based number of the first day of the week

	Returns:
		date on or before `value`
	"""
	offset = (day_of_week(value) - week_start) % 7
	return value - timedelta(days=offset)


def weeks_between(anchor: date, value: date) -> int:
	"""Whole weeks from `anchor` to `value` (floor division, negative before the anchor)."""
	return (value - anchor).days // 7


def add_months(value: date, months: int) -> date:
	"""Add calendar months, clamping the day to the end of shorter months."""
	return value + relativedelta(months=months)


def days_in_month(year: int, month: int) -> int:
	first = date(year, month, 1)
	return ((first + relativedelta(months=1)) - first).days


def to_date(value: Union[date, datetime, str]) -> date:
	"""
	Convierte diferentes formatos de fecha a datetime.date.

	Args:
		value: date, datetime o string ISO (YYYY-MM-DD, con hora opcional)

	Returns:
		datetime.date object
	"""
	if isinstance(value, datetime):
		return value.date()
	elif isinstance(value, date):
		return value
	elif isinstance(value, str):
		return to_datetime(value).date()
	else:
		raise ValueError(f"Cannot convert {type(value)} to date")


def to_datetime(value: Union[date, datetime, str]) -> datetime:
	"""Date or ISO date-time string to datetime; plain dates start at midnight."""
	if isinstance(value, datetime):
		return value
	elif isinstance(value, date):
		return datetime.combine(value, time.min)
	elif isinstance(value, str):
		try:
			return parser.isoparse(value.strip())
		except (ValueError, OverflowError):
			raise ValueError(f"Invalid date '{value}'. Use YYYY-MM-DD") from None
	else:
		raise ValueError(f"Cannot convert {type(value)} to datetime")


def to_time(time_value: Union[time, timedelta, str]) -> time:
	"""
	Convierte diferentes formatos de tiempo a datetime.time.

	Args:
		time_value: puede ser time, timedelta (desde medianoche), o string (09:30, 9:30, 17:30:00, 9am)

	Returns:
		datetime.time object
	"""
	if isinstance(time_value, datetime):
		return time_value.time()
	elif isinstance(time_value, time):
		return time_value
	elif isinstance(time_value, timedelta):
		# timedelta representa tiempo desde medianoche
		return (datetime.min + time_value).time()
	elif isinstance(time_value, str):
		try:
			return parser.parse(time_value.strip()).time()
		except (ValueError, OverflowError):
			raise ValueError(f"Invalid time '{time_value}'. Use HH:MM") from None
	else:
		raise ValueError(f"Cannot convert {type(time_value)} to time")


def format_time(value: time) -> str:
	return value.strftime("%H:%M")


def minutes_between(start: time, end: time) -> int:
	"""Wall-clock minutes from `start` to `end` on the same day."""
	return (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)
