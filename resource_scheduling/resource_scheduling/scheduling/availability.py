"""
Availability Service

Computes the open time windows of an owner on a given date:
- Availability schedules occurring on the date (positive periods)
- Union of overlapping/adjacent windows
- Removal of periods flagged as not available (negative periods)
"""

from datetime import date, time
from typing import Dict, Iterable, List

from .dates import DEFAULT_DAY_NUMBER
from .models import Schedule
from .occurrence import occurs_on, periods_on


Interval = Dict[str, time]


def times_overlap(start_a: time, end_a: time, start_b: time, end_b: time) -> bool:
	"""
	Overlap entre intervalos semiabiertos [start, end).

	Intervalos que sólo se tocan (10:00-11:00 y 11:00-12:00) no se solapan.
	"""
	return start_a < end_b and start_b < end_a


def get_availability_windows(
	schedules: Iterable[Schedule],
	target_date: date,
	week_start: int = DEFAULT_DAY_NUMBER,
) -> List[Interval]:
	"""
	Obtiene las ventanas de disponibilidad para un día específico.

	Args:
		schedules: schedules del owner (se consideran sólo los de tipo Availability)
		target_date: fecha objetivo
		week_start: primer día de la semana (reglas bi-semanales sin ancla)

	Returns:
		list[dict]: [
			{"start": time, "end": time},
			...
		]
		Vacío si ningún schedule de Availability ocurre en la fecha.

	Algoritmo:
		1. Filtrar Availability schedules que ocurren en la fecha
		2. Reunir sus periods aplicables (positivos y negativos)
		3. Merge de intervalos positivos
		4. Restar intervalos negativos
		5. Retornar lista ordenada
	"""
	positive = []
	negative = []

	for schedule in schedules:
		if not schedule.is_availability or not occurs_on(schedule, target_date, week_start):
			continue

		for period in periods_on(schedule, target_date):
			interval = {"start": period.start_time, "end": period.end_time}
			if period.is_available:
				positive.append(interval)
			else:
				negative.append(interval)

	intervals = _merge_intervals(positive)

	for block in negative:
		new_intervals = []
		for interval in intervals:
			new_intervals.extend(_interval_subtract(interval, block))
		intervals = new_intervals

	return intervals


def _merge_intervals(intervals: List[Interval]) -> List[Interval]:
	"""
	Une intervalos adyacentes o overlapping.

	Args:
		intervals: lista de intervalos {"start": time, "end": time}

	Returns:
		list: intervalos merged, ordenados por start
	"""
	if not intervals:
		return []

	# Copias para no mutar los intervalos del llamador
	ordered = sorted((dict(i) for i in intervals), key=lambda x: x["start"])

	merged = [ordered[0]]

	for current in ordered[1:]:
		last_merged = merged[-1]

		# Si current se solapa o es adyacente a last_merged, merge
		if current["start"] <= last_merged["end"]:
			if current["end"] > last_merged["end"]:
				last_merged["end"] = current["end"]
		else:
			merged.append(current)

	return merged


def _interval_subtract(interval: Interval, block: Interval) -> List[Interval]:
	"""
	Resta un bloqueo de un intervalo.

	Args:
		interval: {"start": time, "end": time} - intervalo original
		block: {"start": time, "end": time} - bloqueo a restar

	Returns:
		list: lista de intervalos resultantes (0, 1 o 2 intervalos)
	"""
	# Sin overlap
	if not times_overlap(interval["start"], interval["end"], block["start"], block["end"]):
		return [interval]

	pieces = []

	if block["start"] > interval["start"]:
		pieces.append({"start": interval["start"], "end": block["start"]})

	if block["end"] < interval["end"]:
		pieces.append({"start": block["end"], "end": interval["end"]})

	return pieces
