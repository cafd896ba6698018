"""
Tests for scheduling/availability.py

Tests availability windows, interval overlap and interval mathematics.
"""

import unittest
from datetime import date, time

from resource_scheduling.resource_scheduling.scheduling.availability import (
	_interval_subtract,
	_merge_intervals,
	get_availability_windows,
	times_overlap,
)
from resource_scheduling.resource_scheduling.scheduling.models import (
	Frequency,
	OwnerRef,
	Period,
	Schedule,
	ScheduleType,
)
from resource_scheduling.resource_scheduling.scheduling.recurrence import WeeklyRule


OWNER = OwnerRef("Room", "Room 1")
MONDAY = date(2025, 1, 6)


def availability(*periods, **kwargs):
	defaults = {
		"owner": OWNER,
		"name": "Open",
		"schedule_type": ScheduleType.AVAILABILITY,
		"start_date": MONDAY,
		"periods": periods,
	}
	defaults.update(kwargs)
	return Schedule(**defaults)


class TestTimesOverlap(unittest.TestCase):
	"""Tests for half-open interval overlap."""

	def test_touching_intervals_do_not_overlap(self):
		"""Test 09:00-10:00 and 10:00-11:00."""
		self.assertFalse(times_overlap(time(9, 0), time(10, 0), time(10, 0), time(11, 0)))
		self.assertFalse(times_overlap(time(10, 0), time(11, 0), time(9, 0), time(10, 0)))

	def test_partial_overlap(self):
		"""Test 09:00-10:00 and 09:30-10:30, both orders."""
		self.assertTrue(times_overlap(time(9, 0), time(10, 0), time(9, 30), time(10, 30)))
		self.assertTrue(times_overlap(time(9, 30), time(10, 30), time(9, 0), time(10, 0)))

	def test_containment(self):
		"""Test an interval inside another."""
		self.assertTrue(times_overlap(time(9, 0), time(17, 0), time(12, 0), time(13, 0)))


class TestIntervalMath(unittest.TestCase):
	"""Tests for _merge_intervals and _interval_subtract."""

	def test_merge_intervals_no_overlap(self):
		"""Test merging intervals with no overlap."""
		intervals = [
			{"start": time(11, 0), "end": time(12, 0)},
			{"start": time(9, 0), "end": time(10, 0)},
		]

		result = _merge_intervals(intervals)
		self.assertEqual(len(result), 2)
		self.assertEqual(result[0]["start"], time(9, 0))

	def test_merge_intervals_with_overlap(self):
		"""Test merging overlapping intervals."""
		intervals = [
			{"start": time(9, 0), "end": time(10, 30)},
			{"start": time(10, 0), "end": time(12, 0)},
		]

		result = _merge_intervals(intervals)
		self.assertEqual(result, [{"start": time(9, 0), "end": time(12, 0)}])

	def test_merge_intervals_adjacent(self):
		"""Test merging adjacent intervals."""
		intervals = [
			{"start": time(9, 0), "end": time(10, 0)},
			{"start": time(10, 0), "end": time(11, 0)},
		]

		result = _merge_intervals(intervals)
		self.assertEqual(len(result), 1)

	def test_merge_does_not_mutate_input(self):
		"""Test that merging leaves the caller's intervals untouched."""
		first = {"start": time(9, 0), "end": time(10, 0)}
		_merge_intervals([first, {"start": time(9, 30), "end": time(11, 0)}])
		self.assertEqual(first["end"], time(10, 0))

	def test_interval_subtract_no_overlap(self):
		"""Test subtracting interval with no overlap."""
		interval = {"start": time(9, 0), "end": time(12, 0)}
		block = {"start": time(14, 0), "end": time(15, 0)}

		self.assertEqual(_interval_subtract(interval, block), [interval])

	def test_interval_subtract_covers_all(self):
		"""Test subtracting interval that covers all."""
		interval = {"start": time(10, 0), "end": time(11, 0)}
		block = {"start": time(9, 0), "end": time(12, 0)}

		self.assertEqual(_interval_subtract(interval, block), [])

	def test_interval_subtract_start(self):
		"""Test subtracting interval that covers start."""
		interval = {"start": time(9, 0), "end": time(12, 0)}
		block = {"start": time(8, 0), "end": time(10, 0)}

		self.assertEqual(_interval_subtract(interval, block), [{"start": time(10, 0), "end": time(12, 0)}])

	def test_interval_subtract_middle(self):
		"""Test subtracting interval in the middle (splits in two)."""
		interval = {"start": time(9, 0), "end": time(12, 0)}
		block = {"start": time(10, 0), "end": time(11, 0)}

		result = _interval_subtract(interval, block)
		self.assertEqual(
			result,
			[
				{"start": time(9, 0), "end": time(10, 0)},
				{"start": time(11, 0), "end": time(12, 0)},
			],
		)


class TestAvailabilityWindows(unittest.TestCase):
	"""Tests for get_availability_windows."""

	def test_no_availability_means_no_windows(self):
		"""Test that there is no implicit always-open default."""
		appointment = availability(Period(time(9, 0), time(10, 0)), schedule_type=ScheduleType.APPOINTMENT)
		self.assertEqual(get_availability_windows([appointment], MONDAY), [])

	def test_union_of_schedules(self):
		"""Test that overlapping availability schedules collapse."""
		morning = availability(Period(time(9, 0), time(12, 0)))
		late_morning = availability(Period(time(11, 0), time(13, 0)))
		afternoon = availability(Period(time(15, 0), time(17, 0)))

		result = get_availability_windows([morning, late_morning, afternoon], MONDAY)
		self.assertEqual(
			result,
			[
				{"start": time(9, 0), "end": time(13, 0)},
				{"start": time(15, 0), "end": time(17, 0)},
			],
		)

	def test_negative_periods_are_subtracted(self):
		"""Test that periods flagged unavailable cut the windows."""
		schedule = availability(
			Period(time(9, 0), time(17, 0)),
			Period(time(12, 0), time(13, 0), is_available=False),
		)

		result = get_availability_windows([schedule], MONDAY)
		self.assertEqual(
			result,
			[
				{"start": time(9, 0), "end": time(12, 0)},
				{"start": time(13, 0), "end": time(17, 0)},
			],
		)

	def test_only_schedules_occurring_on_date(self):
		"""Test that a weekly Monday schedule gives nothing on Tuesday."""
		schedule = availability(
			Period(time(9, 0), time(17, 0)),
			is_recurring=True,
			frequency=Frequency.WEEKLY,
			frequency_config=WeeklyRule(days=("monday",)),
		)

		self.assertEqual(len(get_availability_windows([schedule], date(2025, 1, 13))), 1)
		self.assertEqual(get_availability_windows([schedule], date(2025, 1, 14)), [])
