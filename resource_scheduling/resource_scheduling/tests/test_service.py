"""
Tests for scheduling/service.py

Tests create / update / delete with validation and conflict screening
against the in-memory store.
"""

import unittest
from datetime import date, time

from resource_scheduling.resource_scheduling.scheduling.exceptions import (
	InvalidScheduleError,
	ScheduleConflictError,
)
from resource_scheduling.resource_scheduling.scheduling.config import SchedulingConfig
from resource_scheduling.resource_scheduling.scheduling.models import (
	Frequency,
	OwnerRef,
	Period,
	Schedule,
	ScheduleType,
)
from resource_scheduling.resource_scheduling.scheduling.recurrence import BiWeeklyRule, WeeklyRule
from resource_scheduling.resource_scheduling.scheduling.service import ScheduleService
from resource_scheduling.resource_scheduling.scheduling.store import MemoryScheduleStore


OWNER = OwnerRef("User", "jane@example.com")


class TestScheduleService(unittest.TestCase):
	def setUp(self):
		self.store = MemoryScheduleStore()
		self.service = ScheduleService(self.store)

	def appointment(self, name, start, end, day="2025-01-06"):
		return self.service.builder(OWNER).named(name).appointment().on(day).add_period(start, end)

	def test_create_assigns_id(self):
		saved = self.appointment("First Meeting", "09:00", "10:00").save(self.service)

		self.assertEqual(saved.id, "SCH-00001")
		self.assertEqual(self.store.get(saved.id), saved)

	def test_create_validates(self):
		with self.assertRaises(InvalidScheduleError):
			self.appointment("Backwards", "10:00", "09:00").save(self.service)
		self.assertEqual(len(self.store), 0)

	def test_create_conflict_commits_nothing(self):
		self.appointment("First Meeting", "09:00", "10:00").save(self.service)

		with self.assertRaises(ScheduleConflictError) as ctx:
			self.appointment("Second Meeting", "09:30", "10:30").save(self.service)

		self.assertEqual(
			str(ctx.exception),
			"Schedule conflict detected! 'New schedule' conflicts with existing schedule 'First Meeting'.",
		)
		self.assertEqual([c.name for c in ctx.exception.conflicting_schedules], ["First Meeting"])
		self.assertEqual(len(self.store), 1)

	def test_conflict_with_several_schedules(self):
		self.appointment("First Meeting", "09:00", "10:00").save(self.service)
		self.appointment("Second Meeting", "10:00", "11:00").save(self.service)

		with self.assertRaises(ScheduleConflictError) as ctx:
			self.appointment("Long Meeting", "09:30", "10:30").save(self.service)

		self.assertEqual(
			str(ctx.exception),
			"Schedule conflict detected! 'New schedule' conflicts with 2 existing schedules: "
			"'First Meeting', 'Second Meeting'.",
		)

	def test_touching_schedules_created(self):
		self.appointment("First Meeting", "09:00", "10:00").save(self.service)
		self.appointment("Second Meeting", "10:00", "11:00").save(self.service)

		self.assertEqual(len(self.store), 2)

	def test_update_excludes_itself(self):
		saved = self.appointment("First Meeting", "09:00", "10:00").save(self.service)

		updated = self.service.update(saved, periods=[Period(time(9, 30), time(10, 30))], name="Moved")

		self.assertEqual(updated.id, saved.id)
		self.assertEqual(updated.name, "Moved")
		self.assertEqual(self.store.get(saved.id).periods, (Period(time(9, 30), time(10, 30)),))
		self.assertEqual(len(self.store), 1)

	def test_update_conflict(self):
		first = self.appointment("First Meeting", "09:00", "10:00").save(self.service)
		self.appointment("Second Meeting", "10:00", "11:00").save(self.service)

		with self.assertRaises(ScheduleConflictError) as ctx:
			self.service.update(first, periods=[Period(time(9, 0), time(10, 30))])

		self.assertEqual(str(ctx.exception), "Updated schedule conflicts with existing schedules")
		self.assertEqual(self.store.get(first.id), first)

	def test_update_reanchors_recurrence(self):
		saved = (
			self.service.builder(OWNER)
			.named("Guardia")
			.blocked()
			.from_("2025-01-06")
			.biweekly(["monday"])
			.add_period("09:00", "10:00")
			.save(self.service)
		)
		moved = self.service.update(
			saved,
			start_date=saved.start_date.replace(day=13),
			frequency_config=BiWeeklyRule(days=("monday",)),
		)

		self.assertEqual(moved.frequency_config.starts_on.isoformat(), "2025-01-13")

	def test_delete(self):
		saved = self.appointment("First Meeting", "09:00", "10:00").save(self.service)

		self.assertTrue(self.service.delete(saved))
		self.assertFalse(self.service.delete(saved))
		self.assertEqual(len(self.store), 0)

	def test_listeners_receive_saved_schedule(self):
		received = []
		service = ScheduleService(self.store, listeners=[received.append])

		saved = self.appointment("First Meeting", "09:00", "10:00").save(service)

		self.assertEqual(received, [saved])

	def test_listener_failure_rolls_back(self):
		def fail(schedule):
			raise RuntimeError("listener failed")

		service = ScheduleService(self.store, listeners=[fail])

		with self.assertRaises(RuntimeError):
			self.appointment("First Meeting", "09:00", "10:00").save(service)
		self.assertEqual(len(self.store), 0)

	def test_find_conflicts(self):
		first = self.appointment("First Meeting", "09:00", "10:00").save(self.service)
		candidate = self.appointment("Second Meeting", "09:30", "10:30").build()

		self.assertEqual(self.service.find_conflicts(candidate), [first])
		self.assertTrue(self.service.has_conflicts(candidate))

	def test_logging(self):
		with self.assertLogs("resource_scheduling", level="INFO") as logs:
			saved = self.appointment("First Meeting", "09:00", "10:00").save(self.service)
			with self.assertRaises(ScheduleConflictError):
				self.appointment("Second Meeting", "09:30", "10:30").save(self.service)

		self.assertIn(f"INFO:resource_scheduling:Schedule creado: {saved.id}", logs.output[0])
		self.assertTrue(logs.output[1].startswith("WARNING:resource_scheduling:Schedule rechazado por conflicto"))

	def test_create_anchors_with_week_start(self):
		"""Test that create fixes the bi-weekly anchor using the configured week start."""
		service = ScheduleService(self.store, config=SchedulingConfig(week_start=0))
		schedule = Schedule(
			owner=OWNER,
			name="Guardia",
			schedule_type=ScheduleType.BLOCKED,
			start_date=date(2025, 1, 8),
			is_recurring=True,
			frequency=Frequency.BIWEEKLY,
			frequency_config=BiWeeklyRule(days=("monday",)),
			periods=(Period(time(9, 0), time(10, 0)),),
		)

		saved = service.create(schedule)

		self.assertEqual(saved.frequency_config.starts_on, date(2025, 1, 5))
		self.assertEqual(saved.frequency_config.week_start, 0)

	def test_create_conflict_with_sunday_weeks(self):
		"""Test that an unanchored bi-weekly schedule is screened on the weeks it occurs."""
		service = ScheduleService(self.store, config=SchedulingConfig(week_start=0))
		sunday = date(2025, 1, 5)
		service.create(
			Schedule(
				owner=OWNER,
				name="Weekly",
				schedule_type=ScheduleType.APPOINTMENT,
				start_date=sunday,
				is_recurring=True,
				frequency=Frequency.WEEKLY,
				frequency_config=WeeklyRule(days=("monday",)),
				periods=(Period(time(10, 0), time(11, 0)),),
			)
		)
		candidate = Schedule(
			owner=OWNER,
			name="Bi-weekly",
			schedule_type=ScheduleType.APPOINTMENT,
			start_date=sunday,
			is_recurring=True,
			frequency=Frequency.BIWEEKLY,
			frequency_config=BiWeeklyRule(days=("sunday", "monday")),
			periods=(Period(time(10, 0), time(11, 0)),),
		)

		with self.assertRaises(ScheduleConflictError) as ctx:
			service.create(candidate)

		self.assertEqual([c.name for c in ctx.exception.conflicting_schedules], ["Weekly"])
		self.assertEqual(len(self.store), 1)
