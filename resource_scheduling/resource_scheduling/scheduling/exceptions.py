"""
Scheduling Errors

- InvalidScheduleError: malformed schedule attributes or recurrence configuration
- ScheduleConflictError: a create/update would overlap a conflict-checked schedule
"""

from typing import Dict, List, Optional, Sequence


class SchedulingError(Exception):
	"""Base class for scheduling errors."""


class InvalidScheduleError(SchedulingError, ValueError):
	"""
	Raised when a schedule or recurrence rule cannot be built.

	`errors` maps a field path (e.g. "periods.0.end_time") to its messages.
	"""

	def __init__(self, message: Optional[str] = None, errors: Optional[Dict[str, List[str]]] = None):
		self.errors = errors or {}
		super().__init__(message or self._format_errors(self.errors))

	@classmethod
	def for_field(cls, field: str, message: str) -> "InvalidScheduleError":
		return cls(errors={field: [message]})

	@staticmethod
	def _format_errors(errors: Dict[str, List[str]]) -> str:
		count = sum(len(messages) for messages in errors.values())
		noun = "error" if count == 1 else "errors"
		lines = [f"Schedule validation failed with {count} {noun}:"]
		for field, messages in errors.items():
			for message in messages:
				lines.append(f"• {field}: {message}")
		return "\n".join(lines)


class ScheduleConflictError(SchedulingError):
	"""Raised when a schedule overlaps existing conflict-checked schedules."""

	def __init__(self, schedule_name: Optional[str], conflicting_schedules: Sequence, message: Optional[str] = None):
		self.conflicting_schedules = list(conflicting_schedules)
		super().__init__(message or self._format_message(schedule_name, self.conflicting_schedules))

	@staticmethod
	def _format_message(schedule_name: Optional[str], conflicts: list) -> str:
		name = schedule_name or "New schedule"
		names = [c.name or "Unnamed schedule" for c in conflicts]
		if len(names) == 1:
			return f"Schedule conflict detected! '{name}' conflicts with existing schedule '{names[0]}'."
		listed = "', '".join(names)
		return f"Schedule conflict detected! '{name}' conflicts with {len(names)} existing schedules: '{listed}'."
