# Copyright (c) 2026, Resource Scheduling Developers and contributors
# For license information, please see license.txt

"""
Resource Schedule DocType

Horario de un recurso (User, Room, ...), de tipo:
- availability: franjas abiertas para reservar
- appointment: citas comprometidas
- blocked: bloqueos
- custom: cualquier otro uso
"""

import json
from dataclasses import replace

import frappe
from frappe import _
from frappe.model.document import Document

from resource_scheduling.resource_scheduling.scheduling.exceptions import (
	InvalidScheduleError,
	ScheduleConflictError,
)
from resource_scheduling.resource_scheduling.scheduling.overlap import find_conflicts
from resource_scheduling.resource_scheduling.scheduling.persistence import (
	FrappeScheduleStore,
	get_scheduling_config,
	schedule_from_doc,
)
from resource_scheduling.resource_scheduling.scheduling.validation import validate_schedule


class ResourceSchedule(Document):
	"""
	Resource Schedule with validation and conflict screening.

	Validations:
	- owner_doctype / owner_name required
	- frequency_config valid for the frequency
	- schedule rules (periods, dates, working hours, ...)
	- no overlap with conflict-checked schedules of the same owner
	"""

	def validate(self) -> None:
		"""
		Validación antes de guardar.
		"""
		self._validate_owner()
		self._validate_recurrence()

		schedule = self._to_schedule()
		config = get_scheduling_config()

		self._validate_schedule(schedule, config)
		schedule = self._anchor_frequency_config(schedule, config)

		if not self.flags.skip_schedule_screening:
			self._validate_no_conflicts(schedule, config)

	def _validate_owner(self) -> None:
		"""Valida que el owner esté presente."""
		if not self.owner_doctype or not self.owner_name:
			frappe.throw(_("Owner DocType y Owner Name son requeridos"))

	def _validate_recurrence(self) -> None:
		"""Un schedule no recurrente no guarda frecuencia."""
		if not self.is_recurring:
			self.frequency = None
			self.frequency_config = None
		elif not self.frequency:
			frappe.throw(_("Frequency es requerido para schedules recurrentes"))

	def _to_schedule(self):
		try:
			return schedule_from_doc(self)
		except InvalidScheduleError as e:
			frappe.throw(_(str(e)))
		except ValueError as e:
			frappe.throw(_(f"Datos inválidos: {e}"))

	def _validate_schedule(self, schedule, config) -> None:
		try:
			validate_schedule(schedule, config)
		except InvalidScheduleError as e:
			frappe.throw(_(str(e)))

	def _anchor_frequency_config(self, schedule, config):
		"""Persiste el ancla de la recurrencia (starts_on / start_month) la primera vez."""
		if schedule.frequency_config is None:
			return schedule

		rule = schedule.frequency_config.anchored(schedule.start_date, config.week_start)
		self.frequency_config = json.dumps(rule.to_dict())
		return replace(schedule, frequency_config=rule)

	def _validate_no_conflicts(self, schedule, config) -> None:
		"""
		Verifica que no haya solapamiento con schedules del mismo owner.

		Se excluye el propio documento al actualizar. La lectura se hace dentro de
		la transacción del store para bloquear las filas del owner (FOR UPDATE).
		"""
		store = FrappeScheduleStore()
		with store.transaction(schedule.owner):
			conflicts = find_conflicts(store, schedule, config)

		if conflicts:
			error = ScheduleConflictError(schedule.name if not self.is_new() else None, conflicts)
			frappe.throw(_(str(error)), title=_("Schedule Conflict"))
