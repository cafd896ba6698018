"""
Schedule Service

Create / update / delete schedules with validation and conflict screening.

Screening and commit run inside one store transaction for the owner, so two
writers cannot both pass the check against a stale view and commit
overlapping schedules.
"""

import logging
from dataclasses import replace
from typing import Callable, Iterable, List, Optional

from .builder import ScheduleBuilder
from .config import DEFAULT_CONFIG, SchedulingConfig
from .exceptions import ScheduleConflictError
from .models import OwnerRef, Schedule
from .overlap import find_conflicts, has_conflicts
from .store import ScheduleStore
from .validation import validate_schedule

Listener = Callable[[Schedule], None]


class ScheduleService:
	def __init__(
		self,
		store: ScheduleStore,
		config: Optional[SchedulingConfig] = None,
		logger: Optional[logging.Logger] = None,
		listeners: Iterable[Listener] = (),
	):
		self.store = store
		self.config = config or DEFAULT_CONFIG
		self.logger = logger or logging.getLogger("resource_scheduling")
		self.listeners = list(listeners)

	def builder(self, owner: OwnerRef) -> ScheduleBuilder:
		return ScheduleBuilder(owner)

	def create(self, schedule: Schedule) -> Schedule:
		"""
		Valida, verifica conflictos y persiste un schedule nuevo.

		Returns:
			Schedule: el schedule persistido (con id asignado por el store)

		Raises:
			InvalidScheduleError: si la validación falla
			ScheduleConflictError: si se solapa con schedules existentes; nada se persiste
		"""
		schedule = self._anchored(schedule)
		validate_schedule(schedule, self.config)

		with self.store.transaction(schedule.owner):
			conflicts = find_conflicts(self.store, schedule, self.config)
			if conflicts:
				self._reject(schedule, conflicts, None)

			saved = self.store.commit(schedule)

			for listener in self.listeners:
				listener(saved)

		self.logger.info(
			f"Schedule creado: {saved.id} ({saved.schedule_type.value}) para {saved.owner}"
		)
		return saved

	def update(self, schedule: Schedule, periods=None, **changes) -> Schedule:
		"""
		Reemplaza atributos (y opcionalmente todos los periods) de un schedule.

		Se revalida y se verifican conflictos excluyendo al propio schedule.
		"""
		if periods is not None:
			changes["periods"] = tuple(periods)

		updated = replace(schedule, **changes)

		if updated.frequency_config is not None and (
			"frequency_config" in changes or "start_date" in changes
		):
			updated = self._anchored(updated)

		validate_schedule(updated, self.config)

		with self.store.transaction(updated.owner):
			conflicts = find_conflicts(self.store, updated, self.config)
			if conflicts:
				self._reject(updated, conflicts, "Updated schedule conflicts with existing schedules")

			saved = self.store.commit(updated)

		self.logger.info(f"Schedule actualizado: {saved.id}")
		return saved

	def delete(self, schedule: Schedule) -> bool:
		"""Delete a schedule together with its periods."""
		with self.store.transaction(schedule.owner):
			deleted = self.store.delete(schedule)

		if deleted:
			self.logger.info(f"Schedule eliminado: {schedule.id}")
		return deleted

	def find_conflicts(self, schedule: Schedule) -> List[Schedule]:
		return find_conflicts(self.store, schedule, self.config)

	def has_conflicts(self, schedule: Schedule) -> bool:
		return has_conflicts(self.store, schedule, self.config)

	def _anchored(self, schedule: Schedule) -> Schedule:
		"""Fija el ancla de la recurrencia (starts_on / start_month) con el week_start del servicio."""
		if schedule.frequency_config is None:
			return schedule
		return replace(
			schedule,
			frequency_config=schedule.frequency_config.anchored(schedule.start_date, self.config.week_start),
		)

	def _reject(self, schedule: Schedule, conflicts: List[Schedule], message: Optional[str]) -> None:
		names = ", ".join(c.name or str(c.id) for c in conflicts)
		self.logger.warning(
			f"Schedule rechazado por conflicto: '{schedule.name or schedule.id}' con {names}"
		)
		# Un schedule nuevo todavía no tiene nombre persistido
		schedule_name = schedule.name if schedule.id else None
		raise ScheduleConflictError(schedule_name, conflicts, message)
