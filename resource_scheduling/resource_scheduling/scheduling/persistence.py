"""
Frappe Persistence

Adapter between the scheduling engine and the Frappe ORM:
- FrappeScheduleStore: ScheduleStore over "Resource Schedule" documents
- schedule_from_doc / update_doc_from_schedule: document <-> Schedule mapping
- get_scheduling_config: settings from site_config.json
- get_schedule_service: service wired with the site logger and hook listeners
"""

import json
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import frappe
from frappe.utils import getdate

from .config import SchedulingConfig
from .dates import to_time
from .exceptions import InvalidScheduleError, SchedulingError
from .models import OwnerRef, Period, Schedule
from .recurrence import rule_from_config
from .service import ScheduleService
from .store import ScheduleFilters

SCHEDULE_DOCTYPE = "Resource Schedule"
CONFIG_KEY = "resource_scheduling"
LISTENERS_HOOK = "resource_schedule_listeners"


def _load_json(value) -> Any:
	if not value:
		return {}
	if isinstance(value, str):
		return json.loads(value)
	return value


def owner_of(doc) -> OwnerRef:
	return OwnerRef(doc.owner_doctype, doc.owner_name)


def schedule_from_doc(doc) -> Schedule:
	"""
	Convierte un documento Resource Schedule en un Schedule del motor.

	Raises:
		InvalidScheduleError: sin start_date o con configuración de recurrencia inválida
	"""
	if not doc.start_date:
		raise InvalidScheduleError.for_field("start_date", "Start date is required")

	is_recurring = bool(doc.is_recurring)
	frequency = doc.frequency or None
	rule = None

	if is_recurring and frequency:
		rule = rule_from_config(frequency, _load_json(doc.frequency_config))

	periods = [
		Period(
			start_time=to_time(row.start_time),
			end_time=to_time(row.end_time),
			date=getdate(row.period_date) if row.period_date else None,
			is_available=bool(row.is_available),
		)
		for row in doc.periods or []
	]

	return Schedule(
		id=doc.name if not doc.is_new() else None,
		owner=owner_of(doc),
		name=doc.schedule_name or "",
		description=doc.description,
		schedule_type=doc.schedule_type or "custom",
		start_date=getdate(doc.start_date),
		end_date=getdate(doc.end_date) if doc.end_date else None,
		is_recurring=is_recurring,
		frequency=frequency if is_recurring else None,
		frequency_config=rule,
		is_active=bool(doc.is_active),
		metadata=_load_json(doc.metadata),
		periods=periods,
		rules=_load_json(doc.rules),
	)


def update_doc_from_schedule(doc, schedule: Schedule) -> None:
	"""Copia los campos de un Schedule al documento (reemplaza todos los periods)."""
	doc.owner_doctype = schedule.owner.owner_type
	doc.owner_name = schedule.owner.owner_id
	doc.schedule_name = schedule.name
	doc.description = schedule.description
	doc.schedule_type = schedule.schedule_type.value
	doc.start_date = schedule.start_date
	doc.end_date = schedule.end_date
	doc.is_recurring = int(schedule.is_recurring)
	doc.frequency = schedule.frequency.value if schedule.frequency else None
	doc.frequency_config = json.dumps(schedule.frequency_config.to_dict()) if schedule.frequency_config else None
	doc.is_active = int(schedule.is_active)
	doc.metadata = json.dumps(dict(schedule.metadata)) if schedule.metadata else None
	doc.rules = json.dumps(dict(schedule.rules)) if schedule.rules else None

	doc.set("periods", [])
	for period in schedule.periods:
		doc.append(
			"periods",
			{
				"start_time": period.start_time,
				"end_time": period.end_time,
				"period_date": period.date,
				"is_available": int(period.is_available),
			},
		)


class FrappeScheduleStore:
	"""
	ScheduleStore backed by Resource Schedule documents.

	Inside transaction() the owner's rows are read with SELECT ... FOR UPDATE
	and every change is rolled back to a savepoint when the block raises.
	"""

	def __init__(self):
		self._for_update = False

	def load_schedules_for_owner(self, owner: OwnerRef, filters: Optional[ScheduleFilters] = None) -> List[Schedule]:
		filters = filters or ScheduleFilters()

		db_filters: Dict[str, Any] = {
			"owner_doctype": owner.owner_type,
			"owner_name": owner.owner_id,
		}
		or_filters = None

		if filters.schedule_types is not None:
			db_filters["schedule_type"] = ["in", [t.value for t in filters.schedule_types]]
		if filters.active_only:
			db_filters["is_active"] = 1
		if filters.exclude_id:
			db_filters["name"] = ["!=", filters.exclude_id]
		if filters.date_to:
			db_filters["start_date"] = ["<=", filters.date_to]
		if filters.date_from:
			or_filters = [
				["end_date", "is", "not set"],
				["end_date", ">=", filters.date_from],
			]

		names = frappe.get_all(
			SCHEDULE_DOCTYPE,
			filters=db_filters,
			or_filters=or_filters,
			pluck="name",
			order_by="creation asc",
			for_update=self._for_update,
		)

		schedules = [schedule_from_doc(frappe.get_doc(SCHEDULE_DOCTYPE, name)) for name in names]
		return [s for s in schedules if filters.matches(s)]

	def commit(self, schedule: Schedule) -> Schedule:
		if schedule.id and frappe.db.exists(SCHEDULE_DOCTYPE, schedule.id):
			doc = frappe.get_doc(SCHEDULE_DOCTYPE, schedule.id)
		else:
			doc = frappe.new_doc(SCHEDULE_DOCTYPE)

		update_doc_from_schedule(doc, schedule)

		# Ya validado y verificado por ScheduleService
		doc.flags.skip_schedule_screening = True
		doc.save(ignore_permissions=True)

		return schedule_from_doc(doc)

	def delete(self, schedule: Schedule) -> bool:
		if not schedule.id or not frappe.db.exists(SCHEDULE_DOCTYPE, schedule.id):
			return False
		frappe.delete_doc(SCHEDULE_DOCTYPE, schedule.id, ignore_permissions=True)
		return True

	@contextmanager
	def transaction(self, owner: OwnerRef):
		savepoint = f"resource_schedule_{frappe.generate_hash(length=8)}"
		frappe.db.savepoint(savepoint)
		self._for_update = True

		try:
			yield self
		except Exception as e:
			frappe.db.rollback(save_point=savepoint)
			if not isinstance(e, SchedulingError):
				frappe.log_error(
					title=f"Resource Schedule transaction failed for {owner}",
					message=frappe.get_traceback(),
				)
			raise
		finally:
			self._for_update = False


def get_scheduling_config() -> SchedulingConfig:
	"""Settings from the `resource_scheduling` key of site_config.json."""
	return SchedulingConfig.from_dict(frappe.conf.get(CONFIG_KEY) or {})


def get_schedule_service() -> ScheduleService:
	"""
	ScheduleService para el sitio actual.

	Los listeners se declaran en hooks.py de cualquier app instalada:
		resource_schedule_listeners = ["my_app.handlers.on_schedule_created"]
	"""
	listeners = [frappe.get_attr(path) for path in frappe.get_hooks(LISTENERS_HOOK)]
	return ScheduleService(
		FrappeScheduleStore(),
		config=get_scheduling_config(),
		logger=frappe.logger(CONFIG_KEY),
		listeners=listeners,
	)
