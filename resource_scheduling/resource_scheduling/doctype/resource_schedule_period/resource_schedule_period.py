# Copyright (c) 2026, Resource Scheduling Developers and contributors
# For license information, please see license.txt

from frappe.model.document import Document


class ResourceSchedulePeriod(Document):
	pass
