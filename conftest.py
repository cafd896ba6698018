collect_ignore_glob = []

# DocType tests need a Frappe site; run them with `bench run-tests --app resource_scheduling`
try:
	import frappe.tests.utils  # noqa: F401
except ImportError:
	collect_ignore_glob.append("resource_scheduling/resource_scheduling/doctype/*/test_*.py")
