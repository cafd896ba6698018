app_name = "resource_scheduling"
app_title = "Resource Scheduling"
app_publisher = "Resource Scheduling Developers"
app_description = "Recurring schedules, conflict detection and bookable slots for any resource"
app_email = "maintainers@resource-scheduling.dev"
app_license = "mit"

# Apps
# ------------------

# required_apps = []

# Installation
# ------------

# before_install = "resource_scheduling.install.before_install"
# after_install = "resource_scheduling.install.after_install"

# Document Events
# ---------------
# Hook on document methods and events

# doc_events = {
# 	"Resource Schedule": {
# 		"on_update": "method",
# 		"on_trash": "method"
# 	}
# }

# Schedule Events
# ---------------
# Called by ScheduleService with every schedule it creates.
# Other apps declare their own handlers in their hooks.py:
#
# resource_schedule_listeners = [
# 	"my_app.handlers.on_schedule_created"
# ]

# Testing
# -------

# before_tests = "resource_scheduling.install.before_tests"

# Ignore links to specified DocTypes when deleting documents
# -----------------------------------------------------------

# ignore_links_on_delete = ["Communication", "ToDo"]
