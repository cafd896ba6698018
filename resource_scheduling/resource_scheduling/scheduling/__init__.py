"""
Scheduling Services Module

This module provides the core logic for resource scheduling:
- Recurrence rules and occurrence resolution (recurrence.py, occurrence.py)
- Availability windows (availability.py)
- Conflict detection (overlap.py)
- Bookable slot generation and next-slot search (slots.py)
- Validation, builder and service (validation.py, builder.py, service.py)
- Frappe adapter (persistence.py)
"""
