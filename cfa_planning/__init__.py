"""
CFA planning core.

Recurring-slot materialization and room/instructor conflict detection for a
training-center timetable.
"""

__version__ = "0.1.0"
