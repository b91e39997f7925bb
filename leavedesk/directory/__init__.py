"""Directory module — Employee, Department and WorkingDaySet models, schemas and services."""

from leavedesk.directory.models import Department, Employee, WorkingDaySet

__all__ = ["Employee", "Department", "WorkingDaySet"]
