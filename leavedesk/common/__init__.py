"""Common module — shared utilities for LeaveDesk."""

from leavedesk.common.constants import (
    ACTIVE_STATUSES,
    DEFAULT_WORKING_DAYS,
    MANAGER_OR_ABOVE,
    PERMISSIONS,
    LeaveKind,
    LeaveStatus,
    UserRole,
)
from leavedesk.common.dates import (
    iter_days,
    normalize_weekdays,
    parse_date_key,
    to_date_key,
    years_spanned,
)
from leavedesk.common.exceptions import (
    AppException,
    ConflictError,
    ForbiddenException,
    InvalidArgumentException,
    NotFoundException,
    ValidationException,
    register_exception_handlers,
)

__all__ = [
    # Constants / Enums
    "ACTIVE_STATUSES",
    "DEFAULT_WORKING_DAYS",
    "MANAGER_OR_ABOVE",
    "PERMISSIONS",
    "LeaveKind",
    "LeaveStatus",
    "UserRole",
    # Dates
    "iter_days",
    "normalize_weekdays",
    "parse_date_key",
    "to_date_key",
    "years_spanned",
    # Exceptions
    "AppException",
    "ConflictError",
    "ForbiddenException",
    "InvalidArgumentException",
    "NotFoundException",
    "ValidationException",
    "register_exception_handlers",
]
