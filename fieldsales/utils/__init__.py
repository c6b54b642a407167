"""
Utilidades del microservicio
"""
from .auth import get_session, require_manager, require_dispatch
from .errors import DashboardError, NetworkFailure, ApplicationError, ActionRejected, NotFound

__all__ = [
    "get_session",
    "require_manager",
    "require_dispatch",
    "DashboardError",
    "NetworkFailure",
    "ApplicationError",
    "ActionRejected",
    "NotFound"
]
