"""
Taxonomía de errores del dashboard

Todos los errores se capturan en el punto de la acción del usuario y se
convierten en una notificación ({"ok": false, "error": ..., "kind": ...}).
Ninguno es fatal para el proceso.
"""
from typing import Optional

from fastapi import status


class DashboardError(Exception):
    """Error base del dashboard"""

    kind = "dashboard_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_payload(self) -> dict:
        return {"ok": False, "error": self.message, "kind": self.kind}


class NetworkFailure(DashboardError):
    """La petición al backend falló o devolvió un status no 2xx"""

    kind = "network_failure"
    status_code = status.HTTP_502_BAD_GATEWAY


class ApplicationError(DashboardError):
    """El backend respondió 200 pero con ok=false"""

    kind = "application_error"
    status_code = status.HTTP_400_BAD_REQUEST


class ActionRejected(DashboardError):
    """
    Escritura rechazada: visita ya revisada, acción duplicada en curso,
    transición no permitida o rechazo de autorización/validación del backend
    """

    kind = "action_rejected"
    status_code = status.HTTP_409_CONFLICT


class NotFound(DashboardError):
    """Entidad no encontrada en el snapshot del backend"""

    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
