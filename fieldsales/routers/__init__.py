"""
Routers de la API
"""
from .session import router as session_router
from .visits import router as visits_router
from .reports import router as reports_router
from .warehouse import router as warehouse_router

__all__ = [
    "session_router",
    "visits_router",
    "reports_router",
    "warehouse_router"
]
