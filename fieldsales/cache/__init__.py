"""
Caché en memoria de reportes
"""
from ..config import settings
from .report_cache import ReportCache

# Instancia global
report_cache = ReportCache(
    ttl_seconds=settings.REPORT_CACHE_TTL_SECONDS,
    max_size=settings.REPORT_CACHE_MAX_SIZE
)

__all__ = [
    "ReportCache",
    "report_cache"
]
