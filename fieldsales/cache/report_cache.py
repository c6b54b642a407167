"""
Caché en memoria para reportes pre-agregados
Evita repetir llamadas al backend mientras no haya escrituras
"""
from datetime import datetime, timedelta
from typing import Optional, Dict, Any
import hashlib
import logging

logger = logging.getLogger(__name__)


class ReportCache:
    """
    Caché LRU (Least Recently Used) para reportes del backend

    Estrategia:
    - Key: hash(company_id + nombre del reporte + parámetros ordenados)
    - TTL configurable; ttl_seconds=0 deshabilita el caché
    - Invalidación explícita por compañía después de cada escritura exitosa
    - Las colecciones de visitas nunca se cachean
    """

    def __init__(self, ttl_seconds: int = 60, max_size: int = 500):
        """
        Args:
            ttl_seconds: Tiempo de vida de cada entrada en segundos
            max_size: Máximo número de reportes en caché
        """
        self._cache: Dict[str, Dict[str, Any]] = {}
        self.ttl = timedelta(seconds=ttl_seconds)
        self.max_size = max_size

        # Estadísticas
        self.hits = 0
        self.misses = 0
        self.invalidations = 0

    @property
    def enabled(self) -> bool:
        return self.ttl.total_seconds() > 0 and self.max_size > 0

    def _generate_key(self, company_id: str, report: str, params: Optional[Dict[str, Any]] = None) -> str:
        """
        Genera key único para el reporte

        Mismos parámetros en distinto orden = misma key
        """
        items = sorted((params or {}).items())
        encoded = ",".join(f"{k}={v}" for k, v in items)
        data = f"company:{company_id}:report:{report}:params:{encoded}"
        return hashlib.sha256(data.encode()).hexdigest()[:16]

    def get(self, company_id: str, report: str, params: Optional[Dict[str, Any]] = None) -> Optional[Any]:
        """
        Obtiene el payload del caché si existe y no expiró

        Returns:
            Payload cacheado, None si no existe
        """
        if not self.enabled:
            return None

        key = self._generate_key(company_id, report, params)

        if key in self._cache:
            cached = self._cache[key]

            age = datetime.now() - cached["timestamp"]
            if age < self.ttl:
                cached["last_access"] = datetime.now()
                self.hits += 1
                logger.debug(f"CACHE HIT: reporte {report} compañía {company_id}")
                return cached["data"]

            del self._cache[key]
            logger.debug(f"CACHE EXPIRED: reporte {report} compañía {company_id}")

        self.misses += 1
        return None

    def set(self, company_id: str, report: str, params: Optional[Dict[str, Any]], data: Any):
        """
        Guarda un reporte en caché

        Si el caché está lleno, elimina la entrada menos usada (LRU)
        """
        if not self.enabled:
            return

        key = self._generate_key(company_id, report, params)

        if key not in self._cache and len(self._cache) >= self.max_size:
            self._evict_lru()

        now = datetime.now()
        self._cache[key] = {
            "data": data,
            "timestamp": now,
            "last_access": now,
            "company_id": company_id,
            "report": report
        }

    def _evict_lru(self):
        """Elimina la entrada menos recientemente usada (LRU)"""
        if not self._cache:
            return

        oldest_key = min(
            self._cache.keys(),
            key=lambda k: self._cache[k]["last_access"]
        )

        evicted = self._cache.pop(oldest_key)
        logger.debug(f"CACHE EVICT (LRU): reporte {evicted['report']} compañía {evicted['company_id']}")

    def invalidate_company(self, company_id: str) -> int:
        """
        Invalida todos los reportes de una compañía

        Usar después de:
        - Aprobar o marcar una visita
        - Cambiar el estado de un pedido
        """
        keys_to_delete = [
            key for key, cached in self._cache.items()
            if cached["company_id"] == company_id
        ]

        for key in keys_to_delete:
            del self._cache[key]

        self.invalidations += len(keys_to_delete)

        if keys_to_delete:
            logger.info(f"CACHE INVALIDATE: {len(keys_to_delete)} reporte(s) de compañía {company_id}")
        return len(keys_to_delete)

    def get_stats(self) -> Dict:
        """Obtener estadísticas del caché"""
        total_requests = self.hits + self.misses
        hit_rate = self.hits / total_requests if total_requests > 0 else 0

        return {
            "size": len(self._cache),
            "max_size": self.max_size,
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": round(hit_rate, 3),
            "invalidations": self.invalidations,
            "ttl_seconds": self.ttl.total_seconds()
        }
