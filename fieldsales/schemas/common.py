"""
Utilidades del contrato con el backend de gestión

Todas las respuestas del backend tienen la forma {ok, error?, message?, <colección>?}.
"""
import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


def envelope_error(payload: Any) -> Optional[str]:
    """
    Retorna el mensaje de error si el sobre indica ok=false, None en otro caso

    El backend usa tanto `error` como `message` para el texto del error.
    """
    if not isinstance(payload, dict):
        return None
    if payload.get("ok") is False:
        return payload.get("error") or payload.get("message") or "Request failed"
    return None


def parse_collection(payload: Any, key: str, model: Type[T]) -> List[T]:
    """
    Extraer una colección del sobre sin lanzar nunca excepciones

    - Sobre ausente o con forma inválida: lista vacía
    - Colección ausente o que no es lista: lista vacía
    - Filas inválidas: se descartan y se registran como warning
    """
    if not isinstance(payload, dict):
        logger.warning(f"Respuesta sin sobre válido al leer '{key}': {type(payload).__name__}")
        return []

    rows = payload.get(key)
    if rows is None:
        return []
    if not isinstance(rows, list):
        logger.warning(f"Colección '{key}' con forma inválida: {type(rows).__name__}")
        return []

    items: List[T] = []
    for index, row in enumerate(rows):
        try:
            items.append(model.model_validate(row))
        except ValidationError as e:
            logger.warning(f"Fila {index} de '{key}' descartada: {e.error_count()} error(es) de validación")
    return items


def parse_record(payload: Any, key: str, model: Type[T]) -> Optional[T]:
    """Extraer un único registro del sobre, None si falta o es inválido"""
    if not isinstance(payload, dict) or not isinstance(payload.get(key), dict):
        return None
    try:
        return model.model_validate(payload[key])
    except ValidationError as e:
        logger.warning(f"Registro '{key}' descartado: {e.error_count()} error(es) de validación")
        return None


class HealthResponse(BaseModel):
    """Schema para health check"""
    status: str = Field(..., description="Estado del servicio")
    service: str = Field(..., description="Nombre del servicio")
    version: str = Field(..., description="Versión del servicio")
    backend: str = Field(..., description="URL del backend de gestión")
    cache: Dict[str, Any] = Field(default_factory=dict, description="Estadísticas del caché de reportes")

    class Config:
        json_schema_extra = {
            "example": {
                "status": "healthy",
                "service": "MS-FIELDSALES-PY",
                "version": "1.0.0",
                "backend": "http://manager-api:3000",
                "cache": {"size": 12, "max_size": 500, "hits": 40, "misses": 12, "hit_rate": 0.769, "invalidations": 3, "ttl_seconds": 60.0}
            }
        }
