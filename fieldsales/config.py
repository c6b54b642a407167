"""
Configuración del microservicio MS-FIELDSALES-PY
"""
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Configuración de la aplicación"""

    # API Configuration
    APP_NAME: str = "MS-FIELDSALES-PY - Manager Dashboard Service"
    APP_VERSION: str = "1.0.0"
    API_PREFIX: str = "/api/v1/dashboard"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Backend de gestión (rutas /api/manager/* y /api/auth/*)
    MANAGER_API_URL: str = "http://manager-api:3000"
    # None = sin timeout, la petición corre hasta completar o fallar
    BACKEND_TIMEOUT_SECONDS: Optional[float] = None

    # JWT / Sesión
    SECRET_KEY: str = "kora-dev-only-jwt-secret-change-me"
    ALGORITHM: str = "HS256"
    SESSION_COOKIE_NAME: str = "kora_session"

    # CORS Configuration
    CORS_ORIGINS: list = [
        "http://localhost:3000",
        "http://localhost:8080",
        "http://localhost"
    ]

    # Service Configuration
    SERVICE_HOST: str = "0.0.0.0"
    SERVICE_PORT: int = 8000

    # Caché de reportes (0 = deshabilitado)
    REPORT_CACHE_TTL_SECONDS: int = 60
    REPORT_CACHE_MAX_SIZE: int = 500

    # Business Rules - umbrales de riesgo en días
    VISIT_WARN_DAYS: int = 7
    VISIT_DANGER_DAYS: int = 14
    ORDER_WARN_DAYS: int = 14
    ORDER_DANGER_DAYS: int = 30
    UNVISITED_WARN_DAYS: int = 14
    UNVISITED_DANGER_DAYS: int = 30
    GPS_ACCURACY_WARN_M: float = 50.0
    LEADERBOARD_SIZE: int = 5

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
