"""
MS-FIELDSALES-PY - Microservicio del Dashboard de Managers
FastAPI Application
"""
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from .config import settings
from .cache.report_cache import ReportCache
from .schemas import HealthResponse
from .utils.errors import DashboardError

logger = logging.getLogger(__name__)


def setup_logging():
    """Configurar el handler raíz según LOG_LEVEL"""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )


setup_logging()

# Crear aplicación FastAPI
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="""
    Dashboard de managers para equipos de ventas en campo.

    ## Funcionalidades

    * **Visitas**: Clasificación por geocerca, cola de excepciones, aprobar o marcar
    * **Reportes**: Tiendas en riesgo, cobertura, tiendas sin visitar, ranking, cumplimiento
    * **Personal**: Reporte de actividad, asistencia, contadores de inicio
    * **Bodega**: Cola de despacho y envío de pedidos
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# Configurar CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DashboardError)
async def dashboard_error_handler(request: Request, exc: DashboardError):
    """Convertir errores del dashboard en el sobre {ok: false, error, kind}"""
    logger.info(f"{request.method} {request.url.path} -> {exc.kind}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


# Importar y configurar routers después de crear la app para evitar imports circulares
from .routers import (
    session_router,
    visits_router,
    reports_router,
    warehouse_router
)
from .services import get_report_cache

# Incluir routers
app.include_router(
    session_router,
    prefix=settings.API_PREFIX,
    tags=["session"]
)

app.include_router(
    visits_router,
    prefix=settings.API_PREFIX,
    tags=["visits"]
)

app.include_router(
    reports_router,
    prefix=settings.API_PREFIX,
    tags=["reports"]
)

app.include_router(
    warehouse_router,
    prefix=settings.API_PREFIX,
    tags=["warehouse"]
)


@app.get("/", include_in_schema=False)
async def root():
    """Redireccionar a la documentación"""
    return RedirectResponse(url="/docs")


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def root_health(cache: ReportCache = Depends(get_report_cache)):
    """Health check raíz con las estadísticas del caché de reportes"""
    return HealthResponse(
        status="healthy",
        service=settings.APP_NAME,
        version=settings.APP_VERSION,
        backend=settings.MANAGER_API_URL,
        cache=cache.get_stats()
    )


# Event handlers
@app.on_event("startup")
async def startup_event():
    """Evento de inicio de la aplicación"""
    logger.info(f"[STARTUP] {settings.APP_NAME} v{settings.APP_VERSION} iniciado")
    logger.info(f"Documentación disponible en: http://{settings.SERVICE_HOST}:{settings.SERVICE_PORT}/docs")
    logger.info(f"Endpoints del dashboard en: {settings.API_PREFIX}")
    logger.info(f"Backend de gestión: {settings.MANAGER_API_URL}")


@app.on_event("shutdown")
async def shutdown_event():
    """Evento de cierre de la aplicación"""
    logger.info(f"[SHUTDOWN] {settings.APP_NAME} detenido")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "fieldsales.main:app",
        host=settings.SERVICE_HOST,
        port=settings.SERVICE_PORT,
        reload=settings.DEBUG
    )
