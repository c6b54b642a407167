"""
Router de Sesión y Dashboard de inicio
"""
from fastapi import APIRouter, Depends
from datetime import datetime, timezone

from ..clients import ManagerApiClient
from ..schemas import AttendanceResponse, OverviewResponse, Session, SessionResponse
from ..services import ReportService, get_manager_api, get_report_service
from ..utils import get_session, require_manager

router = APIRouter()


@router.get("/session", response_model=SessionResponse)
async def current_session(session: Session = Depends(get_session)):
    """Sesión actual (usuario y compañía) según el token"""
    return SessionResponse(user=session.user, company=session.company)


@router.post("/session/refresh", response_model=SessionResponse)
async def refresh_session(
    session: Session = Depends(get_session),
    client: ManagerApiClient = Depends(get_manager_api)
):
    """
    Nueva sesión desde GET /api/auth/me
    La sesión del request no se modifica
    """
    refreshed = await session.refresh(client)
    return SessionResponse(user=refreshed.user, company=refreshed.company)


@router.get("/overview", response_model=OverviewResponse)
async def overview(
    session: Session = Depends(require_manager),
    service: ReportService = Depends(get_report_service)
):
    """Contadores del inicio: reps, personal activo, leads nuevos, tiendas y visitas de hoy"""
    return await service.overview(session, datetime.now(timezone.utc).date())


@router.get("/attendance", response_model=AttendanceResponse)
async def attendance(
    session: Session = Depends(require_manager),
    service: ReportService = Depends(get_report_service)
):
    """Registros de asistencia con la duración de cada jornada"""
    return await service.attendance(session)
