"""
Router de Reportes
Tiendas en riesgo, cobertura, tiendas sin visitar, ranking, cumplimiento y personal
"""
from fastapi import APIRouter, Depends, HTTPException, status, Query
from typing import Optional
from datetime import date, datetime, timedelta, timezone

from ..models import AtRiskSort, LeaderboardPeriod, LeaderboardSortKey
from ..schemas import (
    AtRiskReportResponse, ComplianceResponse, CoverageSummaryResponse, LeaderboardResponse,
    Session, StaffReportResponse, UnvisitedReportResponse
)
from ..services import ReportService, get_report_service
from ..utils import require_manager

router = APIRouter()

UNVISITED_DAY_OPTIONS = (7, 14, 30, 60)


def resolve_range(date_from: Optional[date], date_to: Optional[date], default_days: int):
    """Rango por defecto: los últimos `default_days` días hasta hoy"""
    date_to = date_to or datetime.now(timezone.utc).date()
    date_from = date_from or date_to - timedelta(days=default_days)
    if date_from > date_to:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="date_from no puede ser posterior a date_to"
        )
    return date_from, date_to


@router.get("/reports/at-risk", response_model=AtRiskReportResponse)
async def at_risk_report(
    search: Optional[str] = Query(None, description="Subcadena en tienda o representante"),
    sort_by: AtRiskSort = Query(AtRiskSort.VALUE),
    session: Session = Depends(require_manager),
    service: ReportService = Depends(get_report_service)
):
    """
    Tiendas sin visitas u órdenes recientes
    """
    return await service.at_risk(session, search, sort_by)


@router.get("/reports/coverage", response_model=CoverageSummaryResponse)
async def coverage_report(
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    session: Session = Depends(require_manager),
    service: ReportService = Depends(get_report_service)
):
    """
    Cobertura por representante (por defecto, últimos 7 días)
    """
    date_from, date_to = resolve_range(date_from, date_to, 7)
    return await service.coverage(session, date_from, date_to)


@router.get("/reports/unvisited", response_model=UnvisitedReportResponse)
async def unvisited_report(
    days: int = Query(7, description="Ventana en días: 7, 14, 30 o 60"),
    rep: Optional[str] = Query(None, description="ID del representante o 'all'"),
    session: Session = Depends(require_manager),
    service: ReportService = Depends(get_report_service)
):
    """Tiendas asignadas sin visita en la ventana"""
    if days not in UNVISITED_DAY_OPTIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"days debe ser uno de {', '.join(str(d) for d in UNVISITED_DAY_OPTIONS)}"
        )
    return await service.unvisited(session, days, None if rep == "all" else rep)


@router.get("/reports/leaderboard", response_model=LeaderboardResponse)
async def leaderboard_report(
    period: LeaderboardPeriod = Query(LeaderboardPeriod.MTD),
    sort_key: LeaderboardSortKey = Query(LeaderboardSortKey.REVENUE),
    bottom: bool = Query(False, description="Mostrar los 5 peores en lugar de los 5 mejores"),
    session: Session = Depends(require_manager),
    service: ReportService = Depends(get_report_service)
):
    """
    Ranking del equipo
    """
    return await service.leaderboard(session, period, sort_key, bottom)


@router.get("/reports/compliance", response_model=ComplianceResponse)
async def compliance_report(
    session: Session = Depends(require_manager),
    service: ReportService = Depends(get_report_service)
):
    """Banderas semanales de comportamiento y desglose de excepciones"""
    return await service.compliance(session)


@router.get("/reports/staff", response_model=StaffReportResponse)
async def staff_report(
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    session: Session = Depends(require_manager),
    service: ReportService = Depends(get_report_service)
):
    """
    Reporte de actividad del personal (por defecto, últimos 30 días)
    """
    date_from, date_to = resolve_range(date_from, date_to, 30)
    return await service.staff_report(session, date_from, date_to)
