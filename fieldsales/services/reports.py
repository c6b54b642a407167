"""
Servicio de reportes: obtiene las filas pre-agregadas del backend (con caché
por compañía) y arma las vistas derivadas del dashboard.
"""
from datetime import date
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..cache.report_cache import ReportCache
from ..clients.manager_api_client import ManagerApiClient
from ..models.enums import AtRiskSort, FLAG_TYPE_LABELS, LeaderboardPeriod, LeaderboardSortKey
from ..schemas.reports import (
    AtRiskReportResponse, AtRiskShopView, ComplianceResponse, CoverageItemView,
    CoverageSummaryResponse, FlaggedRepView, LeaderboardResponse, RepStatView,
    StaffReportItemView, StaffReportResponse, UnvisitedReportResponse, UnvisitedShopView
)
from ..schemas.session import Session
from ..schemas.staff import AttendanceLogView, AttendanceResponse, OverviewResponse
from ..schemas.visit import ShopVisitHistoryResponse
from . import aggregations as agg
from .exception_review import ReviewQueue, to_view


class ReportService:
    """
    Reportes del dashboard

    Las filas del backend se cachean por (compañía, reporte, parámetros);
    las vistas se recalculan en cada llamada. Las visitas nunca se cachean.
    """

    def __init__(self, client: ManagerApiClient, cache: ReportCache):
        self.client = client
        self.cache = cache

    async def _cached(
        self,
        session: Session,
        report: str,
        params: Optional[Dict[str, Any]],
        loader: Callable[[], Awaitable[Any]]
    ) -> Any:
        company_id = session.company.id
        cached = self.cache.get(company_id, report, params)
        if cached is not None:
            return cached

        data = await loader()
        self.cache.set(company_id, report, params, data)
        return data

    # ========================================================================
    # TIENDAS EN RIESGO / SIN VISITAR
    # ========================================================================

    async def at_risk(
        self,
        session: Session,
        search: Optional[str] = None,
        sort_by: AtRiskSort = AtRiskSort.VALUE
    ) -> AtRiskReportResponse:
        shops = await self._cached(session, "at-risk", None, lambda: self.client.get_at_risk(session))

        ordered = agg.sort_at_risk(agg.search_shops(shops, search), sort_by)
        views = [
            AtRiskShopView.model_validate({
                **shop.model_dump(),
                "visit_label": agg.days_label(shop.days_since_last_visit),
                "order_label": agg.days_label(shop.days_since_last_order),
                "visit_band": agg.risk_band(shop.days_since_last_visit, agg.LAST_VISIT_THRESHOLDS),
                "order_band": agg.risk_band(shop.days_since_last_order, agg.LAST_ORDER_THRESHOLDS),
                "is_high_value": shop.total_order_value_30d > 0,
            })
            for shop in ordered
        ]
        # Las estadísticas se calculan sobre la lista completa, sin la búsqueda
        return AtRiskReportResponse(shops=views, stats=agg.at_risk_stats(shops), sort_by=sort_by)

    async def unvisited(self, session: Session, days: int, rep: Optional[str] = None) -> UnvisitedReportResponse:
        params = {"days": days, "rep": rep}
        shops = await self._cached(
            session, "unvisited", params,
            lambda: self.client.get_unvisited(session, days, rep)
        )
        views = [
            UnvisitedShopView.model_validate({
                **shop.model_dump(),
                "visit_label": agg.days_label(shop.days_since_last_visit),
                "visit_band": agg.risk_band(shop.days_since_last_visit, agg.UNVISITED_THRESHOLDS),
            })
            for shop in shops
        ]
        return UnvisitedReportResponse(
            shops=views,
            stats=agg.unvisited_stats(shops),
            days=days,
            reps=agg.unvisited_reps(shops),
        )

    # ========================================================================
    # COBERTURA
    # ========================================================================

    async def coverage(self, session: Session, date_from: date, date_to: date) -> CoverageSummaryResponse:
        params = {"date_from": date_from.isoformat(), "date_to": date_to.isoformat()}
        report = await self._cached(
            session, "coverage", params,
            lambda: self.client.get_coverage(session, params["date_from"], params["date_to"])
        )
        items = [
            CoverageItemView.model_validate({
                **item.model_dump(),
                "coverage_band": agg.coverage_band(item.coverage_percentage),
            })
            for item in report
        ]
        return CoverageSummaryResponse(
            date_from=date_from,
            date_to=date_to,
            report=items,
            summary=agg.coverage_summary(report),
        )

    # ========================================================================
    # RANKING
    # ========================================================================

    async def leaderboard(
        self,
        session: Session,
        period: LeaderboardPeriod = LeaderboardPeriod.MTD,
        sort_key: LeaderboardSortKey = LeaderboardSortKey.REVENUE,
        bottom: bool = False
    ) -> LeaderboardResponse:
        reps = await self._cached(session, "leaderboard", None, lambda: self.client.get_leaderboard(session))

        ranked = agg.sort_leaderboard(reps, sort_key, period)
        ranking: List[RepStatView] = []
        for position, rep in enumerate(ranked, start=1):
            revenue, visits, orders = agg.period_values(rep, period)
            ranking.append(RepStatView.model_validate({
                **rep.model_dump(),
                "rank": position,
                "revenue": revenue,
                "visits": visits,
                "orders": orders,
                "exception_band": agg.exception_rate_band(rep.exception_rate_mtd),
                "verified_band": agg.verified_rate_band(rep.verified_rate_mtd),
            }))

        top, worst = agg.top_and_bottom(ranking)
        return LeaderboardResponse(
            period=period,
            sort_key=sort_key,
            showing="bottom" if bottom else "top",
            displayed=worst if bottom else top,
            ranking=ranking,
            team=agg.team_totals(reps, period),
        )

    # ========================================================================
    # CUMPLIMIENTO
    # ========================================================================

    async def compliance(self, session: Session) -> ComplianceResponse:
        flagged = await self._cached(session, "flagged", None, lambda: self.client.get_flagged(session))
        exceptions = await self.client.list_visits(session, exceptions_only=True)

        stats = ReviewQueue(exceptions).stats()
        return ComplianceResponse(
            flagged=[
                FlaggedRepView.model_validate({
                    **rep.model_dump(),
                    "flag_label": FLAG_TYPE_LABELS[rep.flag_type],
                })
                for rep in flagged
            ],
            total_exceptions=stats.total,
            pending=stats.pending,
            approved=stats.approved,
            flagged_count=stats.flagged,
            reason_breakdown=agg.reason_breakdown(exceptions),
        )

    # ========================================================================
    # PERSONAL
    # ========================================================================

    async def staff_report(self, session: Session, date_from: date, date_to: date) -> StaffReportResponse:
        params = {"date_from": date_from.isoformat(), "date_to": date_to.isoformat()}
        rows = await self._cached(
            session, "staff-report", params,
            lambda: self.client.get_staff_report(session, params["date_from"], params["date_to"])
        )
        return StaffReportResponse(
            date_from=date_from,
            date_to=date_to,
            report=[
                StaffReportItemView.model_validate({
                    **row.model_dump(),
                    "active_time": agg.format_duration_ms(row.walking_ms + row.driving_ms),
                    "still_time": agg.format_duration_ms(row.still_ms),
                })
                for row in rows
            ],
        )

    async def overview(self, session: Session, today: date) -> OverviewResponse:
        staff, counts = await self._cached(session, "staff", None, lambda: self.client.list_staff(session))
        shops = await self._cached(session, "shops", None, lambda: self.client.list_shops(session))
        leads = await self._cached(session, "leads", None, lambda: self.client.list_leads(session))
        visits = await self.client.list_visits(session)

        return agg.dashboard_overview(staff, counts, shops, leads, visits, today)

    async def attendance(self, session: Session) -> AttendanceResponse:
        logs = await self.client.list_attendance(session)
        views = [
            AttendanceLogView.model_validate({
                **log.model_dump(),
                "duration_minutes": agg.attendance_minutes(log),
            })
            for log in logs
        ]
        return AttendanceResponse(logs=views, on_duty=sum(1 for log in logs if log.clock_out_at is None))

    # ========================================================================
    # HISTORIAL DE TIENDA
    # ========================================================================

    async def shop_history(self, session: Session, shop_id: str) -> ShopVisitHistoryResponse:
        visits = await self.client.list_visits(session, shop=shop_id)
        return ShopVisitHistoryResponse(
            shop_id=shop_id,
            visits=[to_view(v) for v in visits],
            **agg.shop_visit_stats(visits),
        )
