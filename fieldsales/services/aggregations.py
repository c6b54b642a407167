"""
Vistas de agregación del dashboard

Funciones puras y síncronas que pliegan las colecciones del backend
(visitas, tiendas, ranking, personal) en conteos, porcentajes y bandas de riesgo.
Se recalculan completas en cada consulta.
"""
import math
from collections import Counter
from datetime import date, datetime, timezone
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple

from ..config import settings
from ..models.enums import (
    AtRiskSort, ExceptionReason, EXCEPTION_REASON_LABELS, LeaderboardPeriod,
    LeaderboardSortKey, RiskBand, StaffRole
)
from ..schemas.reports import (
    AtRiskShop, AtRiskStats, CoverageReportItem, CoverageSummary, ReasonBreakdownItem,
    RepStat, TeamTotals, UnvisitedShop, UnvisitedStats
)
from ..schemas.staff import AttendanceLog, Lead, OverviewResponse, Shop, Staff, StaffCounts
from ..schemas.visit import Visit, VisitBoardStats

# Valor de orden para "nunca": más antiguo que cualquier conteo finito de días
NEVER_SENTINEL = 9999
MS_PER_DAY = 86400000


class RiskThresholds(NamedTuple):
    warn_at: int
    danger_at: int


LAST_VISIT_THRESHOLDS = RiskThresholds(settings.VISIT_WARN_DAYS, settings.VISIT_DANGER_DAYS)
LAST_ORDER_THRESHOLDS = RiskThresholds(settings.ORDER_WARN_DAYS, settings.ORDER_DANGER_DAYS)
UNVISITED_THRESHOLDS = RiskThresholds(settings.UNVISITED_WARN_DAYS, settings.UNVISITED_DANGER_DAYS)


# ============================================================================
# ARITMÉTICA BÁSICA
# ============================================================================

def js_round(value: float) -> int:
    """Redondeo half-up (0.5 sube), no el redondeo bancario de round()"""
    return math.floor(value + 0.5)


def percentage(part: float, whole: float) -> int:
    """round(part / whole * 100); 0 cuando whole es 0"""
    if not whole:
        return 0
    return js_round(part / whole * 100)


def coverage_percentage(shops_visited: int, total_assigned: int) -> int:
    """Porcentaje de tiendas asignadas visitadas, siempre en [0, 100]"""
    return max(0, min(100, percentage(shops_visited, total_assigned)))


def exception_rate(exception_count: int, total_visits: int) -> int:
    return percentage(exception_count, total_visits)


def _aware(value: datetime) -> datetime:
    # Los timestamps sin zona se interpretan en UTC
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def days_since(timestamp: Optional[datetime], now: Optional[datetime] = None) -> Optional[int]:
    """
    Días completos transcurridos: floor((now - timestamp) / 86400000 ms)

    Returns:
        None si el timestamp está ausente
    """
    if timestamp is None:
        return None
    now = _aware(now or datetime.now(timezone.utc))
    elapsed_ms = (now - _aware(timestamp)).total_seconds() * 1000
    return math.floor(elapsed_ms / MS_PER_DAY)


def days_label(days: Optional[int]) -> str:
    return "Never" if days is None else f"{days}d ago"


def staleness_key(days: Optional[int]) -> int:
    return NEVER_SENTINEL if days is None else days


# ============================================================================
# BANDAS
# ============================================================================

def risk_band(days: Optional[int], thresholds: RiskThresholds) -> RiskBand:
    """
    Banda de riesgo por días: [0, warn) ok, [warn, danger) warn, [danger, ∞) danger

    None (nunca) cae en danger.
    """
    if days is None or days >= thresholds.danger_at:
        return RiskBand.DANGER
    if days >= thresholds.warn_at:
        return RiskBand.WARN
    return RiskBand.OK


def coverage_band(coverage: float) -> RiskBand:
    if coverage < 50:
        return RiskBand.DANGER
    if coverage < 80:
        return RiskBand.WARN
    return RiskBand.OK


def exception_rate_band(rate: float) -> RiskBand:
    if rate == 0:
        return RiskBand.OK
    if rate < 20:
        return RiskBand.WARN
    return RiskBand.DANGER


def verified_rate_band(rate: float) -> RiskBand:
    if rate >= 80:
        return RiskBand.OK
    if rate >= 50:
        return RiskBand.WARN
    return RiskBand.DANGER


def team_exception_band(avg_rate: float) -> RiskBand:
    if avg_rate > 20:
        return RiskBand.DANGER
    if avg_rate > 10:
        return RiskBand.WARN
    return RiskBand.OK


def gps_accuracy_band(accuracy_m: Optional[float]) -> Optional[RiskBand]:
    if accuracy_m is None:
        return None
    return RiskBand.WARN if accuracy_m > settings.GPS_ACCURACY_WARN_M else RiskBand.OK


# ============================================================================
# TIENDAS EN RIESGO / SIN VISITAR
# ============================================================================

def _matches(query: str, *values: Optional[str]) -> bool:
    q = query.lower()
    return any(q in (value or "").lower() for value in values)


def search_shops(shops: Iterable[AtRiskShop], query: Optional[str]) -> List[AtRiskShop]:
    """Filtro por subcadena (sin mayúsculas) en nombre de tienda o representante"""
    if not query:
        return list(shops)
    return [s for s in shops if _matches(query, s.shop_name, s.assigned_rep_name)]


def sort_at_risk(shops: Iterable[AtRiskShop], sort_by: AtRiskSort = AtRiskSort.VALUE) -> List[AtRiskShop]:
    """
    Ordenar tiendas en riesgo

    - value: mayor valor de 30 días primero; empate por visita más antigua
    - visit / order: más antigua primero, "nunca" con el centinela 9999
    """
    if sort_by == AtRiskSort.VISIT:
        return sorted(shops, key=lambda s: -staleness_key(s.days_since_last_visit))
    if sort_by == AtRiskSort.ORDER:
        return sorted(shops, key=lambda s: -staleness_key(s.days_since_last_order))
    return sorted(
        shops,
        key=lambda s: (-s.total_order_value_30d, -staleness_key(s.days_since_last_visit))
    )


def at_risk_stats(shops: Sequence[AtRiskShop]) -> AtRiskStats:
    return AtRiskStats(
        total=len(shops),
        never_visited=sum(1 for s in shops if s.days_since_last_visit is None),
        overdue_visit=sum(
            1 for s in shops
            if s.days_since_last_visit is not None
            and s.days_since_last_visit >= LAST_VISIT_THRESHOLDS.warn_at
        ),
        no_orders_30d=sum(1 for s in shops if s.total_order_value_30d == 0),
    )


def unvisited_stats(shops: Sequence[UnvisitedShop]) -> UnvisitedStats:
    return UnvisitedStats(
        not_visited=len(shops),
        never_visited=sum(1 for s in shops if s.days_since_last_visit is None),
        with_revenue=sum(1 for s in shops if s.revenue_30d > 0),
    )


def unvisited_reps(shops: Iterable[UnvisitedShop]) -> List[dict]:
    """Representantes únicos (por id, en orden de aparición) para el filtro"""
    seen = set()
    reps = []
    for shop in shops:
        if shop.assigned_rep_id and shop.assigned_rep_id not in seen:
            seen.add(shop.assigned_rep_id)
            reps.append({"id": shop.assigned_rep_id, "name": shop.assigned_rep_name})
    return reps


# ============================================================================
# COBERTURA
# ============================================================================

def coverage_summary(report: Sequence[CoverageReportItem]) -> CoverageSummary:
    total_assigned = sum(item.total_assigned for item in report)
    total_visited = sum(item.shops_visited for item in report)
    overall = coverage_percentage(total_visited, total_assigned)
    return CoverageSummary(
        total_assigned=total_assigned,
        total_visited=total_visited,
        overall_coverage=overall,
        overall_band=coverage_band(overall),
        total_sales=sum(item.total_sales for item in report),
        active_reps=len(report),
    )


# ============================================================================
# RANKING (LEADERBOARD)
# ============================================================================

def leaderboard_metric(sort_key: LeaderboardSortKey, period: LeaderboardPeriod) -> str:
    """Nombre del campo de RepStat usado para ordenar"""
    if sort_key == LeaderboardSortKey.EXCEPTION_RATE:
        return "exception_rate_mtd"
    return f"{sort_key.value}_{period.value}"


def sort_leaderboard(
    reps: Iterable[RepStat],
    sort_key: LeaderboardSortKey = LeaderboardSortKey.REVENUE,
    period: LeaderboardPeriod = LeaderboardPeriod.MTD
) -> List[RepStat]:
    """
    Mejor primero. La tasa de excepciones es una métrica de "maldad" y se
    ordena ascendente; ingresos, visitas y pedidos se ordenan descendente.
    """
    field = leaderboard_metric(sort_key, period)
    ascending = sort_key == LeaderboardSortKey.EXCEPTION_RATE
    return sorted(reps, key=lambda r: getattr(r, field), reverse=not ascending)


def top_and_bottom(ranked: Sequence[RepStat], size: Optional[int] = None) -> Tuple[List[RepStat], List[RepStat]]:
    """Primeros `size` del ranking y últimos `size` (el peor primero)"""
    size = settings.LEADERBOARD_SIZE if size is None else size
    return list(ranked[:size]), list(reversed(ranked))[:size]


def period_values(rep: RepStat, period: LeaderboardPeriod) -> Tuple[float, int, int]:
    """(ingresos, visitas, pedidos) del periodo"""
    suffix = period.value
    return (
        getattr(rep, f"revenue_{suffix}"),
        getattr(rep, f"visits_{suffix}"),
        getattr(rep, f"orders_{suffix}"),
    )


def team_totals(reps: Sequence[RepStat], period: LeaderboardPeriod = LeaderboardPeriod.MTD) -> TeamTotals:
    revenue, visits, orders = 0.0, 0, 0
    for rep in reps:
        r, v, o = period_values(rep, period)
        revenue += r
        visits += v
        orders += o

    avg_rate = js_round(sum(r.exception_rate_mtd for r in reps) / len(reps)) if reps else 0
    return TeamTotals(
        revenue=revenue,
        visits=visits,
        orders=orders,
        avg_exception_rate=avg_rate,
        avg_exception_band=team_exception_band(avg_rate),
    )


# ============================================================================
# CUMPLIMIENTO Y VISITAS
# ============================================================================

def reason_breakdown(exceptions: Sequence[Visit]) -> List[ReasonBreakdownItem]:
    """
    Conteo y porcentaje por motivo de excepción, mayor primero

    Las visitas sin motivo se cuentan como "other". El orden entre motivos
    con el mismo conteo es el de primera aparición.
    """
    counts = Counter(v.exception_reason or ExceptionReason.OTHER for v in exceptions)
    total = len(exceptions)
    ordered = sorted(counts.items(), key=lambda item: -item[1])
    return [
        ReasonBreakdownItem(
            reason=reason.value,
            label=EXCEPTION_REASON_LABELS[reason],
            count=count,
            percentage=percentage(count, total),
        )
        for reason, count in ordered
    ]


def is_on_day(timestamp: Optional[datetime], day: date) -> bool:
    return timestamp is not None and timestamp.date() == day


def search_visits(visits: Iterable[Visit], query: Optional[str]) -> List[Visit]:
    """Subcadena (sin mayúsculas) en nombre de representante o tienda"""
    if not query:
        return list(visits)
    return [v for v in visits if _matches(query, v.rep_name, v.shop_name)]


def visit_board_stats(all_visits: Sequence[Visit], exceptions: Sequence[Visit], today: date) -> VisitBoardStats:
    # Import local para evitar el import circular con exception_review
    from .exception_review import is_pending

    return VisitBoardStats(
        total=len(all_visits),
        verified=sum(1 for v in all_visits if v.is_verified),
        exceptions=len(exceptions),
        pending=sum(1 for v in exceptions if is_pending(v)),
        visits_today=sum(1 for v in all_visits if is_on_day(v.started_at, today)),
    )


def visit_duration_minutes(visit: Visit) -> Optional[int]:
    if visit.ended_at is None:
        return None
    return js_round((_aware(visit.ended_at) - _aware(visit.started_at)).total_seconds() / 60)


def shop_visit_stats(visits: Sequence[Visit]) -> dict:
    """Historial de una tienda: total, última visita y duración promedio en minutos"""
    completed = [v for v in visits if v.ended_at is not None]
    avg_duration = 0
    if completed:
        total_minutes = sum(
            (_aware(v.ended_at) - _aware(v.started_at)).total_seconds() / 60 for v in completed
        )
        avg_duration = js_round(total_minutes / len(completed))

    last_visit = max((v.started_at for v in visits), key=_aware, default=None)
    return {
        "total_visits": len(visits),
        "last_visit_at": last_visit,
        "avg_duration_minutes": avg_duration,
    }


# ============================================================================
# PERSONAL Y ASISTENCIA
# ============================================================================

def attendance_minutes(log: AttendanceLog) -> Optional[int]:
    """Minutos de jornada; None mientras siga sin marcar salida"""
    if log.clock_out_at is None:
        return None
    return js_round((_aware(log.clock_out_at) - _aware(log.clock_in_at)).total_seconds() / 60)


def format_duration_ms(ms: int) -> str:
    hours = ms // 3600000
    minutes = (ms % 3600000) // 60000
    return f"{hours}h {minutes}m"


def dashboard_overview(
    staff: Sequence[Staff],
    counts: StaffCounts,
    shops: Sequence[Shop],
    leads: Sequence[Lead],
    visits: Sequence[Visit],
    today: date
) -> OverviewResponse:
    return OverviewResponse(
        active_reps=sum(1 for s in staff if s.role == StaffRole.REP),
        total_staff=counts.active,
        new_leads=sum(1 for lead in leads if lead.status == "new"),
        total_shops=len(shops),
        visits_today=sum(1 for v in visits if is_on_day(v.started_at, today)),
    )
