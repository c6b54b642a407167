"""
Schemas de Reportes
Filas pre-agregadas por el backend (cobertura, tiendas en riesgo, ranking, cumplimiento)
y las respuestas derivadas de este servicio
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import date, datetime

from ..models.enums import FlagType, RiskBand, AtRiskSort, LeaderboardPeriod, LeaderboardSortKey


# ============================================================================
# FILAS DEL BACKEND
# ============================================================================

class AtRiskShop(BaseModel):
    """Fila de GET /api/manager/reports/at-risk"""
    shop_id: str
    shop_name: str = ""
    assigned_rep_name: Optional[str] = None
    assigned_rep_id: Optional[str] = None
    days_since_last_visit: Optional[int] = Field(None, description="None = nunca visitada")
    days_since_last_order: Optional[int] = Field(None, description="None = nunca ordenó")
    total_order_value_30d: float = 0
    last_visit_at: Optional[datetime] = None
    last_order_at: Optional[datetime] = None


class UnvisitedShop(BaseModel):
    """Fila de GET /api/manager/reports/unvisited"""
    shop_id: str
    shop_name: str = ""
    shop_address: Optional[str] = None
    assigned_rep_id: Optional[str] = None
    assigned_rep_name: Optional[str] = None
    days_since_last_visit: Optional[int] = None
    revenue_30d: float = 0


class CoverageReportItem(BaseModel):
    """Fila de GET /api/manager/reports/coverage"""
    rep_id: str
    rep_name: str = ""
    total_assigned: int = 0
    shops_visited: int = 0
    visit_count: int = 0
    orders_count: int = 0
    total_sales: float = 0
    coverage_percentage: int = 0


class FlaggedRep(BaseModel):
    """Fila de GET /api/manager/reports/flagged (banderas semanales)"""
    rep_id: str
    rep_name: str = ""
    flag_type: FlagType = FlagType.UNKNOWN
    total_visits: int = 0
    exception_count: int = 0
    exception_rate: float = 0
    detail: Optional[str] = None

    @field_validator("flag_type", mode="before")
    @classmethod
    def parse_flag_type(cls, value):
        return FlagType(value) if isinstance(value, str) else value


class RepStat(BaseModel):
    """Fila de GET /api/manager/reports/leaderboard"""
    rep_id: str
    rep_name: str = ""
    visits_today: int = 0
    orders_today: int = 0
    revenue_today: float = 0
    visits_week: int = 0
    orders_week: int = 0
    revenue_week: float = 0
    visits_mtd: int = 0
    orders_mtd: int = 0
    revenue_mtd: float = 0
    exceptions_mtd: int = 0
    verified_mtd: int = 0
    exception_rate_mtd: float = 0
    verified_rate_mtd: float = 0


class StaffReportItem(BaseModel):
    """Fila de GET /api/manager/reports/staff-report"""
    rep_id: str
    rep_name: str = ""
    visit_count: int = 0
    orders_count: int = 0
    leads_count: int = 0
    total_sales: float = 0
    expenses_sum: float = 0
    compliance_count: int = 0
    compliance_approved_count: int = 0
    distance_km: float = 0
    walking_ms: int = 0
    driving_ms: int = 0
    still_ms: int = 0
    is_on_duty: bool = False
    last_clock_in: Optional[datetime] = None
    last_clock_out: Optional[datetime] = None


# ============================================================================
# RESPUESTAS DE ESTE SERVICIO
# ============================================================================

class AtRiskShopView(AtRiskShop):
    visit_label: str = Field(..., description="'Never' o 'Nd ago'")
    order_label: str
    visit_band: RiskBand
    order_band: RiskBand
    is_high_value: bool = False


class AtRiskStats(BaseModel):
    total: int = 0
    never_visited: int = 0
    overdue_visit: int = 0
    no_orders_30d: int = 0


class AtRiskReportResponse(BaseModel):
    shops: List[AtRiskShopView]
    stats: AtRiskStats
    sort_by: AtRiskSort


class UnvisitedShopView(UnvisitedShop):
    visit_label: str
    visit_band: RiskBand


class UnvisitedStats(BaseModel):
    not_visited: int = 0
    never_visited: int = 0
    with_revenue: int = 0


class UnvisitedReportResponse(BaseModel):
    shops: List[UnvisitedShopView]
    stats: UnvisitedStats
    days: int
    reps: List[dict] = Field(default_factory=list, description="Representantes disponibles para filtrar")


class CoverageItemView(CoverageReportItem):
    coverage_band: RiskBand


class CoverageSummary(BaseModel):
    total_assigned: int = 0
    total_visited: int = 0
    overall_coverage: int = 0
    overall_band: RiskBand = RiskBand.DANGER
    total_sales: float = 0
    active_reps: int = 0


class CoverageSummaryResponse(BaseModel):
    date_from: date
    date_to: date
    report: List[CoverageItemView]
    summary: CoverageSummary


class RepStatView(RepStat):
    rank: int
    revenue: float = Field(..., description="Ingresos del periodo seleccionado")
    visits: int
    orders: int
    exception_band: RiskBand
    verified_band: RiskBand


class TeamTotals(BaseModel):
    revenue: float = 0
    visits: int = 0
    orders: int = 0
    avg_exception_rate: int = 0
    avg_exception_band: RiskBand = RiskBand.OK


class LeaderboardResponse(BaseModel):
    period: LeaderboardPeriod
    sort_key: LeaderboardSortKey
    showing: str = Field(..., description="top o bottom")
    displayed: List[RepStatView]
    ranking: List[RepStatView]
    team: TeamTotals


class ReasonBreakdownItem(BaseModel):
    reason: str
    label: str
    count: int
    percentage: int


class FlaggedRepView(FlaggedRep):
    flag_label: str


class ComplianceResponse(BaseModel):
    flagged: List[FlaggedRepView]
    total_exceptions: int = 0
    pending: int = 0
    approved: int = 0
    flagged_count: int = 0
    reason_breakdown: List[ReasonBreakdownItem]


class StaffReportItemView(StaffReportItem):
    active_time: str = Field(..., description="Tiempo caminando + conduciendo, 'Xh Ym'")
    still_time: str


class StaffReportResponse(BaseModel):
    date_from: date
    date_to: date
    report: List[StaffReportItemView]
