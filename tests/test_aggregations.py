"""
Tests de las vistas de agregación
"""
from datetime import date, datetime, timedelta, timezone

from fieldsales.models.enums import AtRiskSort, LeaderboardPeriod, LeaderboardSortKey, RiskBand
from fieldsales.schemas.reports import AtRiskShop, CoverageReportItem, RepStat
from fieldsales.schemas.staff import AttendanceLog, Lead, Shop, Staff, StaffCounts
from fieldsales.schemas.visit import Visit
from fieldsales.services import aggregations as agg

from conftest import make_visit


def shop(shop_id, visit_days=None, order_days=None, value=0.0, name=None, rep=None) -> AtRiskShop:
    return AtRiskShop(
        shop_id=shop_id,
        shop_name=name or f"Shop {shop_id}",
        assigned_rep_name=rep,
        days_since_last_visit=visit_days,
        days_since_last_order=order_days,
        total_order_value_30d=value,
    )


def rep(rep_id, **values) -> RepStat:
    return RepStat(rep_id=rep_id, rep_name=rep_id.upper(), **values)


# ============================================================================
# ARITMÉTICA
# ============================================================================

def test_js_round_rounds_half_up():
    assert agg.js_round(2.5) == 3
    assert agg.js_round(0.5) == 1
    assert agg.js_round(-2.5) == -2
    assert agg.js_round(24.49) == 24


def test_exception_rate_example():
    assert agg.exception_rate(3, 12) == 25
    assert agg.exception_rate(5, 0) == 0


def test_coverage_percentage_bounds():
    assert agg.coverage_percentage(0, 0) == 0
    assert agg.coverage_percentage(7, 0) == 0
    assert agg.coverage_percentage(1, 3) == 33
    assert agg.coverage_percentage(3, 3) == 100
    assert agg.coverage_percentage(5, 3) == 100
    for visited in range(0, 12):
        for assigned in range(0, 12):
            assert 0 <= agg.coverage_percentage(visited, assigned) <= 100


def test_days_since_floors_whole_days():
    now = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
    assert agg.days_since(None, now) is None
    assert agg.days_since(now - timedelta(hours=23, minutes=59), now) == 0
    assert agg.days_since(now - timedelta(days=3, hours=5), now) == 3
    # Sin zona horaria se interpreta como UTC
    assert agg.days_since(datetime(2026, 3, 3, 12, 0), now) == 7


def test_never_label_and_sentinel():
    assert agg.days_label(None) == "Never"
    assert agg.days_label(4) == "4d ago"
    assert agg.staleness_key(None) == 9999
    assert agg.staleness_key(None) > agg.staleness_key(9998)


# ============================================================================
# BANDAS
# ============================================================================

def test_last_visit_risk_band_boundaries():
    t = agg.LAST_VISIT_THRESHOLDS
    assert agg.risk_band(6, t) == RiskBand.OK
    assert agg.risk_band(7, t) == RiskBand.WARN
    assert agg.risk_band(13, t) == RiskBand.WARN
    assert agg.risk_band(14, t) == RiskBand.DANGER
    assert agg.risk_band(None, t) == RiskBand.DANGER


def test_last_order_risk_band_boundaries():
    t = agg.LAST_ORDER_THRESHOLDS
    assert agg.risk_band(13, t) == RiskBand.OK
    assert agg.risk_band(14, t) == RiskBand.WARN
    assert agg.risk_band(29, t) == RiskBand.WARN
    assert agg.risk_band(30, t) == RiskBand.DANGER


def test_rate_bands():
    assert agg.coverage_band(49) == RiskBand.DANGER
    assert agg.coverage_band(50) == RiskBand.WARN
    assert agg.coverage_band(80) == RiskBand.OK
    assert agg.exception_rate_band(0) == RiskBand.OK
    assert agg.exception_rate_band(19) == RiskBand.WARN
    assert agg.exception_rate_band(20) == RiskBand.DANGER
    assert agg.verified_rate_band(80) == RiskBand.OK
    assert agg.verified_rate_band(50) == RiskBand.WARN
    assert agg.verified_rate_band(49) == RiskBand.DANGER
    assert agg.team_exception_band(10) == RiskBand.OK
    assert agg.team_exception_band(11) == RiskBand.WARN
    assert agg.team_exception_band(21) == RiskBand.DANGER
    assert agg.gps_accuracy_band(None) is None
    assert agg.gps_accuracy_band(50) == RiskBand.OK
    assert agg.gps_accuracy_band(50.1) == RiskBand.WARN


# ============================================================================
# TIENDAS EN RIESGO
# ============================================================================

def test_staleness_sort_puts_never_first():
    shops = [shop("a", visit_days=20), shop("b", visit_days=None), shop("c", visit_days=3)]
    assert [s.shop_id for s in agg.sort_at_risk(shops, AtRiskSort.VISIT)] == ["b", "a", "c"]


def test_order_sort_uses_order_staleness():
    shops = [shop("a", order_days=2), shop("b", order_days=40), shop("c", order_days=None)]
    assert [s.shop_id for s in agg.sort_at_risk(shops, AtRiskSort.ORDER)] == ["c", "b", "a"]


def test_value_sort_breaks_ties_by_stalest_visit():
    shops = [
        shop("a", value=100, visit_days=3),
        shop("b", value=500, visit_days=1),
        shop("c", value=100, visit_days=None),
        shop("d", value=100, visit_days=10),
    ]
    assert [s.shop_id for s in agg.sort_at_risk(shops, AtRiskSort.VALUE)] == ["b", "c", "d", "a"]


def test_search_shops_matches_shop_or_rep_case_insensitive():
    shops = [shop("a", name="Green Grocer", rep="Asha"), shop("b", name="Corner Store", rep=None)]
    assert [s.shop_id for s in agg.search_shops(shops, "GROCER")] == ["a"]
    assert [s.shop_id for s in agg.search_shops(shops, "asha")] == ["a"]
    assert len(agg.search_shops(shops, "")) == 2


def test_at_risk_stats():
    shops = [
        shop("a", visit_days=None, value=0),
        shop("b", visit_days=7, value=120),
        shop("c", visit_days=6, value=0),
    ]
    stats = agg.at_risk_stats(shops)
    assert (stats.total, stats.never_visited, stats.overdue_visit, stats.no_orders_30d) == (3, 1, 1, 2)


def test_empty_collections_fold_to_zero():
    assert agg.at_risk_stats([]).total == 0
    summary = agg.coverage_summary([])
    assert summary.overall_coverage == 0 and summary.active_reps == 0
    assert agg.team_totals([]).avg_exception_rate == 0
    assert agg.reason_breakdown([]) == []


# ============================================================================
# COBERTURA Y RANKING
# ============================================================================

def test_coverage_summary():
    report = [
        CoverageReportItem(rep_id="r1", total_assigned=10, shops_visited=9, total_sales=100),
        CoverageReportItem(rep_id="r2", total_assigned=10, shops_visited=4, total_sales=50),
    ]
    summary = agg.coverage_summary(report)
    assert summary.total_assigned == 20
    assert summary.total_visited == 13
    assert summary.overall_coverage == 65
    assert summary.overall_band == RiskBand.WARN
    assert summary.total_sales == 150
    assert summary.active_reps == 2


def test_leaderboard_sort_direction_per_metric():
    a = rep("a", exception_rate_mtd=5, revenue_mtd=100)
    b = rep("b", exception_rate_mtd=20, revenue_mtd=200)
    by_rate = agg.sort_leaderboard([b, a], LeaderboardSortKey.EXCEPTION_RATE, LeaderboardPeriod.MTD)
    by_revenue = agg.sort_leaderboard([a, b], LeaderboardSortKey.REVENUE, LeaderboardPeriod.MTD)
    assert [r.rep_id for r in by_rate] == ["a", "b"]
    assert [r.rep_id for r in by_revenue] == ["b", "a"]


def test_leaderboard_metric_follows_period():
    assert agg.leaderboard_metric(LeaderboardSortKey.VISITS, LeaderboardPeriod.WEEK) == "visits_week"
    assert agg.leaderboard_metric(LeaderboardSortKey.EXCEPTION_RATE, LeaderboardPeriod.TODAY) == "exception_rate_mtd"


def test_top_and_bottom_five():
    ranked = [rep(f"r{i}") for i in range(7)]
    top, bottom = agg.top_and_bottom(ranked)
    assert [r.rep_id for r in top] == ["r0", "r1", "r2", "r3", "r4"]
    assert [r.rep_id for r in bottom] == ["r6", "r5", "r4", "r3", "r2"]


def test_team_totals_for_period():
    reps = [
        rep("a", revenue_week=100, visits_week=3, orders_week=1, exception_rate_mtd=10),
        rep("b", revenue_week=50, visits_week=2, orders_week=2, exception_rate_mtd=15),
    ]
    totals = agg.team_totals(reps, LeaderboardPeriod.WEEK)
    assert (totals.revenue, totals.visits, totals.orders) == (150, 5, 3)
    assert totals.avg_exception_rate == 13
    assert totals.avg_exception_band == RiskBand.WARN


# ============================================================================
# CUMPLIMIENTO, VISITAS Y PERSONAL
# ============================================================================

def test_reason_breakdown_counts_and_percentages():
    exceptions = [
        Visit.model_validate(make_visit("v1", exception_reason="gps_drift")),
        Visit.model_validate(make_visit("v2", exception_reason="shop_moved")),
        Visit.model_validate(make_visit("v3", exception_reason="gps_drift")),
    ]
    breakdown = agg.reason_breakdown(exceptions)
    assert [(b.reason, b.count, b.percentage) for b in breakdown] == [
        ("gps_drift", 2, 67),
        ("shop_moved", 1, 33),
    ]
    assert breakdown[0].label == "GPS Drift"


def test_visit_board_stats_and_search():
    now = datetime.now(timezone.utc)
    old = now - timedelta(days=3)
    visits = [
        Visit.model_validate(make_visit("v1", is_verified=True, rep_name="Asha", started_at=now.isoformat())),
        Visit.model_validate(make_visit("v2", exception_reason="gps_drift", started_at=old.isoformat())),
    ]
    exceptions = [visits[1]]
    stats = agg.visit_board_stats(visits, exceptions, now.date())
    assert (stats.total, stats.verified, stats.exceptions, stats.pending) == (2, 1, 1, 1)
    assert stats.visits_today == 1
    assert [v.id for v in agg.search_visits(visits, "ASHA")] == ["v1"]


def test_visit_board_pending_skips_verified_exceptions():
    today = datetime.now(timezone.utc).date()
    verified = Visit.model_validate(make_visit("v1", is_verified=True, exception_reason="gps_drift"))
    stats = agg.visit_board_stats([verified], [verified], today)
    assert (stats.exceptions, stats.pending) == (1, 0)


def test_shop_visit_stats_average_duration():
    start = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
    visits = [
        Visit.model_validate(make_visit("v1", started_at=start.isoformat(),
                                        ended_at=(start + timedelta(minutes=20)).isoformat())),
        Visit.model_validate(make_visit("v2", started_at=(start + timedelta(days=1)).isoformat(),
                                        ended_at=(start + timedelta(days=1, minutes=45)).isoformat())),
        Visit.model_validate(make_visit("v3", started_at=(start + timedelta(days=2)).isoformat(),
                                        ended_at=None)),
    ]
    stats = agg.shop_visit_stats(visits)
    assert stats["total_visits"] == 3
    assert stats["avg_duration_minutes"] == 33
    assert stats["last_visit_at"] == start + timedelta(days=2)


def test_attendance_minutes_and_duration_format():
    clock_in = datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc)
    log = AttendanceLog(id="a1", rep_company_user_id="cu-7", clock_in_at=clock_in,
                        clock_out_at=clock_in + timedelta(hours=8, minutes=30))
    assert agg.attendance_minutes(log) == 510
    assert agg.attendance_minutes(log.model_copy(update={"clock_out_at": None})) is None
    assert agg.format_duration_ms(0) == "0h 0m"
    assert agg.format_duration_ms(5_400_000 + 59_999) == "1h 30m"


def test_dashboard_overview():
    today = date(2026, 3, 1)
    staff = [
        Staff(company_user_id="1", role="rep"),
        Staff(company_user_id="2", role="REP"),
        Staff(company_user_id="3", role="manager"),
        Staff(company_user_id="4", role="driver"),
    ]
    leads = [Lead(id="l1", status="new"), Lead(id="l2", status="converted")]
    visits = [
        Visit.model_validate(make_visit("v1", started_at="2026-03-01T08:00:00Z")),
        Visit.model_validate(make_visit("v2", started_at="2026-02-28T08:00:00Z")),
    ]
    overview = agg.dashboard_overview(staff, StaffCounts(active=3), [Shop(id="s1")], leads, visits, today)
    assert overview.active_reps == 2
    assert overview.total_staff == 3
    assert overview.new_leads == 1
    assert overview.total_shops == 1
    assert overview.visits_today == 1
