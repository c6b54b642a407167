"""
Modelos del dominio: enumeraciones cerradas con variante UNKNOWN
"""
from .enums import (
    ExceptionReason,
    EXCEPTION_REASON_LABELS,
    VisitState,
    ReviewAction,
    RiskBand,
    StaffRole,
    StaffStatus,
    OrderStatus,
    FlagType,
    FLAG_TYPE_LABELS,
    AtRiskSort,
    LeaderboardPeriod,
    LeaderboardSortKey,
)

__all__ = [
    "ExceptionReason",
    "EXCEPTION_REASON_LABELS",
    "VisitState",
    "ReviewAction",
    "RiskBand",
    "StaffRole",
    "StaffStatus",
    "OrderStatus",
    "FlagType",
    "FLAG_TYPE_LABELS",
    "AtRiskSort",
    "LeaderboardPeriod",
    "LeaderboardSortKey",
]
