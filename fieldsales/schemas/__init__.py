"""
Schemas Pydantic para validación
"""
from .common import (
    envelope_error,
    parse_collection,
    parse_record,
    HealthResponse
)
from .visit import (
    Visit,
    VisitReviewRequest,
    ManagerNoteRequest,
    VisitView,
    ExceptionQueueStats,
    ExceptionQueueResponse,
    VisitBoardStats,
    VisitBoardResponse,
    ShopVisitHistoryResponse
)
from .reports import (
    AtRiskShop,
    UnvisitedShop,
    CoverageReportItem,
    FlaggedRep,
    RepStat,
    StaffReportItem,
    AtRiskReportResponse,
    UnvisitedReportResponse,
    CoverageSummaryResponse,
    LeaderboardResponse,
    ComplianceResponse,
    StaffReportResponse
)
from .staff import (
    Staff,
    StaffCounts,
    Shop,
    Lead,
    AttendanceLog,
    AttendanceResponse,
    OverviewResponse
)
from .order import (
    Order,
    OrderItem,
    OrderStatusUpdate,
    DispatchQueueResponse
)
from .session import (
    Session,
    SessionUser,
    SessionCompany,
    SessionResponse
)

__all__ = [
    # Contrato
    "envelope_error",
    "parse_collection",
    "parse_record",
    "HealthResponse",
    # Visit
    "Visit",
    "VisitReviewRequest",
    "ManagerNoteRequest",
    "VisitView",
    "ExceptionQueueStats",
    "ExceptionQueueResponse",
    "VisitBoardStats",
    "VisitBoardResponse",
    "ShopVisitHistoryResponse",
    # Reports
    "AtRiskShop",
    "UnvisitedShop",
    "CoverageReportItem",
    "FlaggedRep",
    "RepStat",
    "StaffReportItem",
    "AtRiskReportResponse",
    "UnvisitedReportResponse",
    "CoverageSummaryResponse",
    "LeaderboardResponse",
    "ComplianceResponse",
    "StaffReportResponse",
    # Staff
    "Staff",
    "StaffCounts",
    "Shop",
    "Lead",
    "AttendanceLog",
    "AttendanceResponse",
    "OverviewResponse",
    # Order
    "Order",
    "OrderItem",
    "OrderStatusUpdate",
    "DispatchQueueResponse",
    # Session
    "Session",
    "SessionUser",
    "SessionCompany",
    "SessionResponse"
]
