"""
Enumeraciones cerradas del dominio

El backend envía estos valores como strings abiertos; cada enum tiene una
variante UNKNOWN para valores que el cliente todavía no conoce.
"""
from enum import Enum


class _OpenEnum(str, Enum):
    """Enum de strings que mapea valores desconocidos a UNKNOWN"""

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return cls.UNKNOWN


class ExceptionReason(_OpenEnum):
    GPS_DRIFT = "gps_drift"
    SHOP_MOVED = "shop_moved"
    ROAD_BLOCKED = "road_blocked"
    ALTERNATE_LOCATION = "alternate_location"
    CUSTOMER_REQUESTED_OUTSIDE = "customer_requested_outside"
    LOW_GPS_ACCURACY = "low_gps_accuracy"
    OTHER = "other"
    UNKNOWN = "unknown"


EXCEPTION_REASON_LABELS = {
    ExceptionReason.GPS_DRIFT: "GPS Drift",
    ExceptionReason.SHOP_MOVED: "Shop Moved",
    ExceptionReason.ROAD_BLOCKED: "Road Blocked",
    ExceptionReason.ALTERNATE_LOCATION: "Alternate Location",
    ExceptionReason.CUSTOMER_REQUESTED_OUTSIDE: "Customer Outside",
    ExceptionReason.LOW_GPS_ACCURACY: "Low GPS Accuracy",
    ExceptionReason.OTHER: "Other",
    ExceptionReason.UNKNOWN: "Unknown",
}


class VisitState(str, Enum):
    """Clasificación derivada de una visita (no se almacena)"""
    VERIFIED = "verified"
    ONGOING = "ongoing"
    EXCEPTION_PENDING = "exception_pending"
    EXCEPTION_APPROVED = "exception_approved"
    EXCEPTION_FLAGGED = "exception_flagged"
    # Visita cerrada, sin verificar y sin excepción
    COMPLETED = "completed"


class ReviewAction(str, Enum):
    APPROVE = "approve"
    FLAG = "flag"


class RiskBand(str, Enum):
    OK = "ok"
    WARN = "warn"
    DANGER = "danger"


class StaffRole(_OpenEnum):
    BOSS = "boss"
    MANAGER = "manager"
    REP = "rep"
    BACK_OFFICE = "back_office"
    DISPATCH_SUPERVISOR = "dispatch_supervisor"
    UNKNOWN = "unknown"


class StaffStatus(_OpenEnum):
    INVITED = "invited"
    ACTIVE = "active"
    INACTIVE = "inactive"
    UNKNOWN = "unknown"


class OrderStatus(_OpenEnum):
    RECEIVED = "received"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    CLOSED = "closed"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


class FlagType(_OpenEnum):
    HIGH_EXCEPTION_RATE = "high_exception_rate"
    FREQUENT_FAR_STARTS = "frequent_far_starts"
    REPEATED_COORDINATES = "repeated_coordinates"
    UNKNOWN = "unknown"


FLAG_TYPE_LABELS = {
    FlagType.HIGH_EXCEPTION_RATE: "High Exception Rate",
    FlagType.FREQUENT_FAR_STARTS: "Frequent Far Starts",
    FlagType.REPEATED_COORDINATES: "Repeated Coordinates",
    FlagType.UNKNOWN: "Unknown",
}


class AtRiskSort(str, Enum):
    VALUE = "value"
    VISIT = "visit"
    ORDER = "order"


class LeaderboardPeriod(str, Enum):
    TODAY = "today"
    WEEK = "week"
    MTD = "mtd"


class LeaderboardSortKey(str, Enum):
    REVENUE = "revenue"
    VISITS = "visits"
    ORDERS = "orders"
    EXCEPTION_RATE = "exception_rate"
