"""
Schemas de Personal, Tiendas, Leads y Asistencia
"""
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime

from ..models.enums import StaffRole, StaffStatus


class Staff(BaseModel):
    """Fila de GET /api/manager/staff"""
    company_user_id: str
    user_id: Optional[str] = None
    full_name: str = ""
    email: Optional[str] = None
    role: StaffRole = StaffRole.UNKNOWN
    status: StaffStatus = StaffStatus.UNKNOWN
    phone: Optional[str] = None
    manager_company_user_id: Optional[str] = None
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None
    assigned_shops_count: Optional[int] = None

    @field_validator("role", mode="before")
    @classmethod
    def parse_role(cls, value):
        return StaffRole(value) if isinstance(value, str) else value

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, value):
        return StaffStatus(value) if isinstance(value, str) else value


class StaffCounts(BaseModel):
    active: int = 0
    invited: int = 0
    inactive: int = 0


class Shop(BaseModel):
    """Fila de GET /api/manager/shops"""
    id: str
    external_shop_code: Optional[str] = None
    name: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    geofence_radius_m: Optional[float] = None
    is_active: bool = True
    assignment_count: int = 0
    address: Optional[str] = None
    region_id: Optional[str] = None
    region_name: Optional[str] = None


class Lead(BaseModel):
    """Fila de GET /api/manager/leads"""
    id: str
    name: str = ""
    status: str = ""
    shop_id: Optional[str] = None
    assigned_rep_company_user_id: Optional[str] = None
    assigned_rep_name: Optional[str] = None
    created_at: Optional[datetime] = None
    converted_at: Optional[datetime] = None


class AttendanceLog(BaseModel):
    """Fila de GET /api/manager/attendance"""
    id: str
    rep_company_user_id: str
    rep_name: str = ""
    clock_in_at: datetime
    clock_out_at: Optional[datetime] = None
    notes: Optional[str] = None


class OverviewResponse(BaseModel):
    """Contadores del inicio del dashboard"""
    active_reps: int = Field(0, description="Personal con rol rep")
    total_staff: int = Field(0, description="Personal activo")
    new_leads: int = Field(0, description="Leads con estado 'new'")
    total_shops: int = 0
    visits_today: int = 0


class AttendanceLogView(AttendanceLog):
    duration_minutes: Optional[int] = Field(None, description="None mientras no marque salida")


class AttendanceResponse(BaseModel):
    logs: List[AttendanceLogView]
    on_duty: int = Field(0, description="Jornadas abiertas (sin salida)")
