"""
Schemas de Visita (Visit)
Verificación por geocerca, excepciones y revisión del manager
"""
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List, Dict
from datetime import datetime

from ..models.enums import ExceptionReason, ReviewAction, VisitState, RiskBand


class Visit(BaseModel):
    """Visita tal como la entrega el backend (GET /api/manager/visits)"""
    id: str = Field(..., description="ID opaco de la visita")
    shop_id: str = Field(..., description="ID de la tienda")
    shop_name: str = Field("", description="Nombre de la tienda")
    rep_company_user_id: str = Field(..., description="ID del representante en la compañía")
    rep_name: str = Field("", description="Nombre del representante")
    started_at: datetime = Field(..., description="Inicio de la visita (check-in)")
    ended_at: Optional[datetime] = Field(None, description="Fin de la visita; ausente = en curso")
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    # Resultado de la verificación por geocerca
    is_verified: bool = Field(False, description="Dentro de la geocerca sin excepción")
    distance_m: Optional[float] = Field(None, description="Distancia al centro de la geocerca")
    gps_accuracy_m: Optional[float] = Field(None, description="Radio de precisión reportado")
    verification_method: Optional[str] = None

    # Excepción reportada por el representante
    exception_reason: Optional[ExceptionReason] = None
    exception_note: Optional[str] = None

    # Revisión del manager (mutuamente excluyentes)
    approved_by_manager_id: Optional[str] = None
    approved_at: Optional[datetime] = None
    flagged_by_manager_id: Optional[str] = None
    manager_note: Optional[str] = None

    @field_validator("exception_reason", mode="before")
    @classmethod
    def blank_reason_is_absent(cls, value):
        if isinstance(value, str):
            if not value.strip():
                return None
            return ExceptionReason(value)
        return value

    @field_validator("is_verified", mode="before")
    @classmethod
    def null_is_unverified(cls, value):
        return False if value is None else value

    class Config:
        from_attributes = True
        json_schema_extra = {
            "example": {
                "id": "v1",
                "shop_id": "s1",
                "shop_name": "Mini Market Central",
                "rep_company_user_id": "cu-7",
                "rep_name": "Asha Perera",
                "started_at": "2026-03-02T09:15:00Z",
                "ended_at": None,
                "is_verified": False,
                "distance_m": 412.5,
                "gps_accuracy_m": 35.0,
                "verification_method": "gps_geofence",
                "exception_reason": "gps_drift",
                "exception_note": "Signal kept jumping across the road",
                "approved_by_manager_id": None,
                "flagged_by_manager_id": None,
                "manager_note": None
            }
        }


class VisitReviewRequest(BaseModel):
    """
    Cuerpo del PATCH /api/manager/visits/{id}
    Exactamente uno de approve/flag debe estar activo
    """
    approve: Optional[bool] = None
    flag: Optional[bool] = None
    manager_note: Optional[str] = Field(None, alias="managerNote", max_length=5000)

    model_config = {"populate_by_name": True}

    @model_validator(mode='after')
    def validate_single_action(self):
        """Validar que se envíe una sola acción"""
        if bool(self.approve) == bool(self.flag):
            raise ValueError("Se debe enviar exactamente una acción: approve o flag")
        return self

    @classmethod
    def for_action(cls, action: ReviewAction, note: Optional[str] = None) -> "VisitReviewRequest":
        note = note.strip() if note else None
        if action == ReviewAction.APPROVE:
            return cls(approve=True, manager_note=note or None)
        return cls(flag=True, manager_note=note or None)

    def to_body(self) -> dict:
        """Serializar con las claves del backend omitiendo campos vacíos"""
        return self.model_dump(by_alias=True, exclude_none=True)


class ManagerNoteRequest(BaseModel):
    """Schema para aprobar o marcar una visita"""
    manager_note: Optional[str] = Field(None, max_length=5000, description="Nota opcional del manager")

    class Config:
        json_schema_extra = {
            "example": {
                "manager_note": "looks fine"
            }
        }


class VisitView(Visit):
    """Visita con su clasificación derivada"""
    state: VisitState = Field(..., description="Estado derivado de la visita")
    review_status: Optional[str] = Field(None, description="pending, approved o flagged (solo excepciones)")
    reason_label: Optional[str] = Field(None, description="Etiqueta del motivo de excepción")
    gps_accuracy_band: Optional[RiskBand] = Field(None, description="ok o warn según la precisión GPS")
    can_review: bool = Field(False, description="Se ofrecen las acciones approve/flag")


class ExceptionQueueStats(BaseModel):
    total: int = 0
    pending: int = 0
    approved: int = 0
    flagged: int = 0


class ExceptionQueueResponse(BaseModel):
    """Cola de revisión de excepciones"""
    visits: List[VisitView] = Field(..., description="Excepciones filtradas")
    stats: ExceptionQueueStats = Field(..., description="Conteos sobre la cola completa (sin filtros)")
    reps: List[str] = Field(default_factory=list, description="Representantes con excepciones")
    reasons: Dict[str, str] = Field(default_factory=dict, description="Motivos disponibles y sus etiquetas")


class VisitBoardStats(BaseModel):
    total: int = 0
    verified: int = 0
    exceptions: int = 0
    pending: int = 0
    visits_today: int = 0


class VisitBoardResponse(BaseModel):
    """Listado de todas las visitas con su clasificación"""
    visits: List[VisitView]
    stats: VisitBoardStats


class ShopVisitHistoryResponse(BaseModel):
    """Historial de visitas de una tienda"""
    shop_id: str
    visits: List[VisitView]
    total_visits: int = 0
    last_visit_at: Optional[datetime] = None
    avg_duration_minutes: int = Field(0, description="Promedio sobre visitas cerradas, en minutos")
