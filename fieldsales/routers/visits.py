"""
Router de Visitas (Visits)
Tablero de visitas, cola de excepciones y revisión del manager
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional
from datetime import datetime, timezone

from ..clients import ManagerApiClient
from ..models import EXCEPTION_REASON_LABELS, ExceptionReason
from ..schemas import (
    ExceptionQueueResponse, ManagerNoteRequest, Session, ShopVisitHistoryResponse,
    VisitBoardResponse
)
from ..services import (
    ExceptionReviewService, ReportService, ReviewQueue,
    get_manager_api, get_report_service, get_review_service
)
from ..services.aggregations import search_visits, visit_board_stats
from ..services.exception_review import to_view
from ..utils import require_manager

router = APIRouter()


def build_queue_response(
    queue: ReviewQueue,
    rep: Optional[str] = None,
    reason: Optional[str] = None,
    pending_only: bool = False
) -> ExceptionQueueResponse:
    """Cola filtrada con estadísticas sobre la cola completa"""
    return ExceptionQueueResponse(
        visits=[to_view(v) for v in queue.filter(rep, reason, pending_only)],
        stats=queue.stats(),
        reps=queue.reps(),
        reasons={
            key.value: label
            for key, label in EXCEPTION_REASON_LABELS.items()
            if key != ExceptionReason.UNKNOWN
        },
    )


# ============================================================================
# ENDPOINTS DE VISITAS
# ============================================================================

@router.get("/visits", response_model=VisitBoardResponse)
async def list_visits(
    search: Optional[str] = Query(None, description="Subcadena en representante o tienda"),
    region: Optional[str] = Query(None),
    shop: Optional[str] = Query(None),
    session: Session = Depends(require_manager),
    client: ManagerApiClient = Depends(get_manager_api)
):
    """
    Todas las visitas con su clasificación y los contadores del tablero
    """
    all_visits = await client.list_visits(session, shop=shop, region=region)
    exceptions = await client.list_visits(session, shop=shop, exceptions_only=True, region=region)

    today = datetime.now(timezone.utc).date()
    return VisitBoardResponse(
        visits=[to_view(v) for v in search_visits(all_visits, search)],
        stats=visit_board_stats(all_visits, exceptions, today),
    )


@router.get("/visits/exceptions", response_model=ExceptionQueueResponse)
async def list_exceptions(
    rep: Optional[str] = Query(None, description="Nombre del representante o 'all'"),
    reason: Optional[str] = Query(None, description="Motivo de excepción o 'all'"),
    pending_only: bool = Query(False),
    region: Optional[str] = Query(None),
    session: Session = Depends(require_manager),
    service: ExceptionReviewService = Depends(get_review_service)
):
    """
    Cola de revisión de excepciones en el orden del backend
    """
    queue = await service.load_queue(session, region=region)
    return build_queue_response(queue, rep, reason, pending_only)


@router.patch("/visits/{visit_id}/approve", response_model=ExceptionQueueResponse)
async def approve_visit(
    visit_id: str,
    payload: Optional[ManagerNoteRequest] = None,
    session: Session = Depends(require_manager),
    service: ExceptionReviewService = Depends(get_review_service)
):
    """
    Aprobar una excepción pendiente
    Devuelve la cola de excepciones vuelta a leer
    """
    note = payload.manager_note if payload else None
    queue = await service.approve(session, visit_id, note)
    return build_queue_response(queue)


@router.patch("/visits/{visit_id}/flag", response_model=ExceptionQueueResponse)
async def flag_visit(
    visit_id: str,
    payload: Optional[ManagerNoteRequest] = None,
    session: Session = Depends(require_manager),
    service: ExceptionReviewService = Depends(get_review_service)
):
    """
    Marcar una excepción pendiente como sospechosa
    """
    note = payload.manager_note if payload else None
    queue = await service.flag(session, visit_id, note)
    return build_queue_response(queue)


@router.get("/shops/{shop_id}/visits", response_model=ShopVisitHistoryResponse)
async def shop_visit_history(
    shop_id: str,
    session: Session = Depends(require_manager),
    service: ReportService = Depends(get_report_service)
):
    """Historial de visitas de una tienda con duración promedio"""
    return await service.shop_history(session, shop_id)
