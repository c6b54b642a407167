"""
Motor de revisión de excepciones

Clasifica cada visita en un único estado derivado y aplica las dos únicas
transiciones permitidas: Pending -> Approved y Pending -> Flagged.
"""
import logging
from typing import Iterable, List, Optional, Set, Tuple

from ..cache.report_cache import ReportCache
from ..clients.manager_api_client import ManagerApiClient
from ..models.enums import ExceptionReason, EXCEPTION_REASON_LABELS, ReviewAction, VisitState
from ..schemas.session import Session
from ..schemas.visit import ExceptionQueueStats, Visit, VisitReviewRequest, VisitView
from ..utils.errors import ActionRejected, NotFound
from .aggregations import gps_accuracy_band

logger = logging.getLogger(__name__)

ALL = "all"

# (company_id, visit_id) con una revisión en curso, compartido entre requests
_in_flight_reviews: Set[Tuple[str, str]] = set()


def classify(visit: Visit) -> VisitState:
    """
    Estado derivado de la visita

    Precedencia: Verified, Exception-Approved, Exception-Flagged,
    Exception-Pending, Ongoing y Completed. Nunca lanza excepciones.
    """
    if visit.is_verified:
        return VisitState.VERIFIED

    if visit.exception_reason is not None:
        if visit.approved_by_manager_id:
            if visit.flagged_by_manager_id:
                logger.warning(f"Visita {visit.id} aprobada y marcada a la vez, se toma como aprobada")
            return VisitState.EXCEPTION_APPROVED
        if visit.flagged_by_manager_id:
            return VisitState.EXCEPTION_FLAGGED
        return VisitState.EXCEPTION_PENDING

    if visit.ended_at is None:
        return VisitState.ONGOING
    return VisitState.COMPLETED


def is_pending(visit: Visit) -> bool:
    return classify(visit) == VisitState.EXCEPTION_PENDING


def review_status(visit: Visit) -> Optional[str]:
    """pending, approved o flagged para excepciones; None en otro caso"""
    return {
        VisitState.EXCEPTION_PENDING: "pending",
        VisitState.EXCEPTION_APPROVED: "approved",
        VisitState.EXCEPTION_FLAGGED: "flagged",
    }.get(classify(visit))


def to_view(visit: Visit) -> VisitView:
    state = classify(visit)
    reason = visit.exception_reason
    return VisitView.model_validate({
        **visit.model_dump(),
        "state": state,
        "review_status": review_status(visit),
        "reason_label": EXCEPTION_REASON_LABELS[reason] if reason is not None else None,
        "gps_accuracy_band": gps_accuracy_band(visit.gps_accuracy_m),
        "can_review": state == VisitState.EXCEPTION_PENDING,
    })


def build_review_payload(action: ReviewAction, note: Optional[str] = None) -> VisitReviewRequest:
    return VisitReviewRequest.for_action(action, note)


class ReviewQueue:
    """Cola de excepciones tal como la entregó el backend (orden de inserción)"""

    def __init__(self, visits: Iterable[Visit]):
        self.visits: List[Visit] = list(visits)

    def __len__(self) -> int:
        return len(self.visits)

    def get(self, visit_id: str) -> Optional[Visit]:
        return next((v for v in self.visits if v.id == visit_id), None)

    def stats(self) -> ExceptionQueueStats:
        # Mismos estados que muestra la vista y usa el filtro
        states = [classify(v) for v in self.visits]
        return ExceptionQueueStats(
            total=len(self.visits),
            pending=states.count(VisitState.EXCEPTION_PENDING),
            approved=states.count(VisitState.EXCEPTION_APPROVED),
            flagged=states.count(VisitState.EXCEPTION_FLAGGED),
        )

    def reps(self) -> List[str]:
        """Nombres únicos de representantes en orden de primera aparición"""
        seen = set()
        names = []
        for visit in self.visits:
            if visit.rep_name not in seen:
                seen.add(visit.rep_name)
                names.append(visit.rep_name)
        return names

    def filter(
        self,
        rep: Optional[str] = None,
        reason: Optional[str] = None,
        pending_only: bool = False
    ) -> List[Visit]:
        """
        Filtros de igualdad sin distinguir mayúsculas; "all" o vacío = sin filtro.
        Se conserva el orden del backend.
        """
        rep_filter = rep.casefold() if rep and rep != ALL else None
        reason_filter = ExceptionReason(reason) if reason and reason != ALL else None

        result = []
        for visit in self.visits:
            if rep_filter is not None and visit.rep_name.casefold() != rep_filter:
                continue
            if reason_filter is not None and visit.exception_reason != reason_filter:
                continue
            if pending_only and not is_pending(visit):
                continue
            result.append(visit)
        return result


class ExceptionReviewService:
    """
    Acciones approve/flag del manager

    - Valida contra un snapshot recién obtenido que la visita siga pendiente
    - Rechaza una segunda acción sobre la misma visita mientras la primera está en curso
    - Tras una escritura exitosa invalida los reportes y vuelve a leer la cola completa
    - Un rechazo del backend no dispara una nueva lectura
    """

    def __init__(
        self,
        client: ManagerApiClient,
        cache: ReportCache,
        in_flight: Optional[Set[Tuple[str, str]]] = None
    ):
        self.client = client
        self.cache = cache
        self._in_flight = _in_flight_reviews if in_flight is None else in_flight

    async def load_queue(self, session: Session, region: Optional[str] = None) -> ReviewQueue:
        visits = await self.client.list_visits(session, exceptions_only=True, region=region)
        return ReviewQueue(visits)

    async def approve(self, session: Session, visit_id: str, note: Optional[str] = None) -> ReviewQueue:
        return await self.review(session, visit_id, ReviewAction.APPROVE, note)

    async def flag(self, session: Session, visit_id: str, note: Optional[str] = None) -> ReviewQueue:
        return await self.review(session, visit_id, ReviewAction.FLAG, note)

    async def review(
        self,
        session: Session,
        visit_id: str,
        action: ReviewAction,
        note: Optional[str] = None
    ) -> ReviewQueue:
        """
        Aplicar approve o flag sobre una excepción pendiente

        Returns:
            La cola de excepciones vuelta a leer después de la escritura

        Raises:
            NotFound: La visita no está en la cola de excepciones
            ActionRejected: Ya revisada, acción en curso o rechazo del backend
        """
        key = (session.company.id, visit_id)
        if key in self._in_flight:
            raise ActionRejected(f"Ya hay una acción en curso para la visita {visit_id}")

        self._in_flight.add(key)
        try:
            queue = await self.load_queue(session)
            visit = queue.get(visit_id)
            if visit is None:
                raise NotFound(f"Visita {visit_id} no encontrada en la cola de excepciones")
            if not is_pending(visit):
                raise ActionRejected(
                    f"La visita {visit_id} ya no está pendiente ({review_status(visit) or classify(visit).value})"
                )

            payload = build_review_payload(action, note)
            await self.client.review_visit(session, visit_id, payload)
        finally:
            self._in_flight.discard(key)

        logger.info(f"Visita {visit_id}: {action.value} por manager {session.manager_id}")
        self.cache.invalidate_company(session.company.id)
        return await self.load_queue(session)
