"""
Cliente HTTP para comunicarse con el backend de gestión (/api/manager/*, /api/auth/*)
"""
import httpx
from pydantic import ValidationError
from typing import Optional, Dict, Any, List, TYPE_CHECKING
import logging

from ..config import settings
from ..schemas.common import envelope_error, parse_collection
from ..schemas.visit import Visit, VisitReviewRequest
from ..schemas.reports import (
    AtRiskShop, UnvisitedShop, CoverageReportItem, FlaggedRep, RepStat, StaffReportItem
)
from ..schemas.staff import Staff, StaffCounts, Shop, Lead, AttendanceLog
from ..schemas.order import Order, OrderStatusUpdate
from ..utils.errors import NetworkFailure, ApplicationError, ActionRejected

if TYPE_CHECKING:
    from ..schemas.session import Session

logger = logging.getLogger(__name__)


class ManagerApiClient:
    """
    Cliente para interactuar con el backend de gestión

    - Reenvía el token de sesión como cookie
    - No reintenta automáticamente
    - Lecturas: status no 2xx -> NetworkFailure, ok=false -> ApplicationError
    - Escrituras: 4xx u ok=false -> ActionRejected, 5xx -> NetworkFailure
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = (base_url or settings.MANAGER_API_URL).rstrip('/')
        self.timeout = timeout if timeout is not None else settings.BACKEND_TIMEOUT_SECONDS
        self.transport = transport

    def _build_client(self, session: "Session") -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            cookies={settings.SESSION_COOKIE_NAME: session.token},
            transport=self.transport
        )

    async def _request(
        self,
        session: "Session",
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
        write: bool = False
    ) -> Dict[str, Any]:
        """
        Ejecutar una petición y validar el sobre {ok, error}

        Returns:
            Sobre JSON del backend ({} si la lectura no devolvió JSON)
        """
        query = {k: v for k, v in (params or {}).items() if v is not None}
        logger.debug(f"{method} {path} params={query}")

        try:
            async with self._build_client(session) as client:
                response = await client.request(method, path, params=query, json=body)
        except httpx.TimeoutException:
            logger.warning(f"Timeout en {method} {path}")
            raise NetworkFailure("El backend no respondió a tiempo")
        except httpx.RequestError as e:
            logger.warning(f"Error de conexión en {method} {path}: {str(e)}")
            raise NetworkFailure(f"No se pudo conectar con el backend: {str(e)}")

        try:
            payload = response.json()
        except ValueError:
            payload = None

        message = envelope_error(payload)

        if response.status_code >= 400:
            detail = message or f"HTTP {response.status_code}"
            if write and response.status_code < 500:
                logger.info(f"Escritura rechazada {method} {path}: {response.status_code} - {detail}")
                raise ActionRejected(detail)
            logger.warning(f"Error en {method} {path}: {response.status_code} - {detail}")
            raise NetworkFailure(detail)

        if message:
            if write:
                logger.info(f"Escritura rechazada {method} {path}: {message}")
                raise ActionRejected(message)
            raise ApplicationError(message)

        if not isinstance(payload, dict):
            if write:
                raise NetworkFailure("Respuesta inválida del backend")
            logger.warning(f"Respuesta no JSON en {method} {path}, se trata como vacía")
            return {}

        return payload

    # ========================================================================
    # VISITAS
    # ========================================================================

    async def list_visits(
        self,
        session: "Session",
        shop: Optional[str] = None,
        exceptions_only: bool = False,
        region: Optional[str] = None
    ) -> List[Visit]:
        """GET /api/manager/visits[?shop][&exceptions_only=true][&region]"""
        params = {
            "shop": shop,
            "exceptions_only": "true" if exceptions_only else None,
            "region": region
        }
        payload = await self._request(session, "GET", "/api/manager/visits", params=params)
        return parse_collection(payload, "visits", Visit)

    async def review_visit(self, session: "Session", visit_id: str, review: VisitReviewRequest) -> Dict[str, Any]:
        """PATCH /api/manager/visits/{id} con {approve|flag: true, managerNote?}"""
        return await self._request(
            session, "PATCH", f"/api/manager/visits/{visit_id}",
            body=review.to_body(), write=True
        )

    # ========================================================================
    # REPORTES
    # ========================================================================

    async def get_at_risk(self, session: "Session") -> List[AtRiskShop]:
        payload = await self._request(session, "GET", "/api/manager/reports/at-risk")
        return parse_collection(payload, "shops", AtRiskShop)

    async def get_coverage(self, session: "Session", date_from: str, date_to: str) -> List[CoverageReportItem]:
        payload = await self._request(
            session, "GET", "/api/manager/reports/coverage",
            params={"dateFrom": date_from, "dateTo": date_to}
        )
        return parse_collection(payload, "report", CoverageReportItem)

    async def get_unvisited(self, session: "Session", days: int, rep: Optional[str] = None) -> List[UnvisitedShop]:
        payload = await self._request(
            session, "GET", "/api/manager/reports/unvisited",
            params={"days": days, "rep": rep}
        )
        return parse_collection(payload, "shops", UnvisitedShop)

    async def get_flagged(self, session: "Session") -> List[FlaggedRep]:
        payload = await self._request(session, "GET", "/api/manager/reports/flagged")
        return parse_collection(payload, "flagged", FlaggedRep)

    async def get_leaderboard(self, session: "Session") -> List[RepStat]:
        payload = await self._request(session, "GET", "/api/manager/reports/leaderboard")
        return parse_collection(payload, "reps", RepStat)

    async def get_staff_report(self, session: "Session", date_from: str, date_to: str) -> List[StaffReportItem]:
        payload = await self._request(
            session, "GET", "/api/manager/reports/staff-report",
            params={"dateFrom": date_from, "dateTo": date_to}
        )
        return parse_collection(payload, "report", StaffReportItem)

    # ========================================================================
    # PERSONAL, TIENDAS, LEADS, ASISTENCIA
    # ========================================================================

    async def list_staff(self, session: "Session") -> tuple[List[Staff], StaffCounts]:
        payload = await self._request(session, "GET", "/api/manager/staff")
        try:
            counts = StaffCounts.model_validate(payload.get("counts") or {})
        except ValidationError:
            logger.warning("Conteos de personal inválidos, se usan ceros")
            counts = StaffCounts()
        return parse_collection(payload, "staff", Staff), counts

    async def list_shops(self, session: "Session") -> List[Shop]:
        payload = await self._request(session, "GET", "/api/manager/shops")
        return parse_collection(payload, "shops", Shop)

    async def list_leads(self, session: "Session") -> List[Lead]:
        payload = await self._request(session, "GET", "/api/manager/leads")
        return parse_collection(payload, "leads", Lead)

    async def list_attendance(self, session: "Session") -> List[AttendanceLog]:
        payload = await self._request(session, "GET", "/api/manager/attendance")
        return parse_collection(payload, "logs", AttendanceLog)

    # ========================================================================
    # PEDIDOS
    # ========================================================================

    async def list_orders(self, session: "Session", status: Optional[str] = None) -> List[Order]:
        payload = await self._request(session, "GET", "/api/manager/orders", params={"status": status})
        return parse_collection(payload, "orders", Order)

    async def update_order(self, session: "Session", order_id: str, update: OrderStatusUpdate) -> Dict[str, Any]:
        return await self._request(
            session, "PATCH", f"/api/manager/orders/{order_id}",
            body=update.to_body(), write=True
        )

    # ========================================================================
    # AUTH
    # ========================================================================

    async def get_me(self, session: "Session") -> Dict[str, Any]:
        """GET /api/auth/me"""
        return await self._request(session, "GET", "/api/auth/me")


# Instancia global del cliente
manager_api = ManagerApiClient()
