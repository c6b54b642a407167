"""
Despacho de bodega: ciclo de vida de pedidos solo hacia adelante
received -> processing -> shipped -> closed; cancelled es terminal
"""
import logging
from typing import List, Optional

from ..cache.report_cache import ReportCache
from ..clients.manager_api_client import ManagerApiClient
from ..models.enums import OrderStatus
from ..schemas.order import DispatchQueueResponse, Order, OrderStatusUpdate
from ..schemas.session import Session
from ..utils.errors import ActionRejected

logger = logging.getLogger(__name__)

ORDER_FLOW = [
    OrderStatus.RECEIVED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.CLOSED,
]


def next_status(status: OrderStatus) -> Optional[OrderStatus]:
    """Siguiente estado permitido, None para estados finales o desconocidos"""
    if status not in ORDER_FLOW:
        return None
    index = ORDER_FLOW.index(status)
    return ORDER_FLOW[index + 1] if index + 1 < len(ORDER_FLOW) else None


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    # Solo un paso hacia adelante
    return next_status(current) == target


def queue_response(orders: List[Order]) -> DispatchQueueResponse:
    return DispatchQueueResponse(
        orders=orders,
        total=len(orders),
        total_value=sum(o.total_amount for o in orders),
    )


class DispatchService:
    """Cola de pedidos listos para despacho y avance de estado"""

    def __init__(self, client: ManagerApiClient, cache: ReportCache):
        self.client = client
        self.cache = cache

    async def queue(self, session: Session) -> List[Order]:
        return await self.client.list_orders(session, status=OrderStatus.PROCESSING.value)

    async def advance(self, session: Session, order_id: str, target: OrderStatus) -> List[Order]:
        """
        Avanzar un pedido de la cola al estado `target`

        Raises:
            ActionRejected: El pedido no está en la cola o la transición no es válida
        """
        orders = await self.queue(session)
        order = next((o for o in orders if o.id == order_id), None)
        if order is None:
            raise ActionRejected(f"El pedido {order_id} no está listo para despacho")
        if not can_transition(order.status, target):
            raise ActionRejected(
                f"Transición inválida: {order.status.value} -> {target.value}. Solo se permiten pasos hacia adelante."
            )

        await self.client.update_order(session, order_id, OrderStatusUpdate(status=target))
        logger.info(f"Pedido {order.order_number or order_id}: {order.status.value} -> {target.value}")
        self.cache.invalidate_company(session.company.id)
        return await self.queue(session)

    async def ship(self, session: Session, order_id: str) -> List[Order]:
        return await self.advance(session, order_id, OrderStatus.SHIPPED)
