"""
Router de Bodega (Warehouse)
Cola de despacho y marcado de pedidos como enviados
"""
from fastapi import APIRouter, Depends

from ..schemas import DispatchQueueResponse, Session
from ..services import DispatchService, get_dispatch_service
from ..services.dispatch import queue_response
from ..utils import require_dispatch

router = APIRouter()


@router.get("/warehouse/orders", response_model=DispatchQueueResponse)
async def dispatch_queue(
    session: Session = Depends(require_dispatch),
    service: DispatchService = Depends(get_dispatch_service)
):
    """Pedidos en estado processing, listos para despacho"""
    orders = await service.queue(session)
    return queue_response(orders)


@router.patch("/warehouse/orders/{order_id}/ship", response_model=DispatchQueueResponse)
async def ship_order(
    order_id: str,
    session: Session = Depends(require_dispatch),
    service: DispatchService = Depends(get_dispatch_service)
):
    """
    Marcar un pedido como enviado (processing -> shipped)
    Devuelve la cola vuelta a leer
    """
    orders = await service.ship(session, order_id)
    return queue_response(orders)
