"""
Schemas de Pedidos (Orders) para el despacho de bodega
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime

from ..models.enums import OrderStatus


class OrderItem(BaseModel):
    id: str
    product_name: str = ""
    product_sku: Optional[str] = None
    quantity: float = 0
    unit_price: float = 0
    line_total: float = 0
    notes: Optional[str] = None


class Order(BaseModel):
    """Fila de GET /api/manager/orders"""
    id: str
    order_number: str = ""
    status: OrderStatus = OrderStatus.UNKNOWN
    total_amount: float = 0
    currency_code: Optional[str] = None
    placed_at: Optional[datetime] = None
    shop_id: Optional[str] = None
    shop_name: Optional[str] = None
    shop_address: Optional[str] = None
    lead_name: Optional[str] = None
    placed_by_name: Optional[str] = None
    items_count: Optional[int] = None
    items: List[OrderItem] = Field(default_factory=list)

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, value):
        return OrderStatus(value) if isinstance(value, str) else value

    @field_validator("items", mode="before")
    @classmethod
    def null_items(cls, value):
        # json_agg devuelve null cuando no hay líneas
        return value or []


class OrderStatusUpdate(BaseModel):
    """Cuerpo del PATCH /api/manager/orders/{id}"""
    status: OrderStatus

    def to_body(self) -> dict:
        return {"status": self.status.value}


class DispatchQueueResponse(BaseModel):
    """Pedidos listos para despacho"""
    orders: List[Order]
    total: int = 0
    total_value: float = 0
