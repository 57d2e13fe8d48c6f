from datetime import datetime
from pydantic import BaseModel, Field
from typing import Dict, List

from models.order import MAX_AMOUNT, MAX_INTEGER, MAX_STRING_LENGTH, OrderStatus


class OrderItemIn(BaseModel):
    game_id: int = Field(..., ge=0, le=MAX_INTEGER)
    game_name: str = Field(..., min_length=1, max_length=MAX_STRING_LENGTH)
    # Sign and quantity > 0 are checked by the service so the error can name the game
    price: float = Field(..., le=float(MAX_AMOUNT), allow_inf_nan=False)
    quantity: int = Field(..., le=MAX_INTEGER)


class OrderCreate(BaseModel):
    customer_id: str = Field(..., max_length=MAX_STRING_LENGTH)
    items: List[OrderItemIn]


class OrderStatusUpdate(BaseModel):
    # Checked against OrderStatus by the service so the error can name the bad value
    status: str


class OrderItemOut(BaseModel):
    id: str
    order_id: str
    game_id: int
    game_name: str
    price: float
    quantity: int
    subtotal: float

    class Config:
        from_attributes = True


class OrderOut(BaseModel):
    id: str
    customer_id: str
    total_price: float
    status: OrderStatus
    order_date: datetime
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemOut]

    class Config:
        from_attributes = True


class OrderEnvelope(BaseModel):
    order: OrderOut


class OrderCreatedResponse(BaseModel):
    message: str = "Order created successfully"
    order: OrderOut


class OrderStatusUpdatedResponse(BaseModel):
    message: str = "Order status updated successfully"
    order: OrderOut


class MessageResponse(BaseModel):
    message: str


class CustomerOrdersResponse(BaseModel):
    orders: List[OrderOut]
    total: int


class OrderPage(BaseModel):
    orders: List[OrderOut]
    total: int
    page: int
    page_size: int


class OrderStatistics(BaseModel):
    total_orders: int
    total_revenue: float
    status_counts: Dict[str, int]


class OrderStatisticsResponse(BaseModel):
    statistics: OrderStatistics


class ErrorResponse(BaseModel):
    error: str
    message: str
