from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.db import get_db
from repositories.orders import OrderStore
from schemas.order import (
    CustomerOrdersResponse,
    ErrorResponse,
    MessageResponse,
    OrderCreate,
    OrderCreatedResponse,
    OrderEnvelope,
    OrderPage,
    OrderStatisticsResponse,
    OrderStatusUpdate,
    OrderStatusUpdatedResponse,
)
from services.orders import OrderService

router = APIRouter(
    prefix="/api/v1/orders",
    tags=["orders"],
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)


def get_order_service(db: Session = Depends(get_db)) -> OrderService:
    return OrderService(OrderStore(db))


def _parse_int(value: Optional[str]) -> Optional[int]:
    # Non-numeric paging input falls back to the defaults instead of failing the request
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


@router.post("", response_model=OrderCreatedResponse, status_code=201)
def create_order(data: OrderCreate, service: OrderService = Depends(get_order_service)):
    order = service.create_order(data)
    return OrderCreatedResponse(order=order)


@router.get("", response_model=OrderPage)
def list_orders(
    page: Optional[str] = Query(default=None),
    page_size: Optional[str] = Query(default=None),
    service: OrderService = Depends(get_order_service),
):
    return service.list_orders(_parse_int(page), _parse_int(page_size))


@router.get("/stats", response_model=OrderStatisticsResponse)
def get_order_statistics(service: OrderService = Depends(get_order_service)):
    return OrderStatisticsResponse(statistics=service.get_statistics())


@router.get("/customer/{customer_id}", response_model=CustomerOrdersResponse)
def list_customer_orders(customer_id: str, service: OrderService = Depends(get_order_service)):
    orders = service.list_orders_by_customer(customer_id)
    return CustomerOrdersResponse(orders=orders, total=len(orders))


@router.get("/{order_id}", response_model=OrderEnvelope)
def get_order(order_id: str, service: OrderService = Depends(get_order_service)):
    return OrderEnvelope(order=service.get_order(order_id))


@router.put("/{order_id}/status", response_model=OrderStatusUpdatedResponse)
def update_order_status(
    order_id: str, data: OrderStatusUpdate, service: OrderService = Depends(get_order_service)
):
    order = service.update_order_status(order_id, data.status)
    return OrderStatusUpdatedResponse(order=order)


@router.delete("/{order_id}", response_model=MessageResponse)
def delete_order(order_id: str, service: OrderService = Depends(get_order_service)):
    service.delete_order(order_id)
    return MessageResponse(message="Order deleted successfully")
