from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_current_user, get_order_service
from app.core.auth import AuthenticatedUser
from app.models.order import OrderCreate, OrderResponse
from app.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["订单"])


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: OrderCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    order_service: OrderService = Depends(get_order_service),
):
    """创建订单"""
    order = await order_service.create_order(
        user_id=current_user.id,
        course_ids=order_data.course_ids,
        coupon_id=order_data.coupon_id
    )
    return OrderResponse.from_order(order)


@router.get("", response_model=List[OrderResponse])
async def list_my_orders(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    status_filter: Optional[str] = Query(None, alias="status"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    order_service: OrderService = Depends(get_order_service),
):
    """当前用户的订单列表"""
    orders = await order_service.get_user_orders(
        current_user.id,
        limit=limit,
        offset=offset,
        status_filter=status_filter
    )
    return [OrderResponse.from_order(order) for order in orders]


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    order_service: OrderService = Depends(get_order_service),
):
    order = await order_service.get_order(order_id, user_id=current_user.id)
    return OrderResponse.from_order(order)
