from fastapi import APIRouter, Depends, status

from app.api.deps import get_cart_service, get_current_user
from app.core.auth import AuthenticatedUser
from app.models.cart import CartItem, CartItemCreate, CartView
from app.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["购物车"])


@router.get("", response_model=CartView)
async def get_cart(
    current_user: AuthenticatedUser = Depends(get_current_user),
    cart_service: CartService = Depends(get_cart_service),
):
    """获取当前用户购物车"""
    return await cart_service.get_cart(current_user.id)


@router.post("/items", response_model=CartItem, status_code=status.HTTP_201_CREATED)
async def add_cart_item(
    item: CartItemCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    cart_service: CartService = Depends(get_cart_service),
):
    return await cart_service.add_item(current_user.id, item.course_id)


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_cart_item(
    item_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    cart_service: CartService = Depends(get_cart_service),
):
    await cart_service.remove_item(current_user.id, item_id)
