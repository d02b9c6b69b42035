from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from app.api.deps import get_current_user, get_payment_service, get_settings, is_admin, require_admin
from app.core.auth import AuthenticatedUser
from app.core.config import Settings
from app.models.payment import (
    ApprovalResult,
    ApprovePaymentRequest,
    ChargeLookup,
    ChargeResult,
    CreateChargeRequest,
    Payment,
    PaymentStatus,
    PaymentType,
)
from app.services.payment_service import PaymentService

router = APIRouter(prefix="/payments", tags=["支付"])


@router.post("/charges", response_model=ChargeResult, status_code=status.HTTP_201_CREATED)
async def create_charge(
    request: CreateChargeRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    payment_service: PaymentService = Depends(get_payment_service),
):
    """信用卡支付"""
    return await payment_service.create_charge(
        user_id=current_user.id,
        order_id=request.order_id,
        card=request.card,
        description=request.description
    )


@router.get("/charges/{charge_id}", response_model=ChargeLookup)
async def retrieve_charge(
    charge_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    payment_service: PaymentService = Depends(get_payment_service),
):
    """查询扣款并对账，管理员可查询任意扣款"""
    user_id = None if is_admin(current_user, settings) else current_user.id
    return await payment_service.retrieve_charge(charge_id, user_id=user_id)


@router.post("/bank-transfers", response_model=Payment, status_code=status.HTTP_201_CREATED)
async def create_bank_transfer(
    order_id: str = Form(...),
    coupon_id: Optional[str] = Form(None),
    slip: UploadFile = File(...),
    current_user: AuthenticatedUser = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    payment_service: PaymentService = Depends(get_payment_service),
):
    """提交银行转账凭证"""
    # 多读一个字节用于判断是否超限
    content = await slip.read(settings.slip_max_file_size + 1)
    return await payment_service.create_bank_transfer(
        user_id=current_user.id,
        order_id=order_id,
        content=content,
        content_type=slip.content_type,
        coupon_id=coupon_id
    )


@router.post("/{payment_id}/approval", response_model=ApprovalResult)
async def approve_payment(
    payment_id: str,
    request: ApprovePaymentRequest,
    admin: AuthenticatedUser = Depends(require_admin),
    payment_service: PaymentService = Depends(get_payment_service),
):
    """审核银行转账（管理员）"""
    return await payment_service.approve_payment(
        payment_id,
        approved=request.approved,
        reason=request.reason
    )


@router.get("", response_model=List[Payment])
async def list_payments(
    payment_type: Optional[PaymentType] = Query(None, alias="type"),
    payment_status: Optional[PaymentStatus] = Query(None, alias="status"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    admin: AuthenticatedUser = Depends(require_admin),
    payment_service: PaymentService = Depends(get_payment_service),
):
    """支付记录列表（管理员）"""
    return await payment_service.get_payments(
        payment_type=payment_type,
        status=payment_status,
        limit=limit,
        offset=offset
    )


@router.get("/me", response_model=List[Payment])
async def list_my_payments(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: AuthenticatedUser = Depends(get_current_user),
    payment_service: PaymentService = Depends(get_payment_service),
):
    return await payment_service.get_my_payments(current_user.id, limit=limit, offset=offset)
