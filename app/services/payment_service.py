"""
支付业务服务层
信用卡扣款、银行转账凭证提交与审核、扣款对账

支付状态只能从 pending 转到 successful/failed/rejected 之一，
状态变更都通过仓库层的条件更新完成，并发请求中只有一个能成功。
"""

from typing import List, Optional
import logging

from app.core.config import Settings
from app.core.exceptions import (
    NotFoundError,
    AccessDeniedError,
    AlreadyProcessedError,
    EmptyOrderError,
    BelowMinimumChargeError,
    InvalidPaymentTypeError,
    ReasonRequiredError,
    ConcurrentUpdateError,
    CouponInvalidError,
    UpstreamUnavailableError,
)
from app.core.omise import OmiseClient
from app.core.storage import SlipStorage, validate_slip_image
from app.models.coupon import CouponInvalidReason
from app.models.order import Order, OrderStatus, PAYABLE_ORDER_STATUSES
from app.models.payment import (
    Payment,
    PaymentType,
    PaymentStatus,
    CardDetails,
    ChargeResult,
    ApprovalResult,
    ChargeLookup,
)
from app.repositories.order_repository import OrderRepository
from app.repositories.payment_repository import PaymentRepository
from app.repositories.coupon_repository import CouponRepository
from app.services.enrollment_service import EnrollmentService

logger = logging.getLogger(__name__)


class PaymentService:
    """支付业务服务"""

    def __init__(
        self,
        payment_repo: PaymentRepository,
        order_repo: OrderRepository,
        coupon_repo: CouponRepository,
        enrollment_service: EnrollmentService,
        gateway: OmiseClient,
        storage: SlipStorage,
        settings: Settings
    ):
        self.payment_repo = payment_repo
        self.order_repo = order_repo
        self.coupon_repo = coupon_repo
        self.enrollment_service = enrollment_service
        self.gateway = gateway
        self.storage = storage
        self.settings = settings

    async def validate_order_for_payment(self, order_id: str, user_id: str) -> Order:
        """支付前校验订单：存在、归属当前用户、可支付、含有课程"""
        order = await self.order_repo.get_by_id(order_id)
        if not order:
            raise NotFoundError("订单", order_id)

        if order.user_id != user_id:
            raise AccessDeniedError("无权支付该订单", {"order_id": order_id})

        if order.order_status not in PAYABLE_ORDER_STATUSES:
            raise AlreadyProcessedError(
                f"订单已处理: {order.order_status}",
                {"order_id": order_id, "order_status": order.order_status}
            )

        if not order.items:
            raise EmptyOrderError("订单没有课程", {"order_id": order_id})

        return order

    async def _fulfil_order(self, order: Order, payment: Payment, strict: bool) -> List[str]:
        """支付确认后的副作用：订单置为已支付、选课、核销优惠券

        strict 为 True 时订单已被其他请求处理则抛出 ConcurrentUpdateError，
        优惠券已达使用上限则抛出 CouponInvalidError，整个事务回滚；
        否则记录日志，仍为用户选课，但不重复或超限核销优惠券。
        """
        updated = await self.order_repo.update_order_status(
            order.id,
            OrderStatus.PAID.value,
            expected_statuses=PAYABLE_ORDER_STATUSES
        )
        if not updated:
            if strict:
                raise ConcurrentUpdateError(
                    "订单状态已被其他请求修改",
                    {"order_id": order.id, "payment_id": payment.id}
                )
            logger.error(f"订单已非待支付状态，支付仍记录: order_id={order.id}, payment_id={payment.id}")

        enrollments = await self.enrollment_service.enroll_paid(order.user_id, order.course_ids, payment.id)

        if updated and order.coupon_id:
            if await self.coupon_repo.increment_usage(order.coupon_id):
                logger.info(f"优惠券核销: coupon_id={order.coupon_id}, order_id={order.id}")
            elif strict:
                raise CouponInvalidError(order.coupon_id, CouponInvalidReason.USAGE_LIMIT_REACHED.value)
            else:
                # 扣款已完成，保留支付和选课，仅记录超限
                logger.error(
                    f"优惠券已达使用上限，未计入核销: coupon_id={order.coupon_id}, "
                    f"order_id={order.id}, payment_id={payment.id}"
                )

        return [enrollment.course_id for enrollment in enrollments]

    async def create_charge(
        self,
        user_id: str,
        order_id: str,
        card: CardDetails,
        description: Optional[str] = None
    ) -> ChargeResult:
        """信用卡支付

        网关超时或不可用时不写入任何支付记录；网关结果未知时记录为pending，
        等待对账。
        """
        order = await self.validate_order_for_payment(order_id, user_id)

        if order.total_amount < self.settings.min_charge_amount:
            raise BelowMinimumChargeError(
                f"订单金额低于最低扣款金额: {self.settings.min_charge_amount}",
                {
                    "order_id": order_id,
                    "total_amount": str(order.total_amount),
                    "min_charge_amount": str(self.settings.min_charge_amount)
                }
            )

        token = await self.gateway.create_token(card)
        charge = await self.gateway.create_charge(
            order.total_amount,
            token,
            description or f"Order {order.id}"
        )

        status = charge.payment_status
        payment = await self.payment_repo.create_payment(
            user_id=user_id,
            order_id=order.id,
            payment_type=PaymentType.CREDIT_CARD,
            status=status,
            amount=order.total_amount,
            omise_charge_id=charge.id,
            card_last_digits=charge.card_last_digits or card.last_digits,
            card_brand=charge.card_brand,
            failure_code=charge.failure_code,
            failure_message=charge.failure_message
        )
        logger.info(
            f"信用卡支付记录: payment_id={payment.id}, order_id={order.id}, "
            f"charge_id={charge.id}, status={status.value}"
        )

        enrolled_course_ids = []
        order_status = order.order_status
        if status == PaymentStatus.SUCCESSFUL:
            enrolled_course_ids = await self._fulfil_order(order, payment, strict=False)
            order_status = OrderStatus.PAID.value

        return ChargeResult(
            payment=payment,
            order_status=order_status,
            enrolled_course_ids=enrolled_course_ids
        )

    async def retrieve_charge(self, charge_id: str, user_id: Optional[str] = None) -> ChargeLookup:
        """查询扣款并对账

        本地对应的信用卡支付仍为pending时，按网关结果结算；
        结算成功走与同步扣款相同的订单/选课/优惠券流程。
        指定user_id时只能查询自己的扣款。
        """
        payment = await self.payment_repo.get_by_charge_id(charge_id)
        if user_id is not None and (payment is None or payment.user_id != user_id):
            raise NotFoundError("扣款", charge_id)

        charge = await self.gateway.retrieve_charge(charge_id)

        if payment is None or not payment.is_pending:
            return ChargeLookup(charge=charge, payment=payment)

        status = charge.payment_status
        if status == PaymentStatus.PENDING:
            return ChargeLookup(charge=charge, payment=payment)

        settled = await self.payment_repo.update_status_if_pending(
            payment.id,
            status,
            failure_code=charge.failure_code,
            failure_message=charge.failure_message
        )
        if not settled:
            # 其他请求已结算
            return ChargeLookup(charge=charge, payment=await self.payment_repo.get_by_id(payment.id))

        logger.info(f"扣款对账结算: payment_id={payment.id}, charge_id={charge_id}, status={status.value}")

        if status == PaymentStatus.SUCCESSFUL and payment.order_id:
            order = await self.order_repo.get_by_id(payment.order_id)
            if order:
                await self._fulfil_order(order, payment, strict=False)

        return ChargeLookup(charge=charge, payment=await self.payment_repo.get_by_id(payment.id))

    async def create_bank_transfer(
        self,
        user_id: str,
        order_id: str,
        content: bytes,
        content_type: Optional[str],
        coupon_id: Optional[str] = None
    ) -> Payment:
        """提交银行转账凭证

        凭证校验通过后上传，支付记录为pending，选课推迟到审核通过。
        coupon_id 仅作核对，订单上绑定的优惠券为准。
        """
        order = await self.validate_order_for_payment(order_id, user_id)
        validate_slip_image(content, content_type, self.settings)

        if coupon_id and coupon_id != order.coupon_id:
            logger.warning(
                f"转账提交的优惠券与订单不一致，以订单为准: order_id={order_id}, "
                f"coupon_id={coupon_id}, order_coupon_id={order.coupon_id}"
            )

        stored = await self.storage.upload(content, content_type, key_hint=order.id)
        try:
            payment = await self.payment_repo.create_payment(
                user_id=user_id,
                order_id=order.id,
                payment_type=PaymentType.BANK_TRANSFER,
                status=PaymentStatus.PENDING,
                amount=order.total_amount,
                slip_image=stored.path
            )
        except Exception:
            # 记录写入失败，删除已上传的凭证
            try:
                await self.storage.delete(stored.path)
            except UpstreamUnavailableError as cleanup_error:
                logger.error(f"清理转账凭证失败: path={stored.path}, error={cleanup_error}")
            raise

        logger.info(f"转账凭证已提交: payment_id={payment.id}, order_id={order.id}")
        return payment

    async def approve_payment(
        self,
        payment_id: str,
        approved: bool,
        reason: Optional[str] = None
    ) -> ApprovalResult:
        """审核银行转账

        审核是一次性状态转换，重复审核返回ALREADY_PROCESSED。
        """
        payment = await self.payment_repo.get_by_id(payment_id)
        if not payment:
            raise NotFoundError("支付记录", payment_id)

        if not payment.is_pending:
            raise AlreadyProcessedError(
                f"支付已处理: {payment.status.value}",
                {"payment_id": payment_id, "status": payment.status.value}
            )

        if payment.payment_type != PaymentType.BANK_TRANSFER:
            raise InvalidPaymentTypeError(
                "只有银行转账需要审核",
                {"payment_id": payment_id, "payment_type": payment.payment_type.value}
            )

        if not approved and (reason is None or not reason.strip()):
            raise ReasonRequiredError("驳回转账必须填写原因", {"payment_id": payment_id})

        new_status = PaymentStatus.SUCCESSFUL if approved else PaymentStatus.REJECTED
        fields = {} if approved else {"rejection_reason": reason.strip()}
        if not await self.payment_repo.update_status_if_pending(payment_id, new_status, **fields):
            raise AlreadyProcessedError("支付已被其他请求处理", {"payment_id": payment_id})

        order = await self.order_repo.get_by_id(payment.order_id) if payment.order_id else None
        if order is None:
            raise NotFoundError("订单", payment.order_id or "")

        if approved:
            enrolled_course_ids = await self._fulfil_order(order, payment, strict=True)
            logger.info(f"转账审核通过: payment_id={payment_id}, order_id={order.id}")
            return ApprovalResult(
                payment=await self.payment_repo.get_by_id(payment_id),
                order_status=OrderStatus.PAID.value,
                enrolled_course_ids=enrolled_course_ids
            )

        # 驳回：订单可重新提交支付
        order_status = order.order_status
        if await self.order_repo.update_order_status(
            order.id,
            OrderStatus.PAYMENT_REJECTED.value,
            expected_statuses=(OrderStatus.PENDING.value,)
        ):
            order_status = OrderStatus.PAYMENT_REJECTED.value

        logger.info(f"转账审核驳回: payment_id={payment_id}, order_id={order.id}, reason={reason}")
        return ApprovalResult(
            payment=await self.payment_repo.get_by_id(payment_id),
            order_status=order_status
        )

    async def get_payments(
        self,
        payment_type: Optional[PaymentType] = None,
        status: Optional[PaymentStatus] = None,
        limit: int = 20,
        offset: int = 0
    ) -> List[Payment]:
        """管理端查询支付记录"""
        return await self.payment_repo.find_many(
            payment_type=payment_type,
            status=status,
            limit=limit,
            offset=offset
        )

    async def get_my_payments(self, user_id: str, limit: int = 20, offset: int = 0) -> List[Payment]:
        return await self.payment_repo.get_user_payments(user_id, limit=limit, offset=offset)
