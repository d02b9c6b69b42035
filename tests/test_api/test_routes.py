"""
API路由测试 - 依赖覆盖 + TestClient
"""

import struct
import pytest
from decimal import Decimal
from unittest.mock import AsyncMock

from fastapi.testclient import TestClient

from app.api.deps import get_current_user, get_order_service, get_payment_service
from app.core.auth import AuthenticatedUser
from app.core.exceptions import (
    CouponInvalidError,
    ReasonRequiredError,
    UpstreamUnavailableError,
)
from app.main import create_app
from app.models.order import Order, OrderItem
from app.models.payment import ApprovalResult, Payment, PaymentStatus, PaymentType
from app.services.order_service import OrderService
from app.services.payment_service import PaymentService


@pytest.fixture
def order_service():
    return AsyncMock(spec=OrderService)


@pytest.fixture
def payment_service():
    return AsyncMock(spec=PaymentService)


@pytest.fixture
def app(settings, order_service, payment_service):
    app = create_app(settings)
    app.dependency_overrides[get_order_service] = lambda: order_service
    app.dependency_overrides[get_payment_service] = lambda: payment_service
    return app


@pytest.fixture
def as_user(app):
    """以普通用户身份访问"""
    app.dependency_overrides[get_current_user] = lambda: AuthenticatedUser(id="user_001", role="authenticated")
    return TestClient(app)


@pytest.fixture
def as_admin(app):
    app.dependency_overrides[get_current_user] = lambda: AuthenticatedUser(id="admin_001", role="admin")
    return TestClient(app)


def bank_transfer_payment(status=PaymentStatus.PENDING, **kwargs):
    return Payment(
        id="payment_001",
        user_id="user_001",
        order_id="order_001",
        payment_type=PaymentType.BANK_TRANSFER,
        status=status,
        amount=Decimal("1700"),
        **kwargs
    )


def test_missing_token(app):
    """测试未携带令牌"""
    client = TestClient(app)

    response = client.get("/orders")

    assert response.status_code == 401
    assert response.json()["success"] is False


def test_create_order(as_user, order_service):
    order_service.create_order.return_value = Order(
        id="order_001",
        user_id="user_001",
        subtotal_amount=Decimal("2000"),
        total_amount=Decimal("1700"),
        coupon_id="coupon_001",
        items=[OrderItem(id="item_1", order_id="order_001", course_id="course_001", unit_price=Decimal("2000"))]
    )

    response = as_user.post("/orders", json={"course_ids": ["course_001"], "coupon_id": "coupon_001"})

    assert response.status_code == 201
    body = response.json()
    assert body["id"] == "order_001"
    assert Decimal(body["discount_amount"]) == Decimal("300")
    order_service.create_order.assert_called_once_with(
        user_id="user_001", course_ids=["course_001"], coupon_id="coupon_001"
    )


def test_create_order_with_invalid_coupon(as_user, order_service):
    """测试业务异常映射为统一错误响应"""
    order_service.create_order.side_effect = CouponInvalidError("coupon_001", "EXPIRED")

    response = as_user.post("/orders", json={"course_ids": ["course_001"], "coupon_id": "coupon_001"})

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["error_code"] == "COUPON_INVALID"


def test_create_order_without_courses(as_user, order_service):
    response = as_user.post("/orders", json={"course_ids": []})

    assert response.status_code == 422
    assert response.json()["error_code"] == "VALIDATION_ERROR"
    order_service.create_order.assert_not_called()


def test_charge_gateway_unavailable(as_user, payment_service):
    """测试网关不可用返回503"""
    payment_service.create_charge.side_effect = UpstreamUnavailableError("omise", "支付网关请求超时")

    response = as_user.post("/payments/charges", json={
        "order_id": "order_001",
        "card": {
            "name": "Somchai",
            "number": "4242424242424242",
            "expiration_month": 12,
            "expiration_year": 2030,
            "security_code": "123"
        }
    })

    assert response.status_code == 503
    assert response.json()["error_code"] == "UPSTREAM_UNAVAILABLE"


def test_submit_bank_transfer(as_user, payment_service):
    payment_service.create_bank_transfer.return_value = bank_transfer_payment(slip_image="order_001/slip.png")
    png = b"\x89PNG\r\n\x1a\n" + struct.pack(">I", 13) + b"IHDR" + struct.pack(">II", 800, 600)

    response = as_user.post(
        "/payments/bank-transfers",
        data={"order_id": "order_001"},
        files={"slip": ("slip.png", png, "image/png")}
    )

    assert response.status_code == 201
    assert response.json()["status"] == "pending"
    kwargs = payment_service.create_bank_transfer.call_args.kwargs
    assert kwargs["content"] == png
    assert kwargs["content_type"] == "image/png"
    assert kwargs["coupon_id"] is None


def test_approval_requires_admin(as_user, payment_service):
    """测试普通用户不能审核转账"""
    response = as_user.post("/payments/payment_001/approval", json={"approved": True})

    assert response.status_code == 403
    payment_service.approve_payment.assert_not_called()


def test_admin_approves_transfer(as_admin, payment_service):
    payment_service.approve_payment.return_value = ApprovalResult(
        payment=bank_transfer_payment(PaymentStatus.SUCCESSFUL),
        order_status="paid",
        enrolled_course_ids=["course_001"]
    )

    response = as_admin.post("/payments/payment_001/approval", json={"approved": True})

    assert response.status_code == 200
    assert response.json()["order_status"] == "paid"
    payment_service.approve_payment.assert_called_once_with("payment_001", approved=True, reason=None)


def test_reject_without_reason(as_admin, payment_service):
    payment_service.approve_payment.side_effect = ReasonRequiredError("驳回转账必须填写原因")

    response = as_admin.post("/payments/payment_001/approval", json={"approved": False})

    assert response.status_code == 400
    assert response.json()["error_code"] == "REASON_REQUIRED"


def test_list_pending_transfers(as_admin, payment_service):
    payment_service.get_payments.return_value = [bank_transfer_payment()]

    response = as_admin.get("/payments", params={"type": "Bank Transfer", "status": "pending"})

    assert response.status_code == 200
    assert len(response.json()) == 1
    payment_service.get_payments.assert_called_once_with(
        payment_type=PaymentType.BANK_TRANSFER,
        status=PaymentStatus.PENDING,
        limit=20,
        offset=0
    )


def test_health(app):
    response = TestClient(app).get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
