"""
Omise支付网关客户端测试 - 使用httpx.MockTransport
"""

import httpx
import pytest
from decimal import Decimal
from urllib.parse import parse_qs

from app.core.exceptions import NotFoundError, PaymentDeclinedError, UpstreamUnavailableError
from app.core.omise import OmiseClient, to_satang, from_satang
from app.models.payment import CardDetails, PaymentStatus


def charge_body(**overrides):
    body = {
        "object": "charge",
        "id": "chrg_test_001",
        "amount": 170000,
        "currency": "thb",
        "paid": True,
        "status": "successful",
        "failure_code": None,
        "failure_message": None,
        "card": {"last_digits": "4242", "brand": "Visa"},
    }
    body.update(overrides)
    return body


@pytest.fixture
def card():
    return CardDetails(
        name="Somchai",
        number="4242424242424242",
        expiration_month=12,
        expiration_year=2030,
        security_code="123"
    )


def test_satang_conversion():
    """测试金额与网关最小单位换算"""
    assert to_satang(Decimal("1700")) == 170000
    assert to_satang(Decimal("19.995")) == 2000
    assert from_satang(170050) == Decimal("1700.50")


def test_card_details_hide_number(card):
    assert "4242424242424242" not in repr(card)
    assert "4242424242424242" not in str(card)
    assert card.last_digits == "4242"


@pytest.mark.asyncio
class TestOmiseClient:

    async def test_create_token_uses_vault_and_public_key(self, settings, card):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"object": "token", "id": "tokn_test_001"})

        client = OmiseClient(settings, transport=httpx.MockTransport(handler))
        token = await client.create_token(card)

        assert token == "tokn_test_001"
        request = requests[0]
        assert request.url.host == "vault.omise.co"
        assert request.url.path == "/tokens"
        form = parse_qs(request.content.decode())
        assert form["card[number]"] == ["4242424242424242"]
        assert form["card[expiration_month]"] == ["12"]

    async def test_create_charge_in_satang(self, settings):
        """测试扣款金额按萨当发送，结果换回泰铢"""
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=charge_body())

        client = OmiseClient(settings, transport=httpx.MockTransport(handler))
        charge = await client.create_charge(Decimal("1700"), "tokn_test_001", "Order order_001")

        form = parse_qs(requests[0].content.decode())
        assert form["amount"] == ["170000"]
        assert form["currency"] == ["thb"]
        assert form["card"] == ["tokn_test_001"]
        assert requests[0].url.host == "api.omise.co"
        assert charge.amount == Decimal("1700.00")
        assert charge.payment_status == PaymentStatus.SUCCESSFUL
        assert charge.card_last_digits == "4242"
        assert charge.card_brand == "Visa"

    async def test_failed_charge_outcome(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=charge_body(
                paid=False, status="failed",
                failure_code="insufficient_fund", failure_message="insufficient funds"
            ))

        client = OmiseClient(settings, transport=httpx.MockTransport(handler))
        charge = await client.create_charge(Decimal("1700"), "tokn_test_001")

        assert charge.payment_status == PaymentStatus.FAILED
        assert charge.failure_code == "insufficient_fund"

    async def test_unknown_outcome_is_pending(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=charge_body(paid=False, status="pending"))

        client = OmiseClient(settings, transport=httpx.MockTransport(handler))
        charge = await client.create_charge(Decimal("1700"), "tokn_test_001")

        assert charge.payment_status == PaymentStatus.PENDING

    async def test_card_error_is_declined(self, settings, card):
        """测试卡片错误归为支付拒绝"""
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={
                "object": "error", "code": "invalid_card", "message": "number is invalid"
            })

        client = OmiseClient(settings, transport=httpx.MockTransport(handler))

        with pytest.raises(PaymentDeclinedError) as exc_info:
            await client.create_token(card)
        assert exc_info.value.gateway_code == "invalid_card"

    async def test_server_error_is_upstream(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="unavailable")

        client = OmiseClient(settings, transport=httpx.MockTransport(handler))

        with pytest.raises(UpstreamUnavailableError):
            await client.create_charge(Decimal("1700"), "tokn_test_001")

    async def test_timeout_is_upstream(self, settings):
        """测试网关超时"""
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        client = OmiseClient(settings, transport=httpx.MockTransport(handler))

        with pytest.raises(UpstreamUnavailableError):
            await client.create_charge(Decimal("1700"), "tokn_test_001")

    async def test_retrieve_missing_charge(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"object": "error", "code": "not_found", "message": "not found"})

        client = OmiseClient(settings, transport=httpx.MockTransport(handler))

        with pytest.raises(NotFoundError):
            await client.retrieve_charge("chrg_missing")
