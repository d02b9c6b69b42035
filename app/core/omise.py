import httpx
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional
import structlog

from app.core.config import Settings
from app.core.exceptions import NotFoundError, PaymentDeclinedError, UpstreamUnavailableError
from app.models.payment import CardDetails, GatewayCharge

"Omise支付网关客户端：卡片令牌化、创建扣款、查询扣款"

logger = structlog.get_logger()

# 网关返回的卡片类错误码，归为业务拒绝而非基础设施故障
CARD_ERROR_CODES = {
    "invalid_card",
    "invalid_card_number",
    "expired_card",
    "invalid_expiration_date",
    "invalid_security_code",
    "invalid_cvv",
    "insufficient_fund",
    "insufficient_funds",
    "payment_rejected",
    "failed_processing",
    "card_declined",
    "stolen_or_lost_card",
}


def to_satang(amount: Decimal) -> int:
    """主货币单位转换为网关最小单位（泰铢 -> 萨当）"""
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_satang(amount: int) -> Decimal:
    return (Decimal(amount) / 100).quantize(Decimal("0.01"))


class OmiseClient:
    """Omise REST API客户端

    所有调用都受 omise_timeout 约束；超时、网络错误和5xx抛出
    UpstreamUnavailableError，卡片错误抛出 PaymentDeclinedError。
    客户端本身不做重试。
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.currency = settings.payment_currency
        self._transport = transport

    def _client(self, base_url: str, key: str) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=base_url,
            auth=(key, ""),
            timeout=self.settings.omise_timeout,
            transport=self._transport
        )

    async def _request(
            self,
            base_url: str,
            key: str,
            method: str,
            path: str,
            data: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        try:
            async with self._client(base_url, key) as client:
                response = await client.request(method, path, data=data)
        except httpx.TimeoutException as e:
            logger.error("支付网关请求超时", path=path, error=str(e))
            raise UpstreamUnavailableError("omise", "支付网关请求超时") from e
        except httpx.HTTPError as e:
            logger.error("支付网关网络错误", path=path, error=str(e))
            raise UpstreamUnavailableError("omise", f"支付网关网络错误: {e}") from e

        if response.status_code >= 500:
            logger.error("支付网关服务不可用", path=path, status_code=response.status_code)
            raise UpstreamUnavailableError("omise", f"支付网关服务不可用: HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamUnavailableError("omise", "支付网关响应格式错误") from e

        if response.status_code >= 400 or body.get("object") == "error":
            code = body.get("code")
            message = body.get("message") or "支付请求被拒绝"
            logger.warning("支付网关拒绝请求", path=path, status_code=response.status_code, code=code)
            if response.status_code == 404:
                raise NotFoundError("扣款", path.rsplit("/", 1)[-1])
            if code in CARD_ERROR_CODES or response.status_code in (400, 402):
                raise PaymentDeclinedError(message, gateway_code=code)
            raise UpstreamUnavailableError("omise", f"{code}: {message}")

        return body

    async def create_token(self, card: CardDetails) -> str:
        """卡片令牌化，卡号只发送给网关保险库"""
        data = {
            "card[name]": card.name,
            "card[number]": card.number,
            "card[expiration_month]": card.expiration_month,
            "card[expiration_year]": card.expiration_year,
            "card[security_code]": card.security_code,
        }
        body = await self._request(
            self.settings.omise_vault_url,
            self.settings.omise_public_key,
            "POST",
            "/tokens",
            data=data
        )
        logger.info("卡片令牌化成功", card_last_digits=card.last_digits)
        return body["id"]

    async def create_charge(self, amount: Decimal, token: str, description: Optional[str] = None) -> GatewayCharge:
        """创建扣款"""
        data = {
            "amount": to_satang(amount),
            "currency": self.currency,
            "card": token,
        }
        if description:
            data["description"] = description

        body = await self._request(
            self.settings.omise_api_url,
            self.settings.omise_secret_key,
            "POST",
            "/charges",
            data=data
        )
        charge = self._to_charge(body)
        logger.info("创建扣款完成", charge_id=charge.id, paid=charge.paid, failure_code=charge.failure_code)
        return charge

    async def retrieve_charge(self, charge_id: str) -> GatewayCharge:
        """查询扣款"""
        body = await self._request(
            self.settings.omise_api_url,
            self.settings.omise_secret_key,
            "GET",
            f"/charges/{charge_id}"
        )
        return self._to_charge(body)

    def _to_charge(self, body: Dict[str, Any]) -> GatewayCharge:
        card = body.get("card") or {}
        return GatewayCharge(
            id=body["id"],
            amount=from_satang(int(body.get("amount", 0))),
            currency=body.get("currency", self.currency),
            paid=bool(body.get("paid")),
            status=body.get("status"),
            failure_code=body.get("failure_code"),
            failure_message=body.get("failure_message"),
            card_last_digits=card.get("last_digits"),
            card_brand=card.get("brand")
        )
