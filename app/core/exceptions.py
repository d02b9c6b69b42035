"""
业务异常定义

业务异常在检测点构造，携带错误类型和上下文（实体ID、原因码），原样向调用方传播。
基础设施异常（网关/存储/认证服务/数据库不可用或超时）单独建模，不属于业务异常。
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """错误类型枚举"""
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    COUPON_INVALID = "COUPON_INVALID"
    MINIMUM_ORDER_NOT_MET = "MINIMUM_ORDER_NOT_MET"
    BELOW_MINIMUM_CHARGE = "BELOW_MINIMUM_CHARGE"
    ALREADY_PROCESSED = "ALREADY_PROCESSED"
    REASON_REQUIRED = "REASON_REQUIRED"
    CONCURRENT_UPDATE = "CONCURRENT_UPDATE"
    ACCESS_DENIED = "ACCESS_DENIED"
    EMPTY_ORDER = "EMPTY_ORDER"
    INVALID_PAYMENT_TYPE = "INVALID_PAYMENT_TYPE"
    INVALID_FILE = "INVALID_FILE"
    PAYMENT_DECLINED = "PAYMENT_DECLINED"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"


class BusinessException(Exception):
    """业务异常基类"""

    kind: ErrorKind = ErrorKind.NOT_FOUND

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def error_code(self) -> str:
        return self.kind.value

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.error_code}: {self.message})"


class NotFoundError(BusinessException):
    """实体不存在"""
    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: str, entity_id: str):
        super().__init__(
            f"{entity}不存在: {entity_id}",
            {"entity": entity, "id": entity_id}
        )


class AlreadyExistsError(BusinessException):
    kind = ErrorKind.ALREADY_EXISTS


class CouponInvalidError(BusinessException):
    """优惠券不可用，details中携带校验器给出的原因"""
    kind = ErrorKind.COUPON_INVALID

    def __init__(self, coupon_id: str, reason: str):
        super().__init__(
            f"优惠券不可用: {reason}",
            {"coupon_id": coupon_id, "reason": reason}
        )
        self.reason = reason


class MinimumOrderNotMetError(BusinessException):
    kind = ErrorKind.MINIMUM_ORDER_NOT_MET


class BelowMinimumChargeError(BusinessException):
    kind = ErrorKind.BELOW_MINIMUM_CHARGE


class AlreadyProcessedError(BusinessException):
    kind = ErrorKind.ALREADY_PROCESSED


class ReasonRequiredError(BusinessException):
    kind = ErrorKind.REASON_REQUIRED


class ConcurrentUpdateError(BusinessException):
    kind = ErrorKind.CONCURRENT_UPDATE


class AccessDeniedError(BusinessException):
    kind = ErrorKind.ACCESS_DENIED


class EmptyOrderError(BusinessException):
    kind = ErrorKind.EMPTY_ORDER


class InvalidPaymentTypeError(BusinessException):
    kind = ErrorKind.INVALID_PAYMENT_TYPE


class InvalidFileError(BusinessException):
    kind = ErrorKind.INVALID_FILE


class PaymentDeclinedError(BusinessException):
    """网关拒绝卡片（卡号无效、过期、CVV错误、余额不足等）"""
    kind = ErrorKind.PAYMENT_DECLINED

    def __init__(self, message: str, gateway_code: Optional[str] = None):
        super().__init__(message, {"gateway_code": gateway_code})
        self.gateway_code = gateway_code


class UpstreamUnavailableError(Exception):
    """外部服务或数据库不可用/超时"""

    kind = ErrorKind.UPSTREAM_UNAVAILABLE

    def __init__(self, service: str, message: str):
        super().__init__(f"{service}: {message}")
        self.service = service
        self.message = message
