"""
API异常处理器

业务异常按错误类型映射HTTP状态码，响应体统一为
{"success": false, "error_code", "message", "details"}。
"""

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from app.core.exceptions import BusinessException, ErrorKind, UpstreamUnavailableError

logger = logging.getLogger(__name__)

STATUS_CODES = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    ErrorKind.ALREADY_PROCESSED: status.HTTP_409_CONFLICT,
    ErrorKind.CONCURRENT_UPDATE: status.HTTP_409_CONFLICT,
    ErrorKind.COUPON_INVALID: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.MINIMUM_ORDER_NOT_MET: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.BELOW_MINIMUM_CHARGE: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.REASON_REQUIRED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.EMPTY_ORDER: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_PAYMENT_TYPE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_FILE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.ACCESS_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorKind.PAYMENT_DECLINED: status.HTTP_402_PAYMENT_REQUIRED,
    ErrorKind.UPSTREAM_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def error_response(status_code: int, error_code: str, message: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error_code": error_code,
            "message": message,
            "details": details or {}
        }
    )


async def business_exception_handler(request: Request, exc: BusinessException) -> JSONResponse:
    """业务异常处理"""
    logger.info(f"业务异常: {exc.error_code} {exc.message} path={request.url.path}")
    return error_response(
        STATUS_CODES.get(exc.kind, status.HTTP_400_BAD_REQUEST),
        exc.error_code,
        exc.message,
        exc.details
    )


async def upstream_exception_handler(request: Request, exc: UpstreamUnavailableError) -> JSONResponse:
    """外部服务不可用"""
    logger.error(f"外部服务不可用: service={exc.service} message={exc.message} path={request.url.path}")
    return error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        ErrorKind.UPSTREAM_UNAVAILABLE.value,
        "外部服务暂时不可用，请稍后重试",
        {"service": exc.service}
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """请求参数校验失败"""
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", [])),
            "message": error.get("msg"),
            "type": error.get("type")
        }
        for error in exc.errors()
    ]
    return error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "请求参数错误",
        {"errors": errors}
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(
        exc.status_code,
        "HTTP_ERROR",
        str(exc.detail),
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """数据库异常，按基础设施错误返回"""
    logger.error(f"数据库异常: {exc} path={request.url.path}")
    return error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        ErrorKind.UPSTREAM_UNAVAILABLE.value,
        "数据库暂时不可用，请稍后重试",
        {"service": "database"}
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"未处理异常: {exc} path={request.url.path}")
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_ERROR",
        "服务器内部错误"
    )
