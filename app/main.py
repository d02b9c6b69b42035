from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from app.core.auth import SupabaseAuthClient
from app.core.config import Settings
from app.core.database import Database
from app.core.exceptions import BusinessException, UpstreamUnavailableError
from app.core.omise import OmiseClient
from app.core.storage import SlipStorage
from app.api.health import router as health_router
from app.api.orders import router as orders_router
from app.api.payments import router as payments_router
from app.api.cart import router as cart_router
from app.api.enrollments import router as enrollments_router
from app.api.exceptions import (
    validation_exception_handler,
    http_exception_handler,
    database_exception_handler,
    general_exception_handler,
    business_exception_handler,
    upstream_exception_handler
)

import logging

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    logger.info("正在启动课程商城后端")

    database: Database = app.state.database
    try:
        await database.init_database()
        logger.info("PostgreSQL数据库初始化成功")

        if app.state.settings.is_production:
            await app.state.storage.ensure_bucket()
            logger.info("对象存储初始化成功")

        logger.info("应用启动完成")

    except Exception as e:
        logger.error(f"应用启动失败: {e}")
        raise

    yield

    logger.info("正在关闭应用")
    await database.close_database()
    logger.info("应用关闭完成")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """创建FastAPI应用，配置在此构造一次后注入各组件"""
    if settings is None:
        settings = Settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="在线课程商城后端 - 购物车、订单、优惠券、信用卡与银行转账支付",
        debug=settings.debug,
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.database = Database(settings)
    app.state.gateway = OmiseClient(settings)
    app.state.storage = SlipStorage(settings)
    app.state.auth_client = SupabaseAuthClient(settings)

    # CORS中间件
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 注册路由
    app.include_router(health_router)
    app.include_router(cart_router)
    app.include_router(orders_router)
    app.include_router(payments_router)
    app.include_router(enrollments_router)

    # 注册异常处理器
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(BusinessException, business_exception_handler)
    app.add_exception_handler(UpstreamUnavailableError, upstream_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    @app.get("/")
    async def root():
        """根路径"""
        return {
            "message": f"欢迎使用 {settings.app_name}",
            "version": settings.app_version,
            "docs": "/docs",
            "health": "/health",
        }

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=app.state.settings.debug,
        log_level=app.state.settings.log_level.lower()
    )
