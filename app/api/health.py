from fastapi import APIRouter, Depends, Request
import logging

from app.api.deps import get_settings
from app.core.config import Settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["健康检查"])


@router.get("")
async def health_check(settings: Settings = Depends(get_settings)):
    """基础健康检查接口"""
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment
    }


@router.get("/database")
async def database_health(request: Request):
    """数据库连接健康检查"""
    db_status = await request.app.state.database.health_check()

    if db_status["status"] != "healthy":
        logger.warning(f"数据库连接检查失败: {db_status['message']}")
    else:
        logger.info("数据库连接检查通过")

    return {
        "postgresql": db_status["status"] == "healthy",
        "details": {"postgresql": db_status["message"]}
    }
