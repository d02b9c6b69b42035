import httpx
from typing import Optional
from pydantic import BaseModel
import structlog

from app.core.config import Settings
from app.core.exceptions import UpstreamUnavailableError

"认证服务客户端：通过 Supabase 解析访问令牌"

logger = structlog.get_logger()


class AuthenticatedUser(BaseModel):
    """已认证用户"""
    id: str
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None


class SupabaseAuthClient:
    """Supabase 令牌解析客户端

    只负责把 bearer token 解析为用户，不校验令牌内容本身。
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self._transport = transport

    async def get_user(self, access_token: str) -> Optional[AuthenticatedUser]:
        """解析访问令牌，令牌无效返回None"""
        headers = {
            "Authorization": f"Bearer {access_token}",
            "apikey": self.settings.supabase_anon_key,
        }
        try:
            async with httpx.AsyncClient(
                    base_url=self.settings.supabase_url,
                    timeout=self.settings.auth_timeout,
                    transport=self._transport
            ) as client:
                response = await client.get("/auth/v1/user", headers=headers)
        except httpx.TimeoutException as e:
            logger.error("认证服务请求超时", error=str(e))
            raise UpstreamUnavailableError("auth", "认证服务请求超时") from e
        except httpx.HTTPError as e:
            logger.error("认证服务网络错误", error=str(e))
            raise UpstreamUnavailableError("auth", f"认证服务网络错误: {e}") from e

        if response.status_code in (401, 403):
            logger.info("访问令牌无效", status_code=response.status_code)
            return None
        if response.status_code >= 400:
            logger.error("认证服务返回错误", status_code=response.status_code)
            raise UpstreamUnavailableError("auth", f"认证服务错误: HTTP {response.status_code}")

        body = response.json()
        # 角色只取服务端维护的 app_metadata，user_metadata 可由用户自行修改
        app_metadata = body.get("app_metadata") or {}
        return AuthenticatedUser(
            id=body["id"],
            email=body.get("email"),
            phone=body.get("phone"),
            role=app_metadata.get("role")
        )
