from decimal import Decimal
from typing import Optional, Tuple
from enum import Enum

from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):

    """运行环境枚举"""
    TESTING = "testing"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """应用配置

    启动时显式构造一次，通过构造函数传给各组件；实例不可变。
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        frozen=True
    )

    # 应用基础配置
    app_name: str = "Course Commerce Backend"
    app_version: str = "1.0.0"
    environment: Environment = Environment.TESTING
    debug: bool = True

    # 数据库配置
    database_url: Optional[str] = None
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "course_commerce_db"
    db_user: str = "course_commerce_user"
    db_password: str = "course_commerce_password"

    # 支付网关配置 (Omise)
    omise_public_key: str = ""
    omise_secret_key: str = ""
    omise_api_url: str = "https://api.omise.co"
    omise_vault_url: str = "https://vault.omise.co"
    omise_timeout: float = 15.0
    payment_currency: str = "thb"
    min_charge_amount: Decimal = Decimal("20")  # 网关最低扣款金额(THB)

    # 认证服务配置 (Supabase)
    supabase_url: str = "http://localhost:54321"
    supabase_anon_key: str = ""
    auth_timeout: float = 10.0
    admin_role: str = "admin"

    # 对象存储配置 (MinIO)
    minio_endpoint: str = "localhost:9000"
    minio_access_key: str = "minioadmin"
    minio_secret_key: str = "minioadmin"
    minio_secure: bool = False
    slip_bucket_name: str = "payment-slips"
    storage_public_url: Optional[str] = None

    # 转账凭证约束
    slip_max_file_size: int = 5 * 1024 * 1024
    slip_allowed_mime_types: Tuple[str, ...] = ("image/jpeg", "image/png")
    slip_min_dimension: int = 200
    slip_max_dimension: int = 10000

    # 日志配置
    log_level: str = "INFO"

    @property
    def is_testing(self) -> bool:
        return self.environment == Environment.TESTING

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def database_url_computed(self) -> str:
        """计算数据库URL"""
        if self.database_url:
            return self.database_url
        return f"postgresql+asyncpg://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    @property
    def storage_public_url_computed(self) -> str:
        """计算对象存储公开访问地址"""
        if self.storage_public_url:
            return self.storage_public_url.rstrip("/")
        scheme = "https" if self.minio_secure else "http"
        return f"{scheme}://{self.minio_endpoint}"
