"""
Application Configuration using Pydantic Settings

Loads configuration from environment variables with sensible defaults.
"""

from typing import List
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from hrms_connector.models.connection import OdooConfig, PoolConfig, RetryPolicy


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # ========================================================================
    # Application Settings
    # ========================================================================
    APP_NAME: str = "HRMS Odoo Connector"
    APP_VERSION: str = "1.0.0"
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 3000
    APP_DEBUG: bool = True
    API_PREFIX: str = "/api/v1"

    # ========================================================================
    # Odoo Connection Settings
    # ========================================================================
    # "web" targets an existing Odoo server, "docker" the compose service.
    ODOO_PROFILE: str = "web"

    ODOO_HOST: str = "localhost"
    ODOO_PORT: int = 8069
    ODOO_DATABASE: str = "odoo"
    ODOO_USERNAME: str = "admin"
    ODOO_PASSWORD: str = "admin"
    ODOO_PROTOCOL: str = "http"

    ODOO_DOCKER_HOST: str = "odoo"
    ODOO_DOCKER_PORT: int = 8069
    ODOO_DOCKER_PROTOCOL: str = "http"

    # Per-call XML-RPC socket timeout (seconds).
    ODOO_REQUEST_TIMEOUT: float = 30.0

    # If True, open ODOO_POOL_MIN sessions during FastAPI startup.
    # Default is False so the API boots even when Odoo is unreachable.
    ODOO_CONNECT_ON_STARTUP: bool = False

    # ========================================================================
    # Connection Pool Settings
    # ========================================================================
    ODOO_POOL_MIN: int = 2
    ODOO_POOL_MAX: int = 10
    ODOO_POOL_IDLE_TIMEOUT: float = 30.0
    ODOO_POOL_CONNECTION_TIMEOUT: float = 10.0

    # Authentication retry (exponential backoff)
    ODOO_RETRY_MAX_ATTEMPTS: int = 3
    ODOO_RETRY_DELAY: float = 1.0
    ODOO_RETRY_BACKOFF_MULTIPLIER: float = 2.0

    # ========================================================================
    # Odoo Model Names (override when using custom modules)
    # ========================================================================
    ODOO_MODEL_EMPLOYEE: str = "hr.employee"
    ODOO_MODEL_ATTENDANCE: str = "hr.attendance"
    ODOO_MODEL_LEAVE: str = "hr.leave"
    ODOO_MODEL_DEPARTMENT: str = "hr.department"
    ODOO_MODEL_JOB: str = "hr.job"
    ODOO_MODEL_CONTRACT: str = "hr.contract"
    ODOO_MODEL_PAYSLIP: str = "hr.payslip"
    ODOO_MODEL_EXPENSE: str = "hr.expense"
    ODOO_MODEL_INVOICE: str = "account.move"
    ODOO_MODEL_APPLICANT: str = "hr.applicant"

    # ========================================================================
    # Cache Settings
    # ========================================================================
    CACHE_ENABLED: bool = True
    CACHE_TTL_SECONDS: float = 300.0

    # ========================================================================
    # Pagination
    # ========================================================================
    PAGINATION_DEFAULT_LIMIT: int = 50
    PAGINATION_MAX_LIMIT: int = 100

    # ========================================================================
    # Security Settings
    # ========================================================================
    CORS_ORIGINS: List[str] = Field(default_factory=list, validate_default=True)

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _build_cors_origins(cls, v, info):
        if v:
            if isinstance(v, str):
                import json

                return json.loads(v)
            return v
        host = info.data.get("APP_HOST", "127.0.0.1")
        port = info.data.get("APP_PORT", 3000)
        origins = [f"http://{host}:{port}"]
        if host == "127.0.0.1":
            origins.append(f"http://localhost:{port}")
        elif host == "localhost":
            origins.append(f"http://127.0.0.1:{port}")
        return origins

    # ========================================================================
    # Logging Settings
    # ========================================================================
    LOG_LEVEL: str = "INFO"

    def odoo_models(self) -> dict[str, str]:
        return {
            "employee": self.ODOO_MODEL_EMPLOYEE,
            "attendance": self.ODOO_MODEL_ATTENDANCE,
            "leave": self.ODOO_MODEL_LEAVE,
            "department": self.ODOO_MODEL_DEPARTMENT,
            "job": self.ODOO_MODEL_JOB,
            "contract": self.ODOO_MODEL_CONTRACT,
            "payslip": self.ODOO_MODEL_PAYSLIP,
            "expense": self.ODOO_MODEL_EXPENSE,
            "invoice": self.ODOO_MODEL_INVOICE,
            "applicant": self.ODOO_MODEL_APPLICANT,
        }

    def odoo_config(self) -> OdooConfig:
        """
        Build the validated OdooConfig for the active profile.

        Unknown profiles fall back to "web".
        """
        if self.ODOO_PROFILE.strip().lower() == "docker":
            profile = "docker"
            host, port, protocol = (
                self.ODOO_DOCKER_HOST,
                self.ODOO_DOCKER_PORT,
                self.ODOO_DOCKER_PROTOCOL,
            )
        else:
            profile = "web"
            host, port, protocol = self.ODOO_HOST, self.ODOO_PORT, self.ODOO_PROTOCOL

        return OdooConfig(
            host=host,
            port=port,
            protocol=protocol.lower(),
            database=self.ODOO_DATABASE,
            username=self.ODOO_USERNAME,
            password=self.ODOO_PASSWORD,
            request_timeout=self.ODOO_REQUEST_TIMEOUT,
            profile=profile,
            pool=PoolConfig(
                min_connections=self.ODOO_POOL_MIN,
                max_connections=self.ODOO_POOL_MAX,
                idle_timeout=self.ODOO_POOL_IDLE_TIMEOUT,
                connection_timeout=self.ODOO_POOL_CONNECTION_TIMEOUT,
            ),
            retry=RetryPolicy(
                max_attempts=self.ODOO_RETRY_MAX_ATTEMPTS,
                delay=self.ODOO_RETRY_DELAY,
                backoff_multiplier=self.ODOO_RETRY_BACKOFF_MULTIPLIER,
            ),
            models=self.odoo_models(),
        )


# Create global settings instance
settings = Settings()
