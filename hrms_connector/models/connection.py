"""
Pydantic models describing how to reach Odoo.

OdooConfig is the single structure handed to OdooClient and OdooConnectionPool:
endpoint, credentials, pool sizing, authentication retry policy and the map of
logical model types to Odoo model names.

All durations are in seconds.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


DEFAULT_MODELS: dict[str, str] = {
    "employee": "hr.employee",
    "attendance": "hr.attendance",
    "leave": "hr.leave",
    "department": "hr.department",
    "job": "hr.job",
    "contract": "hr.contract",
    "payslip": "hr.payslip",
    "expense": "hr.expense",
    "invoice": "account.move",
    "applicant": "hr.applicant",
}


class PoolConfig(BaseModel):
    """Connection pool sizing and timeouts."""

    model_config = ConfigDict(frozen=True)

    min_connections: int = Field(2, ge=0, description="Connections kept warm")
    max_connections: int = Field(10, ge=1, description="Hard cap on open connections")
    idle_timeout: float = Field(30.0, gt=0, description="Seconds before a surplus idle connection is evicted")
    connection_timeout: float = Field(10.0, gt=0, description="Seconds a queued acquire waits before failing")

    @model_validator(mode="after")
    def _check_bounds(self) -> "PoolConfig":
        if self.min_connections > self.max_connections:
            raise ValueError(
                f"min_connections ({self.min_connections}) cannot exceed "
                f"max_connections ({self.max_connections})"
            )
        return self


class RetryPolicy(BaseModel):
    """Authentication retry policy (exponential backoff)."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(3, ge=1)
    delay: float = Field(1.0, ge=0, description="Seconds before the second attempt")
    backoff_multiplier: float = Field(2.0, ge=1.0)

    def delay_for(self, attempt: int) -> float:
        """Sleep after a failed 1-indexed `attempt`."""
        return self.delay * (self.backoff_multiplier ** (attempt - 1))


class OdooConfig(BaseModel):
    """Everything needed to open authenticated sessions against one Odoo database."""

    model_config = ConfigDict(frozen=True)

    host: str = "localhost"
    port: int = Field(8069, ge=1, le=65535)
    protocol: Literal["http", "https"] = "http"
    database: str = "odoo"
    username: str = "admin"
    password: str = Field("admin", repr=False)
    request_timeout: float = Field(30.0, gt=0)
    profile: str = "web"

    pool: PoolConfig = Field(default_factory=PoolConfig)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    models: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_MODELS))

    @property
    def url(self) -> str:
        return f"{self.protocol}://{self.host}:{self.port}"

    @property
    def connection_string(self) -> str:
        """Endpoint description for logs (no password)."""
        return f"{self.protocol}://{self.username}@{self.host}:{self.port}/{self.database}"

    def model_name(self, model_type: str) -> str | None:
        return self.models.get(model_type)
