"""Configuration schema"""
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ..infra.retry_policy import RetryConfig


class RetrySettings(BaseModel):
    """Delivery retry policy"""
    max_retries: int = Field(default=3, ge=0, description="Retries after the first attempt")
    retry_delay_ms: int = Field(default=1000, ge=0, description="Base delay in milliseconds")
    backoff: Literal["linear", "exponential"] = "linear"

    def to_retry_config(self) -> RetryConfig:
        return RetryConfig.from_retries(
            max_retries=self.max_retries,
            retry_delay_ms=self.retry_delay_ms,
            backoff=self.backoff,
        )


class RouterSettings(BaseModel):
    """Inbound message routing"""
    auto_surface_ids: list[str] = Field(default_factory=lambda: ["main", "auto"])
    default_surface_id: str = "main"

    @field_validator("auto_surface_ids", mode="before")
    @classmethod
    def parse_surface_ids(cls, v):
        """Parse placeholder ids from a comma-separated string"""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v or []


class TransportSettings(BaseModel):
    url: Optional[str] = Field(default=None, description="Agent WebSocket endpoint")
    open_timeout: float = Field(default=10.0, gt=0)
    auth_token: Optional[str] = None


class SurfaceSettings(BaseModel):
    prune_deleted: bool = Field(default=False, description="Drop deleted surfaces from the index")
    max_render_depth: int = Field(default=64, ge=1)


class A2UIEngineConfig(BaseModel):
    """Engine configuration"""
    retry: RetrySettings = Field(default_factory=RetrySettings)
    router: RouterSettings = Field(default_factory=RouterSettings)
    transport: TransportSettings = Field(default_factory=TransportSettings)
    surface: SurfaceSettings = Field(default_factory=SurfaceSettings)


__all__ = [
    "RetrySettings",
    "RouterSettings",
    "TransportSettings",
    "SurfaceSettings",
    "A2UIEngineConfig",
]
