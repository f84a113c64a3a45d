"""Pydantic models for validated configuration."""

from typing import List, Optional
from pydantic import BaseModel, Field


class RetrySettings(BaseModel):
    """Exponential backoff for transient provider errors."""
    max_attempts: int = Field(default=3, ge=1, description="Attempts per provider call, including the first")
    initial_delay: float = Field(default=1.0, ge=0, description="Delay before the first retry (seconds)")
    multiplier: float = Field(default=2.0, ge=1, description="Delay growth per retry")
    max_delay: float = Field(default=30.0, ge=0, description="Upper bound on a single delay (seconds)")

    class Config:
        extra = "forbid"


class ProviderSettings(BaseModel):
    """Which provider executes changes."""
    name: str = Field(default="local", description="Provider name from SUPPORTED_PROVIDERS")
    base_url: Optional[str] = Field(default=None, description="Endpoint for the http provider")
    timeout: float = Field(default=60.0, gt=0, description="Default HTTP timeout (seconds)")

    class Config:
        extra = "forbid"


class Settings(BaseModel):
    """Effective infraplan configuration."""
    parallelism: int = Field(default=10, ge=1, description="Maximum concurrent provider calls")
    provider_timeout: float = Field(default=60.0, gt=0, description="Per provider call timeout (seconds)")
    retry: RetrySettings = Field(default_factory=RetrySettings)
    state_path: str = Field(default="infraplan.state.json", description="State file location")
    provider: ProviderSettings = Field(default_factory=ProviderSettings)
    schema_paths: List[str] = Field(default_factory=list, description="Extra resource schema files")

    class Config:
        extra = "forbid"
