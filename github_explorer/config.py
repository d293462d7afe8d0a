from typing import Dict
from pydantic import BaseModel, Field, ConfigDict

DEFAULT_BASE_URL = "https://api.github.com"
DEFAULT_HEADERS = {
    "Accept": "application/vnd.github.v3+json",
    "User-Agent": "github-explorer/1.0.0",
}


class TransportConfig(BaseModel):
    """Settings for the HTTP transport. Timeouts and delays are in seconds."""
    model_config = ConfigDict(frozen=True)

    base_url: str = DEFAULT_BASE_URL
    timeout: float = Field(10.0, gt=0)
    max_attempts: int = Field(3, ge=1)
    retry_delay: float = Field(1.0, ge=0)
    headers: Dict[str, str] = Field(default_factory=dict, description="Extra static headers")


class CacheConfig(BaseModel):
    """Default time-to-live per resource kind, in seconds. 0 disables expiry."""
    model_config = ConfigDict(frozen=True)

    account_ttl: int = Field(300, ge=0)
    owned_items_ttl: int = Field(600, ge=0)
    search_ttl: int = Field(180, ge=0)
