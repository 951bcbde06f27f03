import json
import logging
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Hard ceilings protecting both the target server and the local machine.
MAX_CONCURRENCY = 100
MAX_TOTAL_REQUESTS = 1000

VALID_HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD")
BODY_METHODS = ("POST", "PUT", "PATCH")


class InspectorSettings(BaseSettings):
    """Runtime configuration, read from ``API_INSPECTOR_*`` variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="API_INSPECTOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Target server
    base_url: str = Field(default="http://localhost:3000")
    request_timeout: float = Field(default=10.0, gt=0)
    test_request_timeout: float = Field(default=30.0, gt=0)
    batch_pause: float = Field(default=0.01, ge=0)

    # LLM provider for performance insights
    llm_provider: str = Field(default="gemini")  # gemini|openai|custom
    llm_api_key: str = Field(default="")
    llm_model: Optional[str] = None
    llm_base_url: Optional[str] = None
    llm_timeout: float = Field(default=60.0, gt=0)

    # Output settings
    output_dir: str = "api_inspector_results"

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("llm_provider")
    @classmethod
    def normalize_provider(cls, v: str) -> str:
        return (v or "gemini").strip().lower()

    def url_for(self, endpoint: str) -> str:
        """Join the configured base URL with an endpoint path."""
        if not endpoint.startswith("/"):
            endpoint = f"/{endpoint}"
        return f"{self.base_url}{endpoint}"


class LoadTestConfig(BaseModel):
    """Configuration for a single load test run.

    Requested values are kept as given; the effective values used by the
    scheduler are clamped to ``MAX_CONCURRENCY`` and ``MAX_TOTAL_REQUESTS``.
    Accepts the camelCase keys sent by the UI (``totalRequests``).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    endpoint: str
    method: str = "GET"
    concurrency: int = Field(default=10)
    total_requests: int = Field(default=50, alias="totalRequests")
    body: Optional[str] = None

    @field_validator("endpoint", mode="before")
    @classmethod
    def normalize_endpoint(cls, v: Any) -> str:
        v = str(v or "").strip()
        if not v.startswith("/"):
            v = f"/{v}"
        return v

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method(cls, v: Any) -> str:
        method = str(v or "GET").strip().upper()
        if method not in VALID_HTTP_METHODS:
            raise ValueError(f"unsupported HTTP method {method!r}, expected one of {', '.join(VALID_HTTP_METHODS)}")
        return method

    @field_validator("body", mode="before")
    @classmethod
    def serialize_body(cls, v: Any) -> Optional[str]:
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, (dict, list)):
            return json.dumps(v)
        return str(v)

    @property
    def effective_concurrency(self) -> int:
        return max(1, min(self.concurrency, MAX_CONCURRENCY))

    @property
    def effective_total_requests(self) -> int:
        return max(0, min(self.total_requests, MAX_TOTAL_REQUESTS))

    @property
    def was_clamped(self) -> bool:
        return (
            self.effective_concurrency != self.concurrency
            or self.effective_total_requests != self.total_requests
        )

    def log_clamping(self) -> None:
        """Warn when the requested values were capped."""
        if not self.was_clamped:
            return
        logger.warning(
            f"Load test config clamped: concurrency {self.concurrency} -> {self.effective_concurrency}, "
            f"total_requests {self.total_requests} -> {self.effective_total_requests}"
        )

    def to_dict(self) -> dict:
        return {
            "endpoint": self.endpoint,
            "method": self.method,
            "concurrency": self.effective_concurrency,
            "totalRequests": self.effective_total_requests,
            "body": self.body,
        }
