"""
Configuration management for uptimebolt-mcp

Provides pydantic-based configuration with environment variable support
and YAML file loading capabilities.
"""

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GatewayConfig(BaseModel):
    """UptimeBolt API connection settings"""

    base_url: str = "http://localhost:3200"
    api_key: str = ""
    api_prefix: str = "/api/v1"
    default_timeout_ms: int = Field(default=30_000, gt=0)
    summary_timeout_ms: int = Field(default=60_000, gt=0)
    analysis_timeout_ms: int = Field(default=300_000, gt=0)


class HttpServerConfig(BaseModel):
    """Streamable HTTP front-end settings"""

    host: str = "0.0.0.0"
    port: int = Field(default=3100, ge=1, le=65535)
    auth_check_timeout_ms: int = Field(default=5_000, gt=0)


class LoggingConfig(BaseModel):
    """Logging output settings"""

    level: str = "INFO"
    format: Literal["text", "json"] = "text"
    # Directory for a rotating log file; console only when unset
    log_dir: Optional[str] = None
    max_bytes: int = 20 * 1024 * 1024
    backup_count: int = 14


class TelemetryConfig(BaseModel):
    """Telemetry and observability configuration"""

    enable_tracing: bool = False
    enable_metrics: bool = False
    otlp_endpoint: Optional[str] = None
    service_name: str = "uptimebolt-mcp"
    environment: str = "development"


class UptimeBoltConfig(BaseSettings):
    """Main uptimebolt-mcp configuration"""

    model_config = SettingsConfigDict(
        env_prefix="UPTIMEBOLT_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    http: HttpServerConfig = Field(default_factory=HttpServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)

    # Short forms: UPTIMEBOLT_API_URL / UPTIMEBOLT_API_KEY
    api_url: Optional[str] = None
    api_key: Optional[str] = None

    server_name: str = "uptimebolt"
    version: str = "1.0.0"

    @model_validator(mode="after")
    def _apply_short_forms(self) -> "UptimeBoltConfig":
        if self.api_url:
            self.gateway.base_url = self.api_url
        if self.api_key:
            self.gateway.api_key = self.api_key
        return self

    @classmethod
    def load_from_file(cls, config_path: str = "uptimebolt.yml") -> "UptimeBoltConfig":
        """Load configuration from YAML file with environment variable override"""
        import yaml

        config_file = Path(config_path)
        config_data = {}

        if config_file.exists():
            with open(config_file, encoding="utf-8") as f:
                config_data = yaml.safe_load(f) or {}

        # Keys set in the file win over environment variables
        return cls(**config_data)

    def masked_dump(self) -> dict[str, Any]:
        """Configuration as a dict with credentials masked"""
        data = self.model_dump()
        data["gateway"]["api_key"] = mask_key(self.gateway.api_key)
        data["api_key"] = mask_key(self.api_key) if self.api_key else None
        return data


def mask_key(key: Optional[str]) -> str:
    """Show only the first 8 and last 4 characters of a credential"""
    if not key:
        return ""
    if len(key) <= 12:
        return "*" * len(key)
    return f"{key[:8]}...{key[-4:]}"


# Global configuration instance
_config: Optional[UptimeBoltConfig] = None


def get_config() -> UptimeBoltConfig:
    """Get the global configuration instance"""
    global _config
    if _config is None:
        _config = UptimeBoltConfig.load_from_file()
    return _config


def set_config(config: Optional[UptimeBoltConfig]) -> None:
    """Set the global configuration instance"""
    global _config
    _config = config
