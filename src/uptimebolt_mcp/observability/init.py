"""
Observability initialization

Provides centralized initialization for logging, tracing and metrics.
"""

import logging
import logging.config
from pathlib import Path
from typing import Any, Optional

from ..config import LoggingConfig, UptimeBoltConfig
from .metrics import initialize_metrics
from .tracer import initialize_tracing

logger = logging.getLogger(__name__)

_initialized = False

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
JSON_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def build_logging_config(config: LoggingConfig, service_name: str) -> dict[str, Any]:
    """
    Build a ``logging.config.dictConfig`` mapping

    Console output always goes to stderr: the stdio transport owns stdout.
    """
    level = config.level.upper()
    handlers: dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": config.format,
            "stream": "ext://sys.stderr",
        }
    }

    if config.log_dir:
        log_file = Path(config.log_dir) / f"{service_name}.log"
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": level,
            "formatter": "json",
            "filename": str(log_file),
            "maxBytes": config.max_bytes,
            "backupCount": config.backup_count,
            "encoding": "utf-8",
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "class": "pythonjsonlogger.json.JsonFormatter",
                "format": JSON_FORMAT,
            },
            "text": {"format": TEXT_FORMAT},
        },
        "handlers": handlers,
        "root": {"level": level, "handlers": list(handlers)},
        "loggers": {
            "uptimebolt_mcp": {"level": level, "propagate": True},
            "httpx": {"level": "WARNING", "propagate": True},
        },
    }


def configure_logging(config: LoggingConfig, service_name: str = "uptimebolt-mcp") -> None:
    """Apply logging configuration, creating the log directory if needed"""
    if config.log_dir:
        Path(config.log_dir).mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(build_logging_config(config, service_name))


def initialize_observability(config: UptimeBoltConfig) -> None:
    """
    Initialize all observability features

    Args:
        config: Full configuration; logging, tracing and metrics sections are used
    """
    global _initialized

    if _initialized:
        logger.warning("Observability already initialized, skipping")
        return

    configure_logging(config.logging, config.telemetry.service_name)

    if config.telemetry.enable_tracing:
        try:
            initialize_tracing(config.telemetry, config.version)
        except Exception as e:
            logger.error(f"Failed to initialize tracing: {e}")

    if config.telemetry.enable_metrics:
        initialize_metrics()

    _initialized = True
    logger.info(
        f"Observability initialized (environment={config.telemetry.environment})"
    )


def is_observability_initialized() -> bool:
    return _initialized


def shutdown_observability() -> None:
    """Flush and shut down the tracer provider"""
    global _initialized

    if not _initialized:
        return

    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.trace import get_tracer_provider

    provider: Optional[Any] = get_tracer_provider()
    if isinstance(provider, TracerProvider):
        provider.shutdown()
        logger.debug("Tracing provider shutdown complete")

    _initialized = False
