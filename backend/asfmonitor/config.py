# backend/asfmonitor/config.py
import logging
import os
import sys
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

load_dotenv()

DEFAULT_START_TIME = "08:00"

# Day boundaries are computed in this zone, never the host's local zone.
MONITORING_TIMEZONE = "Asia/Singapore"


def _parse_origins(raw: str) -> list[str]:
    if not raw:
        return ["*"]
    parts = [p.strip() for p in raw.split(",") if p.strip()]
    return parts or ["*"]


class Settings(BaseModel):
    """Application settings read from the environment (and .env)."""

    database_url: str = Field(default="sqlite:///./asf_monitor.db")
    monitoring_timezone: str = Field(default=MONITORING_TIMEZONE)
    default_start_time: str = Field(default=DEFAULT_START_TIME)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    log_level: str = Field(default="INFO")

    @field_validator("monitoring_timezone")
    def validate_timezone(cls, v):
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown time zone: {v}") from e
        return v

    @field_validator("default_start_time")
    def validate_start_time(cls, v):
        # scheduler imports this module
        from .scheduler import parse_start_time

        parse_start_time(v)
        return v

    @field_validator("log_level")
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.monitoring_timezone)


def load_settings_from_env() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL") or "sqlite:///./asf_monitor.db",
        monitoring_timezone=os.getenv("MONITORING_TIMEZONE", MONITORING_TIMEZONE),
        default_start_time=os.getenv("DEFAULT_START_TIME", DEFAULT_START_TIME),
        cors_origins=_parse_origins(os.getenv("CORS_ORIGINS", "")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )


@lru_cache
def get_settings() -> Settings:
    return load_settings_from_env()


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Configure the package logger once with a consistent format.

    Args:
        level: Log level name (defaults to settings.log_level).

    Returns:
        The configured ``asfmonitor`` logger.
    """
    logger = logging.getLogger("asfmonitor")
    log_level = level or get_settings().log_level
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # avoid duplicate handlers on reload
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            "[%(levelname)s] %(asctime)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(handler)
    logger.propagate = False
    return logger
