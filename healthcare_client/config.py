from __future__ import annotations

import os
from typing import Literal

from pydantic import BaseModel, Field, ValidationError

__all__ = [
    "DEFAULT_HEALTHCARE_BASE_URL",
    "DEFAULT_RESOURCE_MANAGER_BASE_URL",
    "Settings",
    "get_settings",
]

DEFAULT_HEALTHCARE_BASE_URL = "https://healthcare.googleapis.com"
DEFAULT_RESOURCE_MANAGER_BASE_URL = "https://cloudresourcemanager.googleapis.com"


class Settings(BaseModel):
    """Runtime configuration, normally read from the environment."""

    healthcare_base_url: str = DEFAULT_HEALTHCARE_BASE_URL
    resource_manager_base_url: str = DEFAULT_RESOURCE_MANAGER_BASE_URL
    access_token: str | None = None  # static bearer token; None means use ADC
    http_timeout: float = Field(30.0, gt=0)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"


def get_settings(env: dict[str, str] | None = None) -> Settings:
    """Build Settings from HEALTHCARE_* / RESOURCE_MANAGER_* / LOG_LEVEL vars.

    Unset variables fall back to the defaults. Raises ValueError on a value
    that does not validate (a non-numeric or negative HTTP_TIMEOUT, an
    unknown LOG_LEVEL).
    """
    env = os.environ if env is None else env
    raw: dict[str, object] = {}
    if env.get("HEALTHCARE_BASE_URL"):
        raw["healthcare_base_url"] = env["HEALTHCARE_BASE_URL"].rstrip("/")
    if env.get("RESOURCE_MANAGER_BASE_URL"):
        raw["resource_manager_base_url"] = env["RESOURCE_MANAGER_BASE_URL"].rstrip("/")
    if env.get("HEALTHCARE_ACCESS_TOKEN"):
        raw["access_token"] = env["HEALTHCARE_ACCESS_TOKEN"]
    if env.get("HTTP_TIMEOUT"):
        raw["http_timeout"] = env["HTTP_TIMEOUT"]
    if env.get("LOG_LEVEL"):
        raw["log_level"] = env["LOG_LEVEL"].upper()
    try:
        return Settings(**raw)
    except ValidationError as e:
        raise ValueError(f"invalid configuration: {e}") from e
