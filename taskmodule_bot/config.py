"""
Centralized configuration for the task-module bot.
- Loads from environment variables and an optional app.yaml file.
- Provides typed settings via Pydantic models.
- Exposes helpers for logging and CORS.
"""
from __future__ import annotations

import os
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator
import yaml

# Ensure .env is loaded early
load_dotenv()

PACKAGE_DIR = os.path.dirname(__file__)
DEFAULT_CONFIG_PATH = os.path.join(PACKAGE_DIR, "app.yaml")
DEFAULT_CARD_PATH = os.path.join(PACKAGE_DIR, "resources", "adaptive_card.json")


class CORSConfig(BaseModel):
    allow_origins: List[str] = Field(default_factory=lambda: ["*"])
    allow_methods: List[str] = Field(default_factory=lambda: ["GET", "POST", "OPTIONS"])
    allow_headers: List[str] = Field(default_factory=lambda: ["*"])
    allow_credentials: bool = True


class FastAPIConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 3978
    reload: bool = False
    workers: int = 1
    cors: CORSConfig = Field(default_factory=CORSConfig)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    json_format: bool = False
    slow_request_threshold_ms: int = 1200


class PanelConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_url: str = "http://localhost:3978/"
    card_path: str = DEFAULT_CARD_PATH

    @field_validator("base_url")
    @classmethod
    def _ensure_trailing_slash(cls, v: str) -> str:
        # Panel urls are built as base_url + panel id
        v = v.strip()
        return v if v.endswith("/") else v + "/"


class RegistryTimeouts(BaseModel):
    connect: float = 5.0
    read: float = 10.0
    total: float = 15.0


class RegistryConfig(BaseModel):
    search_url: str = "https://azuresearch-usnc.nuget.org/query"
    prerelease: bool = True
    timeouts: RegistryTimeouts = Field(default_factory=RegistryTimeouts)


class ConnectorConfig(BaseModel):
    timeout: float = 15.0


class AppMeta(BaseModel):
    app_name: str = "Task Module Bot"
    environment: str = Field(default_factory=lambda: os.getenv("APP_ENV", "dev"))
    version: str = "1.0"


class Settings(BaseModel):
    meta: AppMeta = Field(default_factory=AppMeta)
    fastapi: FastAPIConfig = Field(default_factory=FastAPIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    panels: PanelConfig = Field(default_factory=PanelConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    connector: ConnectorConfig = Field(default_factory=ConnectorConfig)


def _load_yaml_config(path: str) -> dict:
    if not os.path.isfile(path):
        return {}
    with open(path, "r", encoding="utf-8") as f:
        try:
            return yaml.safe_load(f) or {}
        except yaml.YAMLError:
            return {}


def _env_override(cfg: dict) -> dict:
    """Override select fields from env; keep simple to avoid surprises."""
    if os.getenv("APP_ENV"):
        cfg.setdefault("meta", {})["environment"] = os.getenv("APP_ENV")
    if os.getenv("LOG_LEVEL"):
        cfg.setdefault("logging", {})["level"] = os.getenv("LOG_LEVEL")

    for k_env, section, key in [
        ("BASE_URL", "panels", "base_url"),
        ("ADAPTIVE_CARD_PATH", "panels", "card_path"),
        ("REGISTRY_SEARCH_URL", "registry", "search_url"),
    ]:
        val = os.getenv(k_env)
        if val is not None:
            cfg.setdefault(section, {})[key] = val

    return cfg


def load_settings(path: Optional[str] = None) -> Settings:
    base_cfg = _load_yaml_config(path or os.getenv("BOT_CONFIG_PATH", DEFAULT_CONFIG_PATH))
    merged = _env_override(base_cfg)
    # Pydantic will coerce nested dicts into typed models
    return Settings(**merged)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


# ---- Helpers ---------------------------------------------------------------

def configure_logging(settings: Settings) -> None:
    import logging
    import sys

    from taskmodule_bot.middleware.request_id import RequestIDLogFilter

    console = logging.StreamHandler(sys.stdout)
    console.addFilter(RequestIDLogFilter())

    logging.basicConfig(
        level=settings.logging.level.upper(),
        format=(
            "%(message)s"
            if settings.logging.json_format
            else "%(asctime)s %(levelname)s %(name)s [%(request_id)s] - %(message)s"
        ),
        handlers=[console],
        force=True,
    )


def build_cors(settings: Settings):
    from fastapi.middleware.cors import CORSMiddleware

    def add(app):
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.fastapi.cors.allow_origins,
            allow_methods=settings.fastapi.cors.allow_methods,
            allow_headers=settings.fastapi.cors.allow_headers,
            allow_credentials=settings.fastapi.cors.allow_credentials,
        )
        return app

    return add
