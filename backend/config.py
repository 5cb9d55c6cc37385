# backend/config.py
# Environment-driven settings. .env is loaded once on import.

from __future__ import annotations
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

HERE = Path(__file__).resolve().parent

DEFAULT_MODEL = "gemini-1.5-flash"


@dataclass(frozen=True)
class Settings:
    HOST: str = "0.0.0.0"
    PORT: int = 5000
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = DEFAULT_MODEL
    GEMINI_TIMEOUT: float = 60.0
    UPLOAD_DIR: Path = HERE / "upload"
    REPORTS_DIR: Path = HERE / "reports"
    STATIC_DIR: Path = HERE / "public"
    MAX_UPLOAD_MB: int = 10
    LOG_LEVEL: str = "INFO"

    @property
    def max_content_length(self) -> int:
        return self.MAX_UPLOAD_MB * 1024 * 1024

    @property
    def max_report_length(self) -> int:
        # base64 data URL plus the analysis text and JSON framing
        return self.max_content_length * 3 // 2


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _env_path(name: str, default: Path) -> Path:
    raw = os.environ.get(name)
    return Path(raw).resolve() if raw else default


def load_settings(overrides: Optional[dict] = None) -> Settings:
    settings = Settings(
        HOST=os.environ.get("HOST", Settings.HOST),
        PORT=_env_int("PORT", Settings.PORT),
        GEMINI_API_KEY=os.environ.get("GEMINI_API_KEY") or None,
        GEMINI_MODEL=os.environ.get("GEMINI_MODEL", DEFAULT_MODEL),
        GEMINI_TIMEOUT=_env_float("GEMINI_TIMEOUT", Settings.GEMINI_TIMEOUT),
        UPLOAD_DIR=_env_path("UPLOAD_DIR", Settings.UPLOAD_DIR),
        REPORTS_DIR=_env_path("REPORTS_DIR", Settings.REPORTS_DIR),
        STATIC_DIR=_env_path("STATIC_DIR", Settings.STATIC_DIR),
        MAX_UPLOAD_MB=_env_int("MAX_UPLOAD_MB", Settings.MAX_UPLOAD_MB),
        LOG_LEVEL=os.environ.get("LOG_LEVEL", Settings.LOG_LEVEL).upper(),
    )
    if overrides:
        # paths may come in as plain strings (e.g. pytest tmp dirs)
        fixed = {
            k: Path(v) if k.endswith("_DIR") and v is not None else v
            for k, v in overrides.items()
        }
        settings = replace(settings, **fixed)
    return settings
