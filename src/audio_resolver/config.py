"""Resolver configuration via pydantic-settings (.env + env vars)."""

import sys
from pathlib import Path
from typing import Literal

from loguru import logger
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .api.scoring import ScoringThresholds

DEFAULT_INSTANCE_A_URLS = [
    "https://ubiquitous-rugelach-b30b3f.netlify.app",
    "https://super-duper-system.netlify.app",
]

DEFAULT_INSTANCE_B_URLS = [
    "https://invidious.darkness.services",
    "https://yt.omada.cafe",
    "https://invidious.reallyaweso.me",
    "https://invidious.f5.si",
    "https://inv-veltrix-2.zeabur.app",
    "https://inv-veltrix.zeabur.app",
    "https://inv-veltrix-3.zeabur.app",
    "https://inv.vern.cc",
    "https://invidious.materialio.us",
    "https://y.com.sb",
]


class ResolverConfig(BaseSettings):
    """All resolver configuration with layered resolution:
    .env file < environment variables < constructor kwargs.

    List fields are read from env vars as JSON arrays.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # -- Endpoint pools (first = most preferred) --
    saavn_base_urls: list[str] = ["https://saavn.sumit.co"]
    instance_a_urls: list[str] = DEFAULT_INSTANCE_A_URLS
    instance_a_path_template: str = "/api/v1/videos/{id}"
    instance_b_urls: list[str] = DEFAULT_INSTANCE_B_URLS
    instance_b_path_template: str = "/api/v1/videos/{id}"

    # -- Timeouts (seconds) --
    search_timeout: float = 10.0
    instance_timeout: float = 8.0

    # -- Scoring --
    scoring_strategy: Literal["strict", "fuzzy"] = "strict"
    min_artist_ratio: float = 0.5
    close_duration_window: int = 10
    duration_window: int = 60
    confidence_floor: float = 5.0
    fuzzy_threshold: float = 65.0

    # -- HTTP front end --
    route_path: str = "/api/audio"
    host: str = "127.0.0.1"
    port: int = 8000

    # -- Logging --
    log_level: str = "INFO"
    log_file: Path | None = None

    @field_validator("saavn_base_urls", "instance_a_urls", "instance_b_urls")
    @classmethod
    def _dedupe_urls(cls, urls: list[str]) -> list[str]:
        """Strip trailing slashes and drop repeats, keeping first occurrence."""
        cleaned = list(dict.fromkeys(u.strip().rstrip("/") for u in urls if u.strip()))
        if not cleaned:
            raise ValueError("instance list must not be empty")
        return cleaned

    @field_validator("instance_a_path_template", "instance_b_path_template")
    @classmethod
    def _check_template(cls, template: str) -> str:
        if "{id}" not in template:
            raise ValueError("path template must contain '{id}'")
        if not template.startswith("/"):
            template = "/" + template
        return template

    @field_validator("search_timeout", "instance_timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout must be positive")
        return value

    @property
    def thresholds(self) -> ScoringThresholds:
        """Scoring constants for the strict selection policy."""
        return ScoringThresholds(
            min_artist_ratio=self.min_artist_ratio,
            close_duration_window=self.close_duration_window,
            duration_window=self.duration_window,
            confidence_floor=self.confidence_floor,
        )

    def setup_logging(self) -> None:
        """Configure loguru for the resolver."""
        logger.remove()  # Remove default stderr handler

        log_format = (
            "{time:YYYY-MM-DDTHH:mm:ssZ} | {level:<8} | "
            "{extra[stage]:<10} | {message}"
        )

        def _default_extra(record):
            record["extra"].setdefault("stage", "")
            return True

        logger.add(
            sys.stderr,
            format=log_format,
            level=self.log_level.upper(),
            filter=_default_extra,
        )

        if self.log_file is None:
            return

        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(self.log_file),
            format=log_format,
            level="DEBUG",
            rotation="10 MB",
            retention="30 days",
            filter=_default_extra,
        )
