"""Configuration models for the easy-read API."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreConfig(BaseModel):
    """Configures document truncation and preview length."""

    max_text_chars: int = Field(default=20_000, ge=1)
    snippet_chars: int = Field(default=280, ge=2)


class RewriteConfig(BaseModel):
    """Configures the easy-read rewrite heuristic."""

    max_candidates: int = Field(default=5, ge=1)


class UploadConfig(BaseModel):
    """Configures upload limits and OCR behavior."""

    max_upload_bytes: int = Field(default=10 * 1024 * 1024, ge=1)
    ocr_language: str = Field(default="eng", min_length=1)


class RateLimitConfig(BaseModel):
    """Fixed-window request budget applied per client host."""

    max_requests: int = Field(default=60, ge=1)
    window_seconds: float = Field(default=60.0, gt=0.0)


class Settings(BaseSettings):
    """Process-level settings read from the environment or a `.env` file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5000, ge=1, le=65535)
    allowed_origin: str = Field(
        default="*",
        description="Comma-separated list of origins allowed by CORS",
    )
    log_level: str = Field(default="INFO")
    rate_limit_per_minute: int = Field(default=60, ge=1)
    max_upload_bytes: int = Field(default=10 * 1024 * 1024, ge=1)
    max_json_bytes: int = Field(default=2 * 1024 * 1024, ge=1)
    max_text_chars: int = Field(default=20_000, ge=1)
    ocr_engine: Literal["tesseract", "vision"] = Field(default="tesseract")
    ocr_language: str = Field(default="eng")
    openai_api_key: str | None = Field(default=None)
    openai_model: str = Field(default="gpt-4o-mini")

    @property
    def allowed_origins(self) -> list[str]:
        origins = [origin.strip() for origin in self.allowed_origin.split(",")]
        return [origin for origin in origins if origin] or ["*"]

    def store_config(self) -> StoreConfig:
        return StoreConfig(max_text_chars=self.max_text_chars)

    def rewrite_config(self) -> RewriteConfig:
        return RewriteConfig()

    def upload_config(self) -> UploadConfig:
        return UploadConfig(
            max_upload_bytes=self.max_upload_bytes,
            ocr_language=self.ocr_language,
        )

    def rate_limit_config(self) -> RateLimitConfig:
        return RateLimitConfig(max_requests=self.rate_limit_per_minute, window_seconds=60.0)
