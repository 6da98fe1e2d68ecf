"""Deployment settings, read from the environment or a .env file."""

import logging
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from action_kernel.models.config import PipelineConfig


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ACTION_KERNEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Backend that fronts telephony, gmail, calendar and market data
    backend_url: str = "http://localhost:5000"
    backend_timeout: float = 15.0

    # OpenAI-compatible chat completions endpoint; empty key disables the model paths
    llm_base_url: str = "https://api.openai.com/v1"
    llm_api_key: str = ""
    llm_model: str = "gpt-4o-mini"

    # Pattern counters; ":memory:" keeps them for the process lifetime only
    pattern_db_path: str = ":memory:"

    confirmation_ttl_seconds: Optional[int] = 600
    log_level: str = "INFO"

    def pipeline_config(self) -> PipelineConfig:
        return PipelineConfig(confirmation_ttl_seconds=self.confirmation_ttl_seconds)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )
