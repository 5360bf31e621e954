"""Application settings and CORS configuration."""

import json
import os
from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=(".env"), env_file_encoding="utf-8")

    # App
    APP_NAME: str = "LINE Content Studio"
    ENVIRONMENT: str = "development"  # development | production | test

    # CORS
    # Accept list or CSV/JSON string from env; normalized to list[str] by validators
    CORS_ORIGINS: list[str] | str = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    ALLOW_CREDENTIALS: bool = True

    # Generation backend (OpenAI Responses API)
    OPENAI_API_KEY: str | None = None
    GENERATION_MODEL: str = "gpt-4o"
    ENHANCEMENT_MODEL: str = "gpt-4o"
    LLM_TIMEOUT_SECONDS: float = 60.0
    LLM_MAX_RETRIES: int = 2

    # Web search used by the enhancement lookup; optional
    BRAVE_SEARCH_API_KEY: str | None = None

    # Scraping
    SCRAPE_TIMEOUT_SECONDS: int = 10
    MIN_CONTENT_LENGTH: int = 50

    # Variation sampling
    BASE_TEMPERATURE: float = 0.7
    TEMPERATURE_STEP: float = 0.1
    TOP_P: float = 0.95
    MAX_EMPTY_RETRIES: int = 2
    MAX_PROMPT_ARTICLE_CHARS: int = 1500

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: object) -> list[str]:
        """Allow list, CSV string, or JSON array string for CORS origins."""
        if isinstance(v, list):
            return [str(i).strip() for i in v]
        if isinstance(v, str):
            s = v.strip()
            if not s:
                return []
            if s.startswith("["):
                try:
                    parsed = json.loads(s)
                except json.JSONDecodeError as e:
                    raise ValueError(
                        "CORS_ORIGINS must be a CSV list or JSON array string"
                    ) from e
                if not isinstance(parsed, list):
                    raise ValueError("CORS_ORIGINS JSON must be a list")
                return [str(i).strip() for i in parsed]
            # CSV fallback
            return [i.strip() for i in s.split(",") if i.strip()]
        raise ValueError("Invalid CORS_ORIGINS type; expected str or list[str]")

    @field_validator("MAX_EMPTY_RETRIES")
    @classmethod
    def _bounded_empty_retries(cls, v: int) -> int:
        if v < 0 or v > 5:
            raise ValueError("MAX_EMPTY_RETRIES must be between 0 and 5")
        return v

    @model_validator(mode="after")
    def _validate_cors_credentials(self) -> "Settings":
        """Ensure wildcard origins are not used when credentials are allowed."""
        if isinstance(self.CORS_ORIGINS, str):
            self.CORS_ORIGINS = self.assemble_cors_origins(self.CORS_ORIGINS)
        if self.ALLOW_CREDENTIALS and any(
            o.strip() == "*" for o in (self.CORS_ORIGINS or [])
        ):
            raise ValueError(
                "CORS configuration error: ALLOW_CREDENTIALS=True but "
                "CORS_ORIGINS contains '*'. Use explicit origins when credentials "
                "are allowed."
            )
        return self


@lru_cache
def get_settings() -> Settings:
    env = os.getenv("ENVIRONMENT", "development").lower()
    if env not in {"development", "production", "test"}:
        raise ValueError("ENVIRONMENT must be 'development', 'production', or 'test'")

    if env == "production":
        env_file = ".env.prod"
    elif env == "development":
        env_file = ".env.dev"
    else:
        # test environment - no env file needed, use defaults
        env_file = ""

    # Fail fast in production when the generation backend has no credentials.
    if env == "production" and not os.getenv("OPENAI_API_KEY"):
        if not (env_file and os.path.exists(env_file)):
            raise RuntimeError("OPENAI_API_KEY must be set in production")

    # `_env_file` is a runtime-only pydantic-settings kwarg that mypy's stub
    # doesn't know about.
    return Settings(_env_file=env_file or None)  # type: ignore[call-arg]
