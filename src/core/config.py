"""Application settings for the record intake service."""

import json
import os
from functools import lru_cache
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=(".env"), env_file_encoding="utf-8")

    # App
    APP_NAME: str = "Health Nexus Intake"
    ENVIRONMENT: str = "development"  # development | production | test

    # Upload service
    # "http" posts to UPLOAD_API_BASE_URL; "simulated" mimics a round trip locally
    UPLOAD_BACKEND: Literal["http", "simulated"] = "simulated"
    UPLOAD_API_BASE_URL: str = "http://localhost:8080"
    UPLOAD_TIMEOUT_SECONDS: float = 10.0
    SIMULATED_UPLOAD_DELAY_SECONDS: float = 1.5

    # Acting hospital for this console; None until the operator is authenticated
    HOSPITAL_ID: str | None = None

    # Reject record types outside the known selector values
    STRICT_RECORD_TYPES: bool = False

    # CORS
    # Accept list or CSV/JSON string from env; normalized to list[str] by validators
    CORS_ORIGINS: list[str] | str = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]
    ALLOW_CREDENTIALS: bool = True

    @field_validator("UPLOAD_API_BASE_URL")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        """Avoid `//api/upload` when joining the endpoint path."""
        return v.rstrip("/")

    @field_validator("UPLOAD_TIMEOUT_SECONDS", "SIMULATED_UPLOAD_DELAY_SECONDS")
    @classmethod
    def _non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("durations must be >= 0")
        return v

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

    # pydantic-settings accepts a runtime-only `_env_file` kwarg that mypy's stub
    # doesn't know about.
    settings = Settings(_env_file=env_file or None)  # type: ignore[call-arg]

    # Production must talk to the real upload service
    if env == "production" and settings.UPLOAD_BACKEND == "simulated":
        raise RuntimeError("UPLOAD_BACKEND=simulated is not allowed in production")

    return settings
