"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import List, Literal, Union
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ...domain.value_objects.time_range import TimeRange


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, env_ignore_empty=True)

    # Booking backend
    backend_mode: Literal["http", "memory"] = "http"
    backend_base_url: str = "http://localhost:8080"
    backend_timeout_seconds: float = 10.0

    # Scheduling
    default_window_start: str = "06:00"
    default_window_end: str = "22:00"
    minimum_duration_minutes: int = 180
    session_idle_timeout_seconds: int = 3600

    # Application
    debug: bool = True
    log_level: str = "INFO"
    api_prefix: str = "/api/v1"

    # CORS
    allowed_origins: Union[str, List[str]] = "http://localhost:3000,http://localhost:5173"
    allowed_methods: Union[str, List[str]] = "GET,POST,PUT,DELETE,OPTIONS"
    allowed_headers: Union[str, List[str]] = "*"

    @field_validator("backend_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Requests must always carry an explicit, positive timeout."""
        if v <= 0:
            raise ValueError("backend_timeout_seconds must be positive")
        return v

    @model_validator(mode='after')
    def convert_cors_lists(self):
        """Convert comma-separated strings to lists."""
        if isinstance(self.allowed_origins, str):
            self.allowed_origins = [item.strip() for item in self.allowed_origins.split(",") if item.strip()]
        if isinstance(self.allowed_methods, str):
            self.allowed_methods = [item.strip() for item in self.allowed_methods.split(",") if item.strip()]
        if isinstance(self.allowed_headers, str):
            self.allowed_headers = [item.strip() for item in self.allowed_headers.split(",") if item.strip()]
        return self

    @model_validator(mode='after')
    def check_default_window(self):
        """The default editor window must be a valid range."""
        TimeRange.parse(self.default_window_start, self.default_window_end)
        return self

    @property
    def default_window(self) -> TimeRange:
        return TimeRange.parse(self.default_window_start, self.default_window_end)


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
