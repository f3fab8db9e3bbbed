"""
Configuration management for Glacier Watch API
"""
from typing import Annotated, List, Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # API Configuration
    api_title: str = "Glacier Watch API"
    api_description: str = "Glacier lake flood-risk map, selection and triage"
    api_version: str = "1.0.0"
    debug: bool = False

    # Security Configuration
    api_key: Optional[str] = None
    cors_origins: Annotated[List[str], NoDecode] = ["http://localhost:3000", "http://localhost:5173"]
    trusted_hosts: Annotated[List[str], NoDecode] = ["localhost", "127.0.0.1", "testserver"]

    # External APIs
    lake_api_url: str = "https://glacier-backend-1.onrender.com"
    geoapify_api_key: Optional[str] = None
    geoapify_url: str = "https://api.geoapify.com/v1"
    geoapify_search_bias: str = "countrycode:np,in"
    request_timeout_seconds: float = 10.0
    retry_attempts: int = 3

    # Map Configuration
    map_center_longitude: float = 86.6
    map_center_latitude: float = 27.9
    map_zoom: float = 8
    map_tiles: str = "CartoDB positron"

    # Selection / viewport
    fly_to_zoom: float = 11
    fly_to_duration_ms: int = 1000
    refresh_on_select: bool = False
    hit_tolerance_degrees: float = 0.01

    # Salience animation
    animation_fps: float = 60.0

    # Logging Configuration
    log_level: str = "INFO"
    log_format: str = "json"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator('cors_origins', 'trusted_hosts', mode='before')
    @classmethod
    def parse_csv_list(cls, v):
        if isinstance(v, str):
            return [item.strip() for item in v.split(',') if item.strip()]
        return v

    @field_validator('debug', 'refresh_on_select', mode='before')
    @classmethod
    def parse_bool(cls, v):
        if isinstance(v, str):
            return v.lower() in ('true', '1', 'yes', 'on')
        return v

    @field_validator('animation_fps')
    @classmethod
    def positive_fps(cls, v):
        if v <= 0:
            raise ValueError("animation_fps must be positive")
        return v


# Global settings instance
settings = Settings()
