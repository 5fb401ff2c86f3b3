"""Pydantic v2 configuration schema with strict validation."""

from enum import StrEnum

from pydantic import BaseModel, Field

NWS_HOURLY_URL = "https://api.weather.gov/gridpoints/OKX/37,39/forecast/hourly"
NWS_DAILY_URL = "https://api.weather.gov/gridpoints/OKX/37,39/forecast"
ECOBEE_BASE_URL = "https://api.ecobee.com"


class TokenPolicy(StrEnum):
    EXPIRY = "expiry"
    ALWAYS_REFRESH = "always-refresh"


class WorkerConfig(BaseModel):
    model_config = {"extra": "forbid"}

    throttle_seconds: float = Field(default=300.0, gt=0.0)
    tick_seconds: float = Field(default=4.0, gt=0.0)


class WeatherConfig(BaseModel):
    model_config = {"extra": "forbid"}

    hourly_url: str = NWS_HOURLY_URL
    daily_url: str = NWS_DAILY_URL
    timeout_seconds: float = Field(default=30.0, gt=0.0)
    retry_attempts: int = Field(default=5, ge=1)
    retry_delay_seconds: float = Field(default=2.0, ge=0.0)


class EcobeeConfig(BaseModel):
    model_config = {"extra": "forbid"}

    client_id: str = ""
    base_url: str = ECOBEE_BASE_URL
    scope: str = "smartRead"
    timeout_seconds: float = Field(default=30.0, gt=0.0)
    token_policy: TokenPolicy = TokenPolicy.EXPIRY


class ServerConfig(BaseModel):
    model_config = {"extra": "forbid"}

    host: str = "127.0.0.1"
    port: int = Field(default=8080, ge=1, le=65535)
    cors_host: str = "*"
    shared_secret: str = ""


class ThermHubConfig(BaseModel):
    model_config = {"extra": "forbid"}

    db_path: str = "data/thermhub.db"
    worker: WorkerConfig = WorkerConfig()
    weather: WeatherConfig = WeatherConfig()
    ecobee: EcobeeConfig = EcobeeConfig()
    server: ServerConfig = ServerConfig()
