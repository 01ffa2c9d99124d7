"""Application settings loaded from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "AgriGenius"
    app_version: str = "0.1.0"
    api_prefix: str = "/api"
    host: str = "0.0.0.0"
    port: int = 8000
    database_url: str = "sqlite:///./agrigenius.db"
    data_root: str = "./data"
    media_url_prefix: str = "/media"
    preferences_path: str = "~/.config/agrigenius/preferences.yml"
    default_language: str = "en"
    # Sensor telemetry polling
    sensor_poll_interval_seconds: float = 5.0
    sensor_fetch_timeout: float = 10.0
    # Open-Meteo forecast settings
    weather_api_url: str = "https://api.open-meteo.com/v1/forecast"
    weather_refresh_minutes: int = 20
    weather_api_timeout: float = 10.0
    weather_forecast_days: int = 5
    weather_hourly_entries: int = 8
    # Generative model
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    gemini_timeout_seconds: float = 60.0
    # Auth tokens
    jwt_secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 7 * 24 * 60
    min_password_length: int = 6
    metrics_enabled: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()

__all__ = ["settings", "Settings"]
