from pydantic_settings import BaseSettings, SettingsConfigDict

from rapla_proxy.constants import RAPLA_SETTINGS


class Settings(BaseSettings):
    APP_ENV: str = "development"
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 8080
    LOG_LEVEL: str = "INFO"

    # Upstream Rapla calendar
    RAPLA_URL: str = RAPLA_SETTINGS.DEFAULT_URL
    RAPLA_KEY: str = RAPLA_SETTINGS.DEFAULT_KEY
    RAPLA_SALT: str = ""  # Optional, newer Rapla instances require it
    RAPLA_PAGES: int = RAPLA_SETTINGS.DEFAULT_PAGES  # weeks per request
    RAPLA_LOOKBACK_DAYS: int = RAPLA_SETTINGS.DEFAULT_LOOKBACK_DAYS

    # Timeouts (seconds)
    UPSTREAM_TIMEOUT_SECONDS: float = 20.0
    EXTRACT_TIMEOUT_SECONDS: float = 30.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()


def validate_settings(config: Settings = settings):
    """Validate that the settings describe a usable proxy"""
    problems = []

    if not config.RAPLA_KEY or config.RAPLA_KEY.strip() == "":
        problems.append("RAPLA_KEY must not be empty")
    if config.RAPLA_PAGES <= 0:
        problems.append("RAPLA_PAGES must be positive")
    for key_name, value in [
        ("UPSTREAM_TIMEOUT_SECONDS", config.UPSTREAM_TIMEOUT_SECONDS),
        ("EXTRACT_TIMEOUT_SECONDS", config.EXTRACT_TIMEOUT_SECONDS),
    ]:
        if value <= 0:
            problems.append(f"{key_name} must be positive")

    if problems:
        raise ValueError(
            f"Invalid configuration: {'; '.join(problems)}. "
            f"Please check your environment or .env file."
        )
