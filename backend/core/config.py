from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


class AppSettings(BaseSettings):
    PORT: int = 10000
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False
    PORTAL_BASE_URL: str = "https://kiet.cybervidya.net/api"
    REQUEST_TIMEOUT_SECONDS: int = 10
    ATTENDANCE_THRESHOLD: int = Field(75, gt=0, lt=100)
    AUTH_COOKIE_NAME: str = "auth_token"
    AUTH_COOKIE_MAX_AGE_DAYS: int = 365
    AUTH_COOKIE_SECURE: bool = False
    # Backend feature toggles
    ENABLE_BACKEND_API: bool = True
    ENABLE_BACKEND_WEB: bool = True

    model_config = SettingsConfigDict(
        env_file=[".env", ".env.example"],
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def auth_cookie_max_age(self) -> int:
        return self.AUTH_COOKIE_MAX_AGE_DAYS * 24 * 60 * 60


def load_app_settings() -> AppSettings:
    try:
        return AppSettings()
    except Exception as error:
        raise ConfigurationError(f"Failed to load application settings: {error}")


# load config on module import
try:
    settings = load_app_settings()
except ConfigurationError as e:
    # Re-raise with additional context for easier debugging
    raise ConfigurationError(f"Failed to initialize configuration: {e}") from e
