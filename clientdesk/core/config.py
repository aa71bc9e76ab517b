from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    APP_ENV: str = "production"  # development | production | test
    APP_NAME: str = "clientdesk"
    APP_VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = ""

    DATABASE_URL: str = "sqlite+pysqlite:///./clientdesk.db"
    DB_CREATE_ALL: bool = True
    REDIS_URL: str = ""

    JWT_SECRET: str = "change_me_jwt"
    JWT_TTL_MINUTES: int = 24 * 60

    # Only honoured together with APP_ENV=development.
    AUTH_DEV_BYPASS: bool = False

    CORS_ORIGINS: str = "http://localhost:4200"
    MAX_BODY_BYTES: int = 1024 * 1024

    RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    RATE_LIMIT_MAX_REQUESTS: int = 100
    AUTH_RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    AUTH_RATE_LIMIT_MAX_REQUESTS: int = 10
    TRUST_PROXY: bool = False

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def is_development(self) -> bool:
        return str(self.APP_ENV or "").strip().lower() == "development"

    @property
    def auth_bypass_active(self) -> bool:
        return bool(self.AUTH_DEV_BYPASS) and self.is_development

settings = Settings()
