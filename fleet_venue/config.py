from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # ─── Application ───────────────────────────────────────────────────────────
    APP_NAME: str = "Fleet & Venue Administration"
    APP_ENV:  str = "development"
    APP_DEBUG: bool = True
    APP_HOST:  str = "0.0.0.0"
    APP_PORT:  int = 8000

    # ─── Database ──────────────────────────────────────────────────────────────
    DATABASE_URL:                  str
    DATABASE_POOL_SIZE:            int  = 10
    DATABASE_MAX_OVERFLOW:         int  = 20
    DATABASE_POOL_TIMEOUT:         int  = 30
    DATABASE_ECHO:                 bool = False
    DATABASE_STATEMENT_TIMEOUT_MS: int  = 15000

    # ─── JWT ───────────────────────────────────────────────────────────────────
    SECRET_KEY:                  str
    ALGORITHM:                   str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480

    # ─── Sessions / Login ──────────────────────────────────────────────────────
    SESSION_TTL_MINUTES:            int = 30
    SESSION_TOUCH_INTERVAL_SECONDS: int = 60
    MAX_FAILED_LOGINS:              int = 3

    # ─── Domain ────────────────────────────────────────────────────────────────
    DRIVERS_DEPARTMENT_NAME:    str = "Drivers"
    BASE_PRICE_COST_TYPE_ID:    int = 1
    DEPOSIT_COST_TYPE_ID:       int = 2
    EXTERNAL_SEARCH_MIN_LENGTH: int = 3

    # ─── CORS ──────────────────────────────────────────────────────────────────
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:8000"

    def get_cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    model_config = {"env_file": ".env", "case_sensitive": True, "extra": "ignore"}


settings = Settings()
