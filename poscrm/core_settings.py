from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

class Settings(BaseSettings):
    POSTGRES_HOST: str = "postgres"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "poscrm"
    POSTGRES_USER: str = "poscrm"
    POSTGRES_PASSWORD: str = "poscrm"
    # Full SQLAlchemy URL; wins over the POSTGRES_* parts when set
    DATABASE_URL: Optional[str] = None

    JWT_SECRET: str = "change-me"
    JWT_ALG: str = "HS256"
    JWT_EXPIRES_MINUTES: int = 60 * 24

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    # False restores best-effort ledger writes on order edits
    LEDGER_WRITES_REQUIRED: bool = True

    RUN_MIGRATIONS: bool = True
    SEED_DEFAULTS: bool = True
    ADMIN_EMAIL: str = "admin@poscrm.com"
    ADMIN_PASSWORD: str = "change-me-admin"

    # Invoice header
    COMPANY_NAME: str = "POS CRM System"
    COMPANY_ADDRESS: str = "123 Business Street"
    COMPANY_CITY_STATE: str = "City, State 12345"
    COMPANY_PHONE: str = "(555) 123-4567"
    COMPANY_EMAIL: str = "info@poscrm.com"

    class Config:
        env_file = ".env"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

@lru_cache
def get_settings() -> Settings:
    return Settings()
