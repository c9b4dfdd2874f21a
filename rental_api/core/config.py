from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    DATABASE_URL: str
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    # JWT issued by /auth/login
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_MINUTES: int = 60 * 24 * 7

    # Dashboard frontends
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # Items at or below this quantity show up in /dashboard/low-stock
    LOW_STOCK_THRESHOLD: int = 5

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
