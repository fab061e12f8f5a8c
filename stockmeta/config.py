from typing import List

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    GEMINI_API_KEY: str = ""
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    GEMINI_MODEL: str = "gemini-1.5-flash"
    GEMINI_TEXT_MODEL: str = "gemini-pro"
    GEMINI_TIMEOUT_SECONDS: float = 60.0

    PROCESSING_DELAY_SECONDS: float = 2.0
    MAX_UPLOAD_SIZE_GB: int = 10

    SVG_RASTER_WIDTH: int = 800
    SVG_RASTER_HEIGHT: int = 600

    FREE_CREDITS_LIMIT: int = 10

    DATABASE_URL: str = "postgresql+psycopg://user:password@db/dbname"
    GEOIP_BASE_URL: str = "http://ip-api.com/json"
    SESSION_IDLE_DAYS: int = 1

    JWT_SECRET_KEY: str = "change-me-in-production-0123456789"
    JWT_ALGORITHM: str = "HS256"

    CORS_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()
