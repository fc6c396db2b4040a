from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

class Settings(BaseSettings):
    APP_NAME: str = "Student Risk Monitoring Portal API"
    APP_VERSION: str = "0.3.0"
    DATABASE_URL: str = "sqlite:///./risk_portal.db"   # "sqlite://" keeps everything in memory
    GROQ_API_KEY: Optional[str] = None                 # unset -> fallback narratives only
    NARRATIVE_MODEL: str = "llama-3.3-70b-versatile"
    NOTIFICATION_CAPACITY: int = 50
    AUDIT_LOG_CAPACITY: int = 100
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

@lru_cache(maxsize=1)
def get_settings():
    return Settings()
