# clinicdesk/config.py
import os
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict
from typing import List
from functools import lru_cache

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Application Settings
    APP_NAME: str = "Clinic Front Desk API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    DOCS_ENABLED: bool = True

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = int(os.environ.get("PORT", 8000))

    # Records store ("sql" uses DATABASE_URL, "memory" keeps everything in-process)
    RECORDS_BACKEND: str = os.environ.get("RECORDS_BACKEND", "sql")
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "sqlite:///./clinicdesk.db")

    # CORS Settings (comma-separated to avoid JSON parsing in env)
    ALLOWED_ORIGINS: str = os.environ.get("ALLOWED_ORIGINS", "*")

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Front desk defaults
    APPOINTMENTS_PAGE_SIZE: int = 20
    DIRECTORY_PAGE_SIZE: int = 10
    PATIENT_SEARCH_MIN_CHARS: int = 2
    PATIENT_SEARCH_LIMIT: int = 10
    DEFAULT_APPOINTMENT_TIME: str = "10:00"
    CALENDAR_WINDOW_DAYS: int = 7
    CURRENCY_SYMBOL: str = "₹"

    def _split_csv(self, value: str) -> List[str]:
        if value is None:
            return []
        value = value.strip()
        if value == "":
            return []
        return [item.strip() for item in value.split(",")]

    @property
    def allowed_origins_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_ORIGINS)

@lru_cache()
def get_settings() -> Settings:
    s = Settings()
    # CORS_ORIGINS is accepted as an alias of ALLOWED_ORIGINS
    cors_env = os.environ.get("CORS_ORIGINS")
    if cors_env:
        s.ALLOWED_ORIGINS = cors_env
    return s

settings: Settings = get_settings()
