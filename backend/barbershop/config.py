"""
Конфигурация приложения
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from pathlib import Path


class Settings(BaseSettings):
    """Настройки приложения"""

    # Database
    DATABASE_URL: str = "sqlite:///./barbershop.db"

    # Booking Settings
    SLOT_STEP_MINUTES: int = 15  # Шаг сетки слотов, не зависит от длительности услуги
    DEFAULT_SERVICE_DURATION_MINUTES: int = 30
    ENFORCE_STATUS_TRANSITIONS: bool = True  # False = любые смены статуса, как раньше
    SHOP_TIMEZONE: str = "Europe/Moscow"  # Время с поясом приводится к местному времени барбершопа

    # Pagination
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # Development
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    class Config:
        # Путь к .env относительно корня проекта
        env_file = Path(__file__).resolve().parent.parent.parent / ".env"
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Получить настройки приложения (с кешированием)"""
    return Settings()
