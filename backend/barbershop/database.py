"""
Подключение к базе данных (PostgreSQL или SQLite)
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from .config import get_settings

settings = get_settings()

# Создание движка базы данных
if settings.DATABASE_URL.startswith("sqlite"):
    # SQLite - для локальной разработки и тестов
    engine = create_engine(
        settings.DATABASE_URL,
        connect_args={"check_same_thread": False},
        echo=settings.DEBUG
    )
else:
    # PostgreSQL - для продакшена
    engine = create_engine(
        settings.DATABASE_URL,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
        echo=settings.DEBUG
    )

# Создание фабрики сессий
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Базовый класс для моделей
Base = declarative_base()


def get_db():
    """
    Dependency для получения сессии базы данных
    Использование:
        @router.get("/appointments")
        def list_appointments(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """
    Инициализация базы данных
    Создание всех таблиц, определенных в моделях
    """
    # Импорт нужен, чтобы все модели зарегистрировались в Base.metadata
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
