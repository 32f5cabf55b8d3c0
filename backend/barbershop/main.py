"""
Главный файл FastAPI приложения
Barbershop Booking System - запись к барберам
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import get_settings
from .database import init_db
from .errors import BookingError
from .routes.appointments import router as appointments_router
from .routes.schedules import router as schedules_router

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)

# Создание таблиц в БД
init_db()

app = FastAPI(
    title="Barbershop Booking API",
    debug=settings.DEBUG
)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    """Перевод ошибок записи в HTTP-ответы"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(appointments_router)
app.include_router(schedules_router)


@app.get("/health")
async def health_check():
    return {"status": "ok", "environment": settings.ENVIRONMENT}
