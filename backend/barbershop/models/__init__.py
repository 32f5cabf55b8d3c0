"""
SQLAlchemy модели для базы данных
"""
from .enums import AppointmentStatus, ExceptionType
from .barbershop import Barbershop
from .barber import Barber
from .client import Client
from .service import Service
from .barber_service import BarberService
from .appointment import Appointment
from .work_schedule import GlobalSchedule, BarberSchedule
from .schedule_exception import GlobalException, BarberException

__all__ = [
    "AppointmentStatus",
    "ExceptionType",
    "Barbershop",
    "Barber",
    "Client",
    "Service",
    "BarberService",
    "Appointment",
    "GlobalSchedule",
    "BarberSchedule",
    "GlobalException",
    "BarberException"
]
