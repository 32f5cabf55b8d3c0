"""
Перечисления для моделей
"""
from enum import Enum


class AppointmentStatus(str, Enum):
    """Статусы записи"""

    SCHEDULED = "SCHEDULED"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


class ExceptionType(str, Enum):
    """Типы исключений из расписания на конкретную дату"""

    CLOSED = "CLOSED"
    OFF = "OFF"
    VACATION = "VACATION"
    SPECIAL_HOURS = "SPECIAL_HOURS"
    AVAILABLE = "AVAILABLE"


# Исключения барбера, означающие "не работает"
BARBER_OFF_TYPES = (ExceptionType.CLOSED, ExceptionType.OFF, ExceptionType.VACATION)
# Исключения барбера с особыми часами
BARBER_HOURS_TYPES = (ExceptionType.SPECIAL_HOURS, ExceptionType.AVAILABLE)
# Для всего барбершопа допустимы только эти
GLOBAL_EXCEPTION_TYPES = (ExceptionType.CLOSED, ExceptionType.SPECIAL_HOURS)
