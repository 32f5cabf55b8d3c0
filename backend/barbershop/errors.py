"""
Ошибки предметной области записи

Сервисы бросают эти исключения, HTTP-слой переводит их в ответы
(см. main.py). Повторных попыток внутри сервисов нет.
"""
from datetime import datetime
from typing import Optional


class BookingError(Exception):
    """Базовая ошибка операций с записями и расписанием"""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message}


class NotFoundError(BookingError):
    """Барбер, услуга, клиент или запись не найдены"""

    status_code = 404


class ValidationError(BookingError):
    """Нарушение бизнес-правил: неактивная услуга, нерабочее время, перерыв..."""

    status_code = 422


class InvalidStatusTransition(ValidationError):
    """Недопустимая смена статуса записи"""

    def __init__(self, current: str, new: str):
        super().__init__(f"Нельзя перевести запись из статуса {current} в {new}")
        self.current = current
        self.new = new


class ConflictError(BookingError):
    """
    Пересечение с существующей записью (или дубликат исключения).
    Для пересечения записей хранит окно конфликтующей записи и название услуги.
    """

    status_code = 409

    def __init__(
        self,
        message: str,
        conflict_start: Optional[datetime] = None,
        conflict_end: Optional[datetime] = None,
        service_name: Optional[str] = None
    ):
        super().__init__(message)
        self.conflict_start = conflict_start
        self.conflict_end = conflict_end
        self.service_name = service_name

    @classmethod
    def for_appointment(cls, start: datetime, end: datetime, service_name: str) -> "ConflictError":
        message = (
            f"Время занято: уже есть запись с {start.strftime('%H:%M')} "
            f"до {end.strftime('%H:%M')} на услугу \"{service_name}\""
        )
        return cls(message, conflict_start=start, conflict_end=end, service_name=service_name)

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.conflict_start is not None:
            data["conflict"] = {
                "start_time": self.conflict_start.isoformat(),
                "end_time": self.conflict_end.isoformat() if self.conflict_end else None,
                "service_name": self.service_name,
            }
        return data
