"""
Генерация слотов для записи

Сетка идёт от начала рабочего дня с фиксированным шагом (SLOT_STEP_MINUTES),
длина слота равна длительности услуги. Возвращаются все слоты дня,
и свободные, и занятые - что показывать, решает вызывающий код.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from ..config import get_settings
from ..errors import NotFoundError, ValidationError
from ..models import Appointment, AppointmentStatus, Barber
from .conflicts import intervals_overlap
from .schedule import ScheduleService, WorkingHours, normalize_date

settings = get_settings()


@dataclass(frozen=True)
class AvailableSlot:
    """Слот-кандидат (не хранится в БД)"""

    start_time: datetime
    end_time: datetime
    available: bool

    def to_dict(self) -> dict:
        return {
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "available": self.available,
        }


def build_slots(
    target_date: date,
    hours: WorkingHours,
    duration_minutes: int,
    busy: List[tuple],
    step_minutes: int
) -> List[AvailableSlot]:
    """
    Построить слоты дня по рабочим часам и занятым интервалам.
    busy - список пар (start, end) существующих записей.
    """
    day_start, day_end = hours.bounds(target_date)
    break_window = hours.break_bounds(target_date)
    duration = timedelta(minutes=duration_minutes)
    step = timedelta(minutes=step_minutes)

    slots = []
    current = day_start
    while current < day_end:
        slot_end = current + duration
        # Слот не должен выходить за рабочее время - обрезанных слотов не бывает
        if slot_end > day_end:
            break

        in_break = break_window is not None and intervals_overlap(current, slot_end, *break_window)
        is_busy = any(intervals_overlap(current, slot_end, start, end) for start, end in busy)

        slots.append(AvailableSlot(
            start_time=current,
            end_time=slot_end,
            available=not in_break and not is_busy
        ))
        current += step

    return slots


class SlotGenerator:
    """Слоты барбера на день"""

    def __init__(self, db: Session):
        self.db = db
        self.step_minutes = settings.SLOT_STEP_MINUTES
        self.schedule = ScheduleService(db)

    def get_day_appointments(self, barber_id: int, target_date: date) -> List[Appointment]:
        """Неотменённые записи барбера на дату, по времени начала"""
        day_start = datetime.combine(target_date, datetime.min.time())
        day_end = day_start + timedelta(days=1)

        return self.db.query(Appointment).filter(
            Appointment.barber_id == barber_id,
            Appointment.start_time >= day_start,
            Appointment.start_time < day_end,
            Appointment.status != AppointmentStatus.CANCELLED.value
        ).order_by(Appointment.start_time).all()

    def generate_slots(
        self,
        barber_id: int,
        shop_id: int,
        target_date: Union[date, datetime],
        service_duration_minutes: Optional[int] = None
    ) -> List[AvailableSlot]:
        """
        Все слоты барбера на дату с отметкой доступности.
        Пустой список - барбер в этот день не работает.
        """
        if service_duration_minutes is None:
            service_duration_minutes = settings.DEFAULT_SERVICE_DURATION_MINUTES
        if service_duration_minutes <= 0:
            raise ValidationError("Длительность услуги должна быть положительной")

        day = normalize_date(target_date)
        hours = self.schedule.resolve_working_hours(barber_id, shop_id, day)
        if hours is None:
            return []

        busy = [(apt.start_time, apt.end_time) for apt in self.get_day_appointments(barber_id, day)]
        return build_slots(day, hours, service_duration_minutes, busy, self.step_minutes)

    def get_shop_availability(
        self,
        shop_id: int,
        target_date: Union[date, datetime],
        barber_id: Optional[int] = None,
        service_duration_minutes: Optional[int] = None
    ) -> List[dict]:
        """
        Доступность всех активных барберов барбершопа на дату
        (или одного, если передан barber_id)
        """
        day = normalize_date(target_date)
        query = self.db.query(Barber).filter(
            Barber.barbershop_id == shop_id,
            Barber.is_active == True  # noqa: E712
        )
        if barber_id is not None:
            query = query.filter(Barber.id == barber_id)
        barbers = query.order_by(Barber.name).all()

        if barber_id is not None and not barbers:
            raise NotFoundError("Барбер не найден или неактивен")

        result = []
        for barber in barbers:
            hours = self.schedule.resolve_working_hours(barber.id, shop_id, day)
            slots = self.generate_slots(barber.id, shop_id, day, service_duration_minutes) if hours else []
            result.append({
                "barber_id": barber.id,
                "barber_name": barber.name,
                "is_working": hours is not None,
                "working_hours": hours.to_dict() if hours else None,
                "slots": [slot.to_dict() for slot in slots],
            })

        return result
