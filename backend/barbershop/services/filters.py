"""
Фильтры выборки записей (общие для списка и статистики)
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Query

from ..models import Appointment, AppointmentStatus

ORDER_FIELDS = ("start_time", "created_at")
ORDER_DIRECTIONS = ("asc", "desc")


@dataclass
class AppointmentFilters:
    barbershop_id: Optional[int] = None
    barber_id: Optional[int] = None
    client_id: Optional[int] = None
    service_id: Optional[int] = None
    status: Optional[AppointmentStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    skip: int = 0
    take: Optional[int] = None
    order_by: str = "start_time"
    order_direction: str = "asc"


def _day_start(value: date) -> datetime:
    if isinstance(value, datetime):
        value = value.date()
    return datetime.combine(value, datetime.min.time())


def apply_filters(query: Query, filters: AppointmentFilters, with_status: bool = True) -> Query:
    """
    Наложить фильтры на запрос по Appointment.
    Диапазон дат включает оба конца: от начала start_date до конца end_date.
    """
    if filters.barbershop_id is not None:
        query = query.filter(Appointment.barbershop_id == filters.barbershop_id)
    if filters.barber_id is not None:
        query = query.filter(Appointment.barber_id == filters.barber_id)
    if filters.client_id is not None:
        query = query.filter(Appointment.client_id == filters.client_id)
    if filters.service_id is not None:
        query = query.filter(Appointment.service_id == filters.service_id)
    if with_status and filters.status is not None:
        query = query.filter(Appointment.status == AppointmentStatus(filters.status).value)
    if filters.start_date is not None:
        query = query.filter(Appointment.start_time >= _day_start(filters.start_date))
    if filters.end_date is not None:
        query = query.filter(Appointment.start_time < _day_start(filters.end_date) + timedelta(days=1))
    return query
