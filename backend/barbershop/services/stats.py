"""
Статистика по записям
"""
from dataclasses import dataclass, asdict
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models import Appointment, AppointmentStatus
from .filters import AppointmentFilters, apply_filters


@dataclass(frozen=True)
class AppointmentStats:
    total: int
    scheduled: int
    confirmed: int
    in_progress: int
    completed: int
    cancelled: int
    no_show: int
    total_revenue: Decimal
    average_price: Decimal

    def to_dict(self) -> dict:
        data = asdict(self)
        data["total_revenue"] = float(self.total_revenue)
        data["average_price"] = float(self.average_price)
        return data


def aggregate_stats(db: Session, filters: AppointmentFilters) -> AppointmentStats:
    """
    Количество записей по статусам, выручка и средний чек.
    Деньги считаются только по COMPLETED. Фильтр по статусу игнорируется.
    """
    counts_query = apply_filters(
        db.query(Appointment.status, func.count(Appointment.id)),
        filters,
        with_status=False
    ).group_by(Appointment.status)
    counts = {status: count for status, count in counts_query.all()}

    revenue_query = apply_filters(
        db.query(func.sum(Appointment.total_price), func.avg(Appointment.total_price)),
        filters,
        with_status=False
    ).filter(Appointment.status == AppointmentStatus.COMPLETED.value)
    total_revenue, average_price = revenue_query.one()

    def count(status: AppointmentStatus) -> int:
        return counts.get(status.value, 0)

    return AppointmentStats(
        total=sum(counts.values()),
        scheduled=count(AppointmentStatus.SCHEDULED),
        confirmed=count(AppointmentStatus.CONFIRMED),
        in_progress=count(AppointmentStatus.IN_PROGRESS),
        completed=count(AppointmentStatus.COMPLETED),
        cancelled=count(AppointmentStatus.CANCELLED),
        no_show=count(AppointmentStatus.NO_SHOW),
        total_revenue=Decimal(str(total_revenue or 0)).quantize(Decimal("0.01")),
        average_price=Decimal(str(average_price or 0)).quantize(Decimal("0.01"))
    )
