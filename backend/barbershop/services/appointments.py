"""
Сервис записей: создание, перенос, смена статуса, выборки
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional, Union

from sqlalchemy.orm import Session, joinedload

from ..config import get_settings
from ..errors import NotFoundError, ValidationError
from ..models import (
    Appointment,
    AppointmentStatus,
    Barber,
    BarberService,
    Client,
    Service,
)
from .conflicts import ConflictDetector, intervals_overlap
from .filters import ORDER_DIRECTIONS, ORDER_FIELDS, AppointmentFilters, apply_filters
from .locks import barber_write_lock
from .schedule import ScheduleService, to_shop_time
from .slots import AvailableSlot, SlotGenerator
from .stats import AppointmentStats, aggregate_stats
from .status import ensure_transition, is_terminal

settings = get_settings()
logger = logging.getLogger(__name__)


@dataclass
class AppointmentPage:
    items: List[Appointment]
    total: int
    has_more: bool


def _parse_status(value: Union[str, AppointmentStatus]) -> AppointmentStatus:
    try:
        return AppointmentStatus(value)
    except ValueError:
        raise ValidationError(f"Неизвестный статус записи: {value}")


class AppointmentService:
    """Жизненный цикл записей к барберам"""

    def __init__(self, db: Session, enforce_transitions: Optional[bool] = None):
        self.db = db
        self.schedule = ScheduleService(db)
        self.conflicts = ConflictDetector(db)
        self.slots = SlotGenerator(db)
        if enforce_transitions is None:
            enforce_transitions = settings.ENFORCE_STATUS_TRANSITIONS
        self.enforce_transitions = enforce_transitions

    # ==================== Проверки ====================

    def validate_working_hours(self, barber_id: int, shop_id: int, start_time: datetime, end_time: datetime):
        """
        Запись должна целиком попадать в рабочие часы и не задевать перерыв.
        Сравнение идёт по времени суток.
        """
        start_time, end_time = to_shop_time(start_time), to_shop_time(end_time)
        hours = self.schedule.resolve_working_hours(barber_id, shop_id, start_time)
        if hours is None:
            logger.warning(f"Отказ в записи: барбер {barber_id} не работает {start_time:%Y-%m-%d}")
            raise ValidationError("Барбер не работает в этот день")

        working_hours = f"{hours.start.strftime('%H:%M')}-{hours.end.strftime('%H:%M')}"
        # Запись через полночь не влезает ни в один рабочий день
        if end_time.date() != start_time.date():
            logger.warning(f"Отказ в записи: барбер {barber_id}, {start_time}-{end_time} через полночь")
            raise ValidationError(f"Время вне рабочего графика. Рабочие часы: {working_hours}")

        start, end = start_time.time(), end_time.time()
        if start < hours.start or end > hours.end:
            logger.warning(f"Отказ в записи: барбер {barber_id}, {start_time}-{end_time} вне часов {working_hours}")
            raise ValidationError(f"Время вне рабочего графика. Рабочие часы: {working_hours}")

        if hours.has_break and intervals_overlap(start, end, hours.break_start, hours.break_end):
            logger.warning(f"Отказ в записи: барбер {barber_id}, {start_time}-{end_time} задевает перерыв")
            raise ValidationError(
                f"Время пересекается с перерывом: "
                f"{hours.break_start.strftime('%H:%M')}-{hours.break_end.strftime('%H:%M')}"
            )

    def _get_active_barber(self, shop_id: int, barber_id: int) -> Barber:
        barber = self.db.query(Barber).filter(
            Barber.id == barber_id,
            Barber.barbershop_id == shop_id,
            Barber.is_active == True  # noqa: E712
        ).first()
        if not barber:
            raise NotFoundError("Барбер не найден или неактивен")
        return barber

    def _get_assignment(self, barber_id: int, service_id: int) -> BarberService:
        assignment = self.db.query(BarberService).filter(
            BarberService.barber_id == barber_id,
            BarberService.service_id == service_id,
            BarberService.is_active == True  # noqa: E712
        ).first()
        if not assignment:
            raise ValidationError("Барбер не выполняет эту услугу")
        return assignment

    def _get_active_service(self, shop_id: int, service_id: int) -> Service:
        service = self.db.query(Service).filter(
            Service.id == service_id,
            Service.barbershop_id == shop_id,
            Service.is_active == True  # noqa: E712
        ).first()
        if not service:
            raise NotFoundError("Услуга не найдена или неактивна")
        return service

    # ==================== Создание и изменение ====================

    def create(
        self,
        shop_id: int,
        barber_id: int,
        client_id: int,
        service_id: int,
        start_time: datetime,
        notes: Optional[str] = None
    ) -> Appointment:
        """
        Создать запись.
        Цена и окончание фиксируются по услуге на момент записи.
        Время с часовым поясом переводится в местное время барбершопа.
        """
        start_time = to_shop_time(start_time)
        self._get_active_barber(shop_id, barber_id)
        assignment = self._get_assignment(barber_id, service_id)
        service = self._get_active_service(shop_id, service_id)

        client = self.db.query(Client).filter(Client.id == client_id).first()
        if not client:
            raise NotFoundError("Клиент не найден")

        end_time = start_time + timedelta(minutes=service.duration_minutes)
        total_price = assignment.custom_price if assignment.custom_price is not None else service.price

        with barber_write_lock(self.db, barber_id):
            self.conflicts.ensure_no_conflict(barber_id, start_time, end_time)
            self.validate_working_hours(barber_id, shop_id, start_time, end_time)

            appointment = Appointment(
                barbershop_id=shop_id,
                barber_id=barber_id,
                client_id=client_id,
                service_id=service_id,
                start_time=start_time,
                end_time=end_time,
                total_price=total_price,
                status=AppointmentStatus.SCHEDULED.value,
                notes=notes
            )
            self.db.add(appointment)
            self.db.commit()

        self.db.refresh(appointment)
        logger.info(
            f"Создана запись #{appointment.id}: барбер {barber_id}, "
            f"{start_time:%Y-%m-%d %H:%M}-{end_time:%H:%M}, {total_price}"
        )
        return appointment

    def get(self, appointment_id: int) -> Appointment:
        appointment = self.db.query(Appointment).options(
            joinedload(Appointment.service),
            joinedload(Appointment.barber),
            joinedload(Appointment.client)
        ).filter(Appointment.id == appointment_id).first()

        if not appointment:
            raise NotFoundError("Запись не найдена")
        return appointment

    def update(
        self,
        appointment_id: int,
        start_time: Optional[datetime] = None,
        status: Optional[Union[str, AppointmentStatus]] = None,
        notes: Optional[str] = None
    ) -> Appointment:
        """
        Изменить запись: перенос времени, статус, заметки.
        При переносе длительность берётся из самой записи, а не из текущей услуги.
        """
        appointment = self.get(appointment_id)
        new_status = _parse_status(status) if status is not None else None
        old_status = appointment.status
        if start_time is not None:
            start_time = to_shop_time(start_time)

        if new_status is not None and self.enforce_transitions:
            ensure_transition(appointment.status, new_status)

        if start_time is not None and start_time != appointment.start_time:
            if self.enforce_transitions and is_terminal(appointment.status):
                raise ValidationError("Нельзя перенести завершённую или отменённую запись")

            end_time = start_time + timedelta(minutes=appointment.duration_minutes)
            with barber_write_lock(self.db, appointment.barber_id):
                self.conflicts.ensure_no_conflict(
                    appointment.barber_id, start_time, end_time,
                    exclude_appointment_id=appointment.id
                )
                self.validate_working_hours(
                    appointment.barber_id, appointment.barbershop_id, start_time, end_time
                )

                old_start = appointment.start_time
                appointment.start_time = start_time
                appointment.end_time = end_time
                self._apply_fields(appointment, new_status, notes)
                self.db.commit()

            logger.info(f"Запись #{appointment.id} перенесена: {old_start:%Y-%m-%d %H:%M} -> {start_time:%Y-%m-%d %H:%M}")
        else:
            self._apply_fields(appointment, new_status, notes)
            self.db.commit()

        if new_status is not None and new_status.value != old_status:
            logger.info(f"Запись #{appointment.id}: {old_status} -> {new_status.value}")

        self.db.refresh(appointment)
        return appointment

    @staticmethod
    def _apply_fields(appointment: Appointment, status: Optional[AppointmentStatus], notes: Optional[str]):
        if status is not None:
            appointment.status = status.value
        if notes is not None:
            appointment.notes = notes

    # ==================== Смена статуса ====================

    def cancel(self, appointment_id: int, reason: Optional[str] = None) -> Appointment:
        return self.update(appointment_id, status=AppointmentStatus.CANCELLED, notes=reason)

    def confirm(self, appointment_id: int) -> Appointment:
        return self.update(appointment_id, status=AppointmentStatus.CONFIRMED)

    def start_service(self, appointment_id: int) -> Appointment:
        return self.update(appointment_id, status=AppointmentStatus.IN_PROGRESS)

    def complete(self, appointment_id: int, notes: Optional[str] = None) -> Appointment:
        return self.update(appointment_id, status=AppointmentStatus.COMPLETED, notes=notes)

    def mark_no_show(self, appointment_id: int) -> Appointment:
        return self.update(appointment_id, status=AppointmentStatus.NO_SHOW)

    # ==================== Выборки ====================

    def list_appointments(self, filters: Optional[AppointmentFilters] = None) -> AppointmentPage:
        """
        Список записей с фильтрами и пагинацией
        """
        filters = filters or AppointmentFilters()
        if filters.order_by not in ORDER_FIELDS:
            raise ValidationError(f"Сортировка возможна только по: {', '.join(ORDER_FIELDS)}")
        if filters.order_direction not in ORDER_DIRECTIONS:
            raise ValidationError("Направление сортировки: asc или desc")

        skip = max(filters.skip, 0)
        take = filters.take if filters.take is not None else settings.DEFAULT_PAGE_SIZE
        take = min(max(take, 1), settings.MAX_PAGE_SIZE)

        query = apply_filters(self.db.query(Appointment), filters)
        total = query.count()

        column = getattr(Appointment, filters.order_by)
        ordering = column.desc() if filters.order_direction == "desc" else column.asc()
        items = query.options(
            joinedload(Appointment.service),
            joinedload(Appointment.barber),
            joinedload(Appointment.client)
        ).order_by(ordering, Appointment.id).offset(skip).limit(take).all()

        return AppointmentPage(items=items, total=total, has_more=skip + take < total)

    def get_available_slots(
        self,
        barber_id: int,
        shop_id: int,
        target_date: Union[date, datetime],
        service_duration_minutes: Optional[int] = None
    ) -> List[AvailableSlot]:
        return self.slots.generate_slots(barber_id, shop_id, target_date, service_duration_minutes)

    def get_stats(self, filters: Optional[AppointmentFilters] = None) -> AppointmentStats:
        return aggregate_stats(self.db, filters or AppointmentFilters())
