"""
Сервис для работы с расписанием барберов и барбершопа

Рабочие часы на дату определяются по цепочке источников (от старшего к младшему):
исключение барбера -> расписание барбера -> исключение барбершопа -> расписание барбершопа.
Первый источник, давший однозначный ответ, побеждает.
"""
import logging
from dataclasses import dataclass
from datetime import date, time, datetime
from enum import Enum
from typing import Callable, List, Optional, Tuple, Union
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from ..config import get_settings
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import (
    Barber,
    BarberException,
    BarberSchedule,
    Barbershop,
    ExceptionType,
    GlobalException,
    GlobalSchedule,
)
from ..models.enums import BARBER_HOURS_TYPES, BARBER_OFF_TYPES, GLOBAL_EXCEPTION_TYPES

settings = get_settings()
logger = logging.getLogger(__name__)


class HoursSource(str, Enum):
    """Откуда взяты рабочие часы"""

    BARBER_EXCEPTION = "barber_exception"
    BARBER_SCHEDULE = "barber_schedule"
    GLOBAL_EXCEPTION = "global_exception"
    GLOBAL_SCHEDULE = "global_schedule"


@dataclass(frozen=True)
class WorkingHours:
    """Рабочее окно барбера на одну дату (не хранится в БД)"""

    start: time
    end: time
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    source: Optional[HoursSource] = None

    @property
    def has_break(self) -> bool:
        return self.break_start is not None and self.break_end is not None

    def bounds(self, target_date: date) -> Tuple[datetime, datetime]:
        """Начало и конец рабочего окна как datetime на дату"""
        return datetime.combine(target_date, self.start), datetime.combine(target_date, self.end)

    def break_bounds(self, target_date: date) -> Optional[Tuple[datetime, datetime]]:
        if not self.has_break:
            return None
        return (
            datetime.combine(target_date, self.break_start),
            datetime.combine(target_date, self.break_end),
        )

    def to_dict(self) -> dict:
        return {
            "start": self.start.strftime("%H:%M"),
            "end": self.end.strftime("%H:%M"),
            "break_start": self.break_start.strftime("%H:%M") if self.break_start else None,
            "break_end": self.break_end.strftime("%H:%M") if self.break_end else None,
            "source": self.source.value if self.source else None,
        }


@dataclass(frozen=True)
class Resolution:
    """Однозначный ответ источника: часы или hours=None (не работает)"""

    source: HoursSource
    hours: Optional[WorkingHours]


@dataclass(frozen=True)
class ScheduleSources:
    """Четыре записи, из которых выводятся рабочие часы на дату"""

    barber_exception: Optional[BarberException] = None
    barber_schedule: Optional[BarberSchedule] = None
    global_exception: Optional[GlobalException] = None
    global_schedule: Optional[GlobalSchedule] = None


# ==================== Шаги цепочки ====================

def _special_hours(source: HoursSource, start: Optional[time], end: Optional[time]) -> Resolution:
    if start is None or end is None:
        # Особые часы без времени считаем нерабочим днём
        logger.warning(f"Исключение {source.value} с особыми часами без времени, день считается нерабочим")
        return Resolution(source, None)
    return Resolution(source, WorkingHours(start=start, end=end, source=source))


def _from_barber_exception(sources: ScheduleSources) -> Optional[Resolution]:
    exception = sources.barber_exception
    if exception is None:
        return None
    if exception.type in BARBER_OFF_TYPES:
        return Resolution(HoursSource.BARBER_EXCEPTION, None)
    if exception.type in BARBER_HOURS_TYPES:
        return _special_hours(
            HoursSource.BARBER_EXCEPTION,
            exception.special_start_time,
            exception.special_end_time
        )
    return None


def _from_barber_schedule(sources: ScheduleSources) -> Optional[Resolution]:
    schedule = sources.barber_schedule
    if schedule is None or not schedule.is_working:
        return None
    return Resolution(
        HoursSource.BARBER_SCHEDULE,
        WorkingHours(
            start=schedule.start_time,
            end=schedule.end_time,
            break_start=schedule.break_start,
            break_end=schedule.break_end,
            source=HoursSource.BARBER_SCHEDULE
        )
    )


def _from_global_exception(sources: ScheduleSources) -> Optional[Resolution]:
    exception = sources.global_exception
    if exception is None:
        return None
    if exception.type == ExceptionType.CLOSED:
        return Resolution(HoursSource.GLOBAL_EXCEPTION, None)
    if exception.type == ExceptionType.SPECIAL_HOURS:
        return _special_hours(
            HoursSource.GLOBAL_EXCEPTION,
            exception.special_open_time,
            exception.special_close_time
        )
    return None


def _from_global_schedule(sources: ScheduleSources) -> Optional[Resolution]:
    schedule = sources.global_schedule
    if schedule is None or not schedule.is_open:
        return None
    return Resolution(
        HoursSource.GLOBAL_SCHEDULE,
        WorkingHours(
            start=schedule.open_time,
            end=schedule.close_time,
            break_start=schedule.lunch_start,
            break_end=schedule.lunch_end,
            source=HoursSource.GLOBAL_SCHEDULE
        )
    )


# Порядок важен: от старшего источника к младшему
RESOLUTION_CHAIN: Tuple[Callable[[ScheduleSources], Optional[Resolution]], ...] = (
    _from_barber_exception,
    _from_barber_schedule,
    _from_global_exception,
    _from_global_schedule,
)


def resolve(sources: ScheduleSources) -> Optional[WorkingHours]:
    """
    Применить цепочку источников.
    Возвращает рабочие часы или None, если барбер в этот день не работает.
    """
    for step in RESOLUTION_CHAIN:
        resolution = step(sources)
        if resolution is not None:
            return resolution.hours
    return None


def to_shop_time(value: datetime) -> datetime:
    """
    Момент времени в местном времени барбершопа без часового пояса.
    Время без пояса уже считается местным и возвращается как есть.
    """
    if value.tzinfo is None or value.utcoffset() is None:
        return value
    return value.astimezone(ZoneInfo(settings.SHOP_TIMEZONE)).replace(tzinfo=None)


def normalize_date(value: Union[date, datetime]) -> date:
    """Дата без времени суток"""
    if isinstance(value, datetime):
        return to_shop_time(value).date()
    return value


def _validate_window(start: time, end: time, label: str = "рабочего времени"):
    if start >= end:
        raise ValidationError(f"Начало {label} должно быть раньше окончания")


def _validate_break(start: time, end: time, break_start: Optional[time], break_end: Optional[time]):
    if (break_start is None) != (break_end is None):
        raise ValidationError("Перерыв должен иметь и начало, и окончание")
    if break_start is None:
        return
    _validate_window(break_start, break_end, "перерыва")
    if break_start <= start or break_end >= end:
        raise ValidationError("Перерыв должен быть внутри рабочего времени")


def _validate_day(day_of_week: int):
    if not 0 <= day_of_week <= 6:
        raise ValidationError("День недели должен быть от 0 (Пн) до 6 (Вс)")


class ScheduleService:
    """Сервис управления расписанием"""

    def __init__(self, db: Session):
        self.db = db

    # ==================== Рабочие часы ====================

    def load_sources(self, barber_id: int, shop_id: int, target_date: Union[date, datetime]) -> ScheduleSources:
        """Загрузить четыре источника расписания на дату"""
        day = normalize_date(target_date)
        day_of_week = day.weekday()

        return ScheduleSources(
            barber_exception=self.db.query(BarberException).filter(
                BarberException.barber_id == barber_id,
                BarberException.date == day
            ).first(),
            barber_schedule=self.db.query(BarberSchedule).filter(
                BarberSchedule.barber_id == barber_id,
                BarberSchedule.day_of_week == day_of_week
            ).first(),
            global_exception=self.db.query(GlobalException).filter(
                GlobalException.barbershop_id == shop_id,
                GlobalException.date == day
            ).first(),
            global_schedule=self.db.query(GlobalSchedule).filter(
                GlobalSchedule.barbershop_id == shop_id,
                GlobalSchedule.day_of_week == day_of_week
            ).first(),
        )

    def resolve_working_hours(
        self,
        barber_id: int,
        shop_id: int,
        target_date: Union[date, datetime]
    ) -> Optional[WorkingHours]:
        """
        Получить эффективные рабочие часы барбера на дату.
        None - барбер в этот день не работает.
        """
        return resolve(self.load_sources(barber_id, shop_id, target_date))

    # ==================== Расписание барбершопа ====================

    def _get_shop(self, shop_id: int) -> Barbershop:
        shop = self.db.query(Barbershop).filter(Barbershop.id == shop_id).first()
        if not shop:
            raise NotFoundError("Барбершоп не найден")
        return shop

    def _get_barber(self, barber_id: int) -> Barber:
        barber = self.db.query(Barber).filter(Barber.id == barber_id).first()
        if not barber:
            raise NotFoundError("Барбер не найден")
        return barber

    def set_global_schedule(
        self,
        shop_id: int,
        day_of_week: int,
        open_time: time,
        close_time: time,
        is_open: bool = True,
        lunch_start: Optional[time] = None,
        lunch_end: Optional[time] = None
    ) -> GlobalSchedule:
        """
        Установить расписание барбершопа на день недели (создать или обновить)
        """
        _validate_day(day_of_week)
        self._get_shop(shop_id)
        if is_open:
            _validate_window(open_time, close_time)
            _validate_break(open_time, close_time, lunch_start, lunch_end)

        schedule = self.db.query(GlobalSchedule).filter(
            GlobalSchedule.barbershop_id == shop_id,
            GlobalSchedule.day_of_week == day_of_week
        ).first()

        if schedule:
            schedule.is_open = is_open
            schedule.open_time = open_time
            schedule.close_time = close_time
            schedule.lunch_start = lunch_start
            schedule.lunch_end = lunch_end
        else:
            schedule = GlobalSchedule(
                barbershop_id=shop_id,
                day_of_week=day_of_week,
                is_open=is_open,
                open_time=open_time,
                close_time=close_time,
                lunch_start=lunch_start,
                lunch_end=lunch_end
            )
            self.db.add(schedule)

        self.db.commit()
        self.db.refresh(schedule)
        return schedule

    def list_global_schedules(self, shop_id: int) -> List[GlobalSchedule]:
        return self.db.query(GlobalSchedule).filter(
            GlobalSchedule.barbershop_id == shop_id
        ).order_by(GlobalSchedule.day_of_week).all()

    def delete_global_schedule(self, shop_id: int, day_of_week: int) -> bool:
        schedule = self.db.query(GlobalSchedule).filter(
            GlobalSchedule.barbershop_id == shop_id,
            GlobalSchedule.day_of_week == day_of_week
        ).first()

        if schedule:
            self.db.delete(schedule)
            self.db.commit()
            return True
        return False

    # ==================== Расписание барбера ====================

    def set_barber_schedule(
        self,
        barber_id: int,
        day_of_week: int,
        start_time: time,
        end_time: time,
        is_working: bool = True,
        break_start: Optional[time] = None,
        break_end: Optional[time] = None
    ) -> BarberSchedule:
        """
        Установить персональное расписание барбера на день недели
        """
        _validate_day(day_of_week)
        self._get_barber(barber_id)
        if is_working:
            _validate_window(start_time, end_time)
            _validate_break(start_time, end_time, break_start, break_end)

        schedule = self.db.query(BarberSchedule).filter(
            BarberSchedule.barber_id == barber_id,
            BarberSchedule.day_of_week == day_of_week
        ).first()

        if schedule:
            schedule.is_working = is_working
            schedule.start_time = start_time
            schedule.end_time = end_time
            schedule.break_start = break_start
            schedule.break_end = break_end
        else:
            schedule = BarberSchedule(
                barber_id=barber_id,
                day_of_week=day_of_week,
                is_working=is_working,
                start_time=start_time,
                end_time=end_time,
                break_start=break_start,
                break_end=break_end
            )
            self.db.add(schedule)

        self.db.commit()
        self.db.refresh(schedule)
        return schedule

    def list_barber_schedules(self, barber_id: int) -> List[BarberSchedule]:
        return self.db.query(BarberSchedule).filter(
            BarberSchedule.barber_id == barber_id
        ).order_by(BarberSchedule.day_of_week).all()

    def delete_barber_schedule(self, barber_id: int, day_of_week: int) -> bool:
        schedule = self.db.query(BarberSchedule).filter(
            BarberSchedule.barber_id == barber_id,
            BarberSchedule.day_of_week == day_of_week
        ).first()

        if schedule:
            self.db.delete(schedule)
            self.db.commit()
            return True
        return False

    # ==================== Исключения ====================

    def add_global_exception(
        self,
        shop_id: int,
        target_date: Union[date, datetime],
        exception_type: ExceptionType,
        reason: Optional[str] = None,
        special_open_time: Optional[time] = None,
        special_close_time: Optional[time] = None
    ) -> GlobalException:
        """
        Добавить исключение для всего барбершопа (закрыт / особые часы)
        """
        exception_type = ExceptionType(exception_type)
        if exception_type not in GLOBAL_EXCEPTION_TYPES:
            raise ValidationError("Для барбершопа допустимы только исключения CLOSED и SPECIAL_HOURS")
        self._get_shop(shop_id)

        if exception_type == ExceptionType.SPECIAL_HOURS:
            if special_open_time is None or special_close_time is None:
                raise ValidationError("Для SPECIAL_HOURS обязательны время открытия и закрытия")
            _validate_window(special_open_time, special_close_time, "особых часов")
        else:
            special_open_time = special_close_time = None

        day = normalize_date(target_date)
        existing = self.db.query(GlobalException).filter(
            GlobalException.barbershop_id == shop_id,
            GlobalException.date == day
        ).first()
        if existing:
            raise ConflictError("На эту дату уже есть исключение барбершопа")

        exception = GlobalException(
            barbershop_id=shop_id,
            date=day,
            type=exception_type.value,
            reason=reason,
            special_open_time=special_open_time,
            special_close_time=special_close_time
        )
        self.db.add(exception)
        self.db.commit()
        self.db.refresh(exception)
        logger.info(f"Исключение барбершопа {shop_id} на {day}: {exception_type.value}")
        return exception

    def add_barber_exception(
        self,
        barber_id: int,
        target_date: Union[date, datetime],
        exception_type: ExceptionType,
        reason: Optional[str] = None,
        special_start_time: Optional[time] = None,
        special_end_time: Optional[time] = None
    ) -> BarberException:
        """
        Добавить исключение для барбера (выходной, отпуск, особые часы)
        """
        exception_type = ExceptionType(exception_type)
        self._get_barber(barber_id)

        if exception_type in BARBER_HOURS_TYPES:
            if special_start_time is None or special_end_time is None:
                raise ValidationError("Для особых часов обязательны время начала и окончания")
            _validate_window(special_start_time, special_end_time, "особых часов")
        else:
            special_start_time = special_end_time = None

        day = normalize_date(target_date)
        existing = self.db.query(BarberException).filter(
            BarberException.barber_id == barber_id,
            BarberException.date == day
        ).first()
        if existing:
            raise ConflictError("На эту дату у барбера уже есть исключение")

        exception = BarberException(
            barber_id=barber_id,
            date=day,
            type=exception_type.value,
            reason=reason,
            special_start_time=special_start_time,
            special_end_time=special_end_time
        )
        self.db.add(exception)
        self.db.commit()
        self.db.refresh(exception)
        logger.info(f"Исключение барбера {barber_id} на {day}: {exception_type.value}")
        return exception

    def list_global_exceptions(
        self,
        shop_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> List[GlobalException]:
        query = self.db.query(GlobalException).filter(GlobalException.barbershop_id == shop_id)
        if start_date:
            query = query.filter(GlobalException.date >= start_date)
        if end_date:
            query = query.filter(GlobalException.date <= end_date)
        return query.order_by(GlobalException.date).all()

    def list_barber_exceptions(
        self,
        barber_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> List[BarberException]:
        query = self.db.query(BarberException).filter(BarberException.barber_id == barber_id)
        if start_date:
            query = query.filter(BarberException.date >= start_date)
        if end_date:
            query = query.filter(BarberException.date <= end_date)
        return query.order_by(BarberException.date).all()

    def delete_global_exception(self, exception_id: int):
        exception = self.db.query(GlobalException).filter(GlobalException.id == exception_id).first()
        if not exception:
            raise NotFoundError("Исключение не найдено")
        self.db.delete(exception)
        self.db.commit()

    def delete_barber_exception(self, exception_id: int):
        exception = self.db.query(BarberException).filter(BarberException.id == exception_id).first()
        if not exception:
            raise NotFoundError("Исключение не найдено")
        self.db.delete(exception)
        self.db.commit()
