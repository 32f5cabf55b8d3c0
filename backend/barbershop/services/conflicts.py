"""
Проверка пересечения записей барбера
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ..errors import ConflictError
from ..models import Appointment, AppointmentStatus

logger = logging.getLogger(__name__)


def intervals_overlap(start1: datetime, end1: datetime, start2: datetime, end2: datetime) -> bool:
    """
    Пересекаются ли полуинтервалы [start1, end1) и [start2, end2).

    Покрывает все три случая: новый начинается внутри существующего,
    заканчивается внутри него или целиком его накрывает.
    Касание границами (end1 == start2) пересечением не считается.
    """
    return start1 < end2 and end1 > start2


class ConflictDetector:
    """Поиск записей барбера, пересекающихся с заданным интервалом"""

    def __init__(self, db: Session):
        self.db = db

    def find_conflict(
        self,
        barber_id: int,
        start_time: datetime,
        end_time: datetime,
        exclude_appointment_id: Optional[int] = None
    ) -> Optional[Appointment]:
        """
        Первая (самая ранняя) неотменённая запись барбера, пересекающаяся с интервалом
        """
        query = self.db.query(Appointment).options(joinedload(Appointment.service)).filter(
            Appointment.barber_id == barber_id,
            Appointment.status != AppointmentStatus.CANCELLED.value,
            Appointment.start_time < end_time,
            Appointment.end_time > start_time
        )
        if exclude_appointment_id is not None:
            query = query.filter(Appointment.id != exclude_appointment_id)

        return query.order_by(Appointment.start_time).first()

    def has_conflict(
        self,
        barber_id: int,
        start_time: datetime,
        end_time: datetime,
        exclude_appointment_id: Optional[int] = None
    ) -> bool:
        return self.find_conflict(barber_id, start_time, end_time, exclude_appointment_id) is not None

    def ensure_no_conflict(
        self,
        barber_id: int,
        start_time: datetime,
        end_time: datetime,
        exclude_appointment_id: Optional[int] = None
    ):
        """
        Бросает ConflictError с окном и услугой конфликтующей записи
        """
        conflict = self.find_conflict(barber_id, start_time, end_time, exclude_appointment_id)
        if conflict is None:
            return

        service_name = conflict.service.name if conflict.service else "Неизвестная услуга"
        logger.warning(
            f"Конфликт записи барбера {barber_id}: {start_time}-{end_time} "
            f"пересекается с #{conflict.id} ({conflict.start_time}-{conflict.end_time})"
        )
        raise ConflictError.for_appointment(conflict.start_time, conflict.end_time, service_name)
