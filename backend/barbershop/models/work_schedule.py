"""
Модели недельного расписания: барбершопа и отдельного барбера
"""
from sqlalchemy import Column, Integer, Time, Boolean, ForeignKey, TIMESTAMP, UniqueConstraint
from sqlalchemy.sql import func
from ..database import Base

DAY_NAMES = ["Пн", "Вт", "Ср", "Чт", "Пт", "Сб", "Вс"]


class GlobalSchedule(Base):
    """Расписание работы барбершопа по дням недели"""

    __tablename__ = "global_schedules"

    id = Column(Integer, primary_key=True, index=True)
    barbershop_id = Column(Integer, ForeignKey("barbershops.id", ondelete="CASCADE"), nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 0=Пн, 6=Вс
    is_open = Column(Boolean, default=True)
    open_time = Column(Time, nullable=False)
    close_time = Column(Time, nullable=False)
    lunch_start = Column(Time, nullable=True)
    lunch_end = Column(Time, nullable=True)
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint('barbershop_id', 'day_of_week', name='unique_global_schedule_day'),
    )

    def __repr__(self):
        return f"<GlobalSchedule {DAY_NAMES[self.day_of_week]} {self.open_time}-{self.close_time}>"


class BarberSchedule(Base):
    """
    Персональное расписание барбера по дням недели.
    Если задано и is_working=True - важнее расписания барбершопа.
    """

    __tablename__ = "barber_schedules"

    id = Column(Integer, primary_key=True, index=True)
    barber_id = Column(Integer, ForeignKey("barbers.id", ondelete="CASCADE"), nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 0=Пн, 6=Вс
    is_working = Column(Boolean, default=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    break_start = Column(Time, nullable=True)
    break_end = Column(Time, nullable=True)
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint('barber_id', 'day_of_week', name='unique_barber_schedule_day'),
    )

    def __repr__(self):
        status = "✅" if self.is_working else "❌"
        return f"<BarberSchedule {DAY_NAMES[self.day_of_week]} {self.start_time}-{self.end_time} {status}>"
