"""
Модели исключений из расписания на конкретную дату
"""
from sqlalchemy import Column, Integer, Date, Time, String, ForeignKey, TIMESTAMP, UniqueConstraint
from sqlalchemy.sql import func
from ..database import Base


class GlobalException(Base):
    """Исключение для всего барбершопа: закрыт (CLOSED) или особые часы (SPECIAL_HOURS)"""

    __tablename__ = "global_exceptions"

    id = Column(Integer, primary_key=True, index=True)
    barbershop_id = Column(Integer, ForeignKey("barbershops.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False, index=True)
    type = Column(String(20), nullable=False)
    reason = Column(String(255), nullable=True)
    special_open_time = Column(Time, nullable=True)
    special_close_time = Column(Time, nullable=True)
    created_at = Column(TIMESTAMP, server_default=func.now())

    __table_args__ = (
        UniqueConstraint('barbershop_id', 'date', name='unique_global_exception_date'),
    )

    def __repr__(self):
        return f"<GlobalException {self.date} {self.type} - {self.reason}>"


class BarberException(Base):
    """
    Исключение для барбера на дату. Самый высокий приоритет:
    CLOSED/OFF/VACATION - не работает, SPECIAL_HOURS/AVAILABLE - особые часы.
    """

    __tablename__ = "barber_exceptions"

    id = Column(Integer, primary_key=True, index=True)
    barber_id = Column(Integer, ForeignKey("barbers.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False, index=True)
    type = Column(String(20), nullable=False)
    reason = Column(String(255), nullable=True)
    special_start_time = Column(Time, nullable=True)
    special_end_time = Column(Time, nullable=True)
    created_at = Column(TIMESTAMP, server_default=func.now())

    __table_args__ = (
        UniqueConstraint('barber_id', 'date', name='unique_barber_exception_date'),
    )

    def __repr__(self):
        return f"<BarberException {self.date} {self.type} - {self.reason}>"
