"""
Модель записи на прием
"""
from sqlalchemy import Column, Integer, ForeignKey, DateTime, String, Numeric, Text, TIMESTAMP, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base
from .enums import AppointmentStatus


class Appointment(Base):
    """
    Запись к барберу.
    end_time и total_price фиксируются в момент записи и не пересчитываются
    при последующем изменении услуги.
    """

    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    barbershop_id = Column(Integer, ForeignKey("barbershops.id", ondelete="CASCADE"), nullable=False, index=True)
    barber_id = Column(Integer, ForeignKey("barbers.id"), nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default=AppointmentStatus.SCHEDULED.value)
    notes = Column(Text, nullable=True)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    service = relationship("Service")
    barber = relationship("Barber")
    client = relationship("Client")

    __table_args__ = (
        Index("ix_appointments_barber_start", "barber_id", "start_time"),
    )

    @property
    def duration_minutes(self) -> int:
        """Длительность, зафиксированная при записи"""
        return int((self.end_time - self.start_time).total_seconds() // 60)

    def __repr__(self):
        return f"<Appointment {self.start_time}-{self.end_time} barber={self.barber_id} (Status: {self.status})>"
