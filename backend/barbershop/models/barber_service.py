"""
Модель связи барбер-услуга (с индивидуальной ценой)
"""
from sqlalchemy import Column, Integer, Boolean, Numeric, ForeignKey, TIMESTAMP, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class BarberService(Base):
    """Какие услуги выполняет барбер и по какой цене"""

    __tablename__ = "barber_services"

    id = Column(Integer, primary_key=True, index=True)
    barber_id = Column(Integer, ForeignKey("barbers.id", ondelete="CASCADE"), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=False)
    custom_price = Column(Numeric(10, 2), nullable=True)  # None = базовая цена услуги
    is_active = Column(Boolean, default=True)
    created_at = Column(TIMESTAMP, server_default=func.now())

    barber = relationship("Barber", back_populates="services")
    service = relationship("Service")

    __table_args__ = (
        UniqueConstraint('barber_id', 'service_id', name='unique_barber_service'),
    )

    def __repr__(self):
        return f"<BarberService barber={self.barber_id} service={self.service_id} price={self.custom_price}>"
