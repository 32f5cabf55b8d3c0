"""
Модель барбера
"""
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class Barber(Base):
    """Барбер, работающий в одном барбершопе"""

    __tablename__ = "barbers"

    id = Column(Integer, primary_key=True, index=True)
    barbershop_id = Column(Integer, ForeignKey("barbershops.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(TIMESTAMP, server_default=func.now())

    services = relationship("BarberService", back_populates="barber")

    def __repr__(self):
        return f"<Barber {self.name} (shop {self.barbershop_id})>"
