"""
Reservation Model
"""
from sqlalchemy import Column, Integer, String, Date, DateTime, Numeric, ForeignKey, func
from enum import Enum

from tourbook.utils.database import Base


class ReservationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_name = Column(String(255), nullable=False)
    client_email = Column(String(255), nullable=False, index=True)
    destination_id = Column(Integer, ForeignKey("destinations.id", ondelete="CASCADE"), nullable=False)
    travel_date = Column(Date, nullable=False)
    number_of_people = Column(Integer, nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)  # destination.price * number_of_people
    status = Column(String(50), default=ReservationStatus.PENDING.value, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Reservation {self.id} {self.client_email} -> {self.destination_id} ({self.status})>"
