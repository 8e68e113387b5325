"""SQLAlchemy Models"""
from tourbook.models.destination import Destination
from tourbook.models.reservation import Reservation, ReservationStatus
from tourbook.models.user import User

__all__ = ["Destination", "Reservation", "ReservationStatus", "User"]
