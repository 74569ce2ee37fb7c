from .service import AvailabilityService
from .schemas import TripDate, TripDateCreate, TripDatesCreate

__all__ = [
    "AvailabilityService",
    "TripDate",
    "TripDateCreate",
    "TripDatesCreate",
]
