"""
Bookings Module

Booking inquiries against dated trip inventory and their lifecycle:
provider confirmation or decline, traveler cancellation outside the
cancellation window, and completion once the trip has ended.

Key Components:
- pricing.py: Decimal money helpers and booking number generation
- booking_service.py: BookingService state machine
- router.py: /bookings endpoints
"""

from .router import router
from .booking_service import BookingService
from .schemas import BookingCreate, BookingStatusUpdate, BookingDetail, BookingList

__all__ = [
    "router",
    "BookingService",
    "BookingCreate",
    "BookingStatusUpdate",
    "BookingDetail",
    "BookingList",
]
