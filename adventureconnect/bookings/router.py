from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from adventureconnect.config import Settings
from adventureconnect.database import get_db
from adventureconnect.auth.dependencies import get_current_user, get_notifier, get_settings
from adventureconnect.models import BookingStatus, User
from adventureconnect.notifications import Notifier
from adventureconnect.bookings.schemas import (
    BookingCreate, BookingCancellationRequest, BookingStatusUpdate, BookingDetail, BookingList,
)
from adventureconnect.bookings.booking_service import BookingService

router = APIRouter()

def get_booking_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    notifier: Notifier = Depends(get_notifier),
) -> BookingService:
    return BookingService(db, settings, notifier)

@router.post("", response_model=BookingDetail, status_code=status.HTTP_201_CREATED)
def create_booking(
    booking_in: BookingCreate,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Send a booking inquiry for a trip date, reserving the requested spots"""
    return service.create_booking(current_user, booking_in)

@router.get("", response_model=BookingList)
def list_my_bookings(
    booking_status: Optional[BookingStatus] = Query(None, alias="status", description="Filter by booking status"),
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Bookings made by the current user, newest first"""
    bookings, total = service.list_user_bookings(current_user, booking_status, skip=offset, limit=limit)
    return BookingList(
        bookings=[BookingDetail.model_validate(booking) for booking in bookings],
        total=total,
        page=(offset // limit) + 1,
        per_page=limit,
    )

@router.get("/{booking_id}", response_model=BookingDetail)
def get_booking(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Booking details, for its traveler or the trip's provider"""
    return service.get_booking_for_user(booking_id, current_user)

@router.post("/{booking_id}/cancel", response_model=BookingDetail)
def cancel_booking(
    booking_id: int,
    cancellation: Optional[BookingCancellationRequest] = Body(None),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Cancel your own booking outside the cancellation window"""
    reason = cancellation.reason if cancellation else None
    return service.cancel_booking(booking_id, current_user, reason)

@router.put("/{booking_id}/status", response_model=BookingDetail)
def update_booking_status(
    booking_id: int,
    status_update: BookingStatusUpdate,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Confirm or decline an inquiry (provider) or cancel it (traveler)"""
    return service.update_status(booking_id, current_user, status_update.status, status_update.message)
