from pydantic import BaseModel, EmailStr, Field
from typing import List, Literal, Optional
from datetime import datetime
from decimal import Decimal

from adventureconnect.models import BookingStatus, PaymentStatus
from adventureconnect.availability.schemas import TripDate

PaymentMethod = Literal["credit_card", "debit_card", "paypal", "bank_transfer"]

# Booking Request Models
class TravelerInfo(BaseModel):
    """Lead traveler contact details"""
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)

    class Config:
        extra = "forbid"

class BookingCreate(BaseModel):
    """Request to book a dated trip"""
    trip_id: int
    trip_date_id: int
    participant_count: int = Field(..., ge=1)
    traveler_info: TravelerInfo = Field(default_factory=TravelerInfo)
    special_requests: Optional[str] = Field(None, max_length=2000)
    customization: List[str] = []
    payment_method: Optional[PaymentMethod] = None

    class Config:
        extra = "forbid"

class BookingCancellationRequest(BaseModel):
    """Request to cancel a booking"""
    reason: Optional[str] = Field(None, max_length=1000)

    class Config:
        extra = "forbid"

class BookingStatusUpdate(BaseModel):
    """Provider response to an inquiry, or a traveler cancellation"""
    status: BookingStatus
    message: Optional[str] = Field(None, max_length=2000)

    class Config:
        extra = "forbid"

# Booking Response Models
class BookingTripSummary(BaseModel):
    id: int
    title: str
    destination: str
    provider_id: int

    class Config:
        from_attributes = True

class Booking(BaseModel):
    """Booking details"""
    id: int
    booking_number: str
    user_id: int
    trip_id: int
    trip_date_id: int
    participant_count: int
    customization: List[str] = []
    traveler_info: TravelerInfo
    special_requests: Optional[str] = None
    total_price: Decimal
    commission_rate: Decimal
    commission_amount: Decimal
    payment_method: Optional[str] = None
    payment_status: PaymentStatus
    booking_status: BookingStatus
    provider_response: Optional[str] = None
    responded_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class BookingDetail(Booking):
    trip: BookingTripSummary
    trip_date: TripDate

class BookingList(BaseModel):
    bookings: List[BookingDetail]
    total: int
    page: int
    per_page: int
