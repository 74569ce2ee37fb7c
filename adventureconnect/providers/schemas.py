from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal

from adventureconnect.trips.schemas import Trip

class ProviderProfileUpdate(BaseModel):
    business_name: Optional[str] = Field(None, min_length=1, max_length=255)
    bio: Optional[str] = Field(None, max_length=5000)
    expertise: Optional[List[str]] = None
    location: Optional[str] = Field(None, max_length=255)
    languages: Optional[List[str]] = None
    years_experience: Optional[int] = Field(None, ge=0, le=100)

    class Config:
        extra = "forbid"

class ProviderPublicProfile(BaseModel):
    """Provider profile as shown to travelers"""
    id: int
    first_name: str
    last_name: str
    business_name: Optional[str] = None
    bio: Optional[str] = None
    expertise: List[str] = []
    location: Optional[str] = None
    languages: List[str] = []
    years_experience: Optional[int] = None
    approval_state: str
    published_trip_count: int

class ProviderStats(BaseModel):
    total_trips: int
    published_trips: int
    total_bookings: int
    pending_bookings: int
    active_bookings: int
    completed_bookings: int
    cancelled_bookings: int
    total_revenue: Decimal
    total_commission: Decimal
    average_rating: Decimal

class ProviderTrip(Trip):
    booking_count: int
