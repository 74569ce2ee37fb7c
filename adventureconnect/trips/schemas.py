from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import date, datetime
from decimal import Decimal

from adventureconnect.models import TripStatus
from adventureconnect.availability.schemas import TripDate, TripDateCreate

class CustomizationOption(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    price: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)

class TripBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1, max_length=255)
    duration_days: int = Field(..., gt=0)
    max_participants: int = Field(..., ge=1)
    base_price: Decimal = Field(..., ge=0, decimal_places=2)
    included_items: List[str] = []
    excluded_items: List[str] = []
    itinerary: Dict[str, Any] = {}
    customization_options: List[CustomizationOption] = []
    activity_type: Optional[str] = Field(None, max_length=50)
    difficulty_level: Optional[str] = Field(None, max_length=50)

class TripCreate(TripBase):
    dates: List[TripDateCreate] = []

    class Config:
        extra = "forbid"

class TripUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    destination: Optional[str] = Field(None, min_length=1, max_length=255)
    duration_days: Optional[int] = Field(None, gt=0)
    max_participants: Optional[int] = Field(None, ge=1)
    base_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    included_items: Optional[List[str]] = None
    excluded_items: Optional[List[str]] = None
    itinerary: Optional[Dict[str, Any]] = None
    customization_options: Optional[List[CustomizationOption]] = None
    activity_type: Optional[str] = Field(None, max_length=50)
    difficulty_level: Optional[str] = Field(None, max_length=50)
    status: Optional[TripStatus] = None

    class Config:
        extra = "forbid"

class ProviderSummary(BaseModel):
    id: int
    business_name: Optional[str] = None
    first_name: str
    last_name: str
    location: Optional[str] = None
    years_experience: Optional[int] = None
    approval_state: str

class Trip(TripBase):
    id: int
    provider_id: int
    status: str
    rating: Decimal
    review_count: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class TripListItem(Trip):
    provider: Optional[ProviderSummary] = None

class TripDetail(Trip):
    provider: ProviderSummary
    dates: List[TripDate] = []

class TripSearch(BaseModel):
    destination: Optional[str] = None
    activity_type: Optional[str] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    provider_id: Optional[int] = None
    status: Optional[TripStatus] = TripStatus.PUBLISHED

class TripSearchResult(BaseModel):
    trips: List[TripListItem]
    total: int
    page: int
    per_page: int

def provider_summary(provider) -> ProviderSummary:
    """Public summary of a ProviderProfile row and its user"""
    return ProviderSummary(
        id=provider.id,
        business_name=provider.business_name,
        first_name=provider.user.first_name,
        last_name=provider.user.last_name,
        location=provider.location,
        years_experience=provider.years_experience,
        approval_state=provider.approval_state,
    )

def trip_list_item(trip) -> TripListItem:
    data = Trip.model_validate(trip).model_dump()
    return TripListItem(**data, provider=provider_summary(trip.provider))

def trip_detail(trip, dates) -> TripDetail:
    data = Trip.model_validate(trip).model_dump()
    return TripDetail(
        **data,
        provider=provider_summary(trip.provider),
        dates=[TripDate.model_validate(d) for d in dates],
    )
