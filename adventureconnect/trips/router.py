from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
from decimal import Decimal

from adventureconnect.database import get_db
from adventureconnect.auth.dependencies import get_current_provider
from adventureconnect.models import ProviderProfile, TripStatus
from adventureconnect.availability.service import AvailabilityService
from adventureconnect.availability.schemas import TripDate, TripDatesCreate
from adventureconnect.trips.schemas import (
    TripCreate, TripUpdate, TripSearch, TripSearchResult, TripDetail,
    trip_list_item, trip_detail,
)
from adventureconnect.trips.service import TripService

router = APIRouter()

@router.get("", response_model=TripSearchResult)
def list_trips(
    destination: Optional[str] = Query(None, description="Case-insensitive destination match"),
    activity_type: Optional[str] = Query(None, description="Filter by activity type"),
    min_price: Optional[Decimal] = Query(None, ge=0, description="Minimum price per person"),
    max_price: Optional[Decimal] = Query(None, ge=0, description="Maximum price per person"),
    start_date: Optional[date] = Query(None, description="Open date ending on or after this day"),
    end_date: Optional[date] = Query(None, description="Open date starting on or before this day"),
    provider_id: Optional[int] = Query(None, description="Filter by provider"),
    trip_status: TripStatus = Query(TripStatus.PUBLISHED, alias="status", description="Listing status"),
    offset: int = Query(0, ge=0, description="Number of trips to skip"),
    limit: int = Query(20, ge=1, le=100, description="Number of trips to return"),
    db: Session = Depends(get_db),
):
    """Browse trips with filters; all filters must match"""
    search = TripSearch(
        destination=destination,
        activity_type=activity_type,
        min_price=min_price,
        max_price=max_price,
        start_date=start_date,
        end_date=end_date,
        provider_id=provider_id,
        status=trip_status,
    )

    trips, total = TripService(db).list_trips(search, skip=offset, limit=limit)

    return TripSearchResult(
        trips=[trip_list_item(trip) for trip in trips],
        total=total,
        page=(offset // limit) + 1,
        per_page=limit,
    )

@router.post("", response_model=TripDetail, status_code=status.HTTP_201_CREATED)
def create_trip(
    trip_in: TripCreate,
    provider: ProviderProfile = Depends(get_current_provider),
    db: Session = Depends(get_db),
):
    """Create a trip listing (starts as draft)"""
    service = TripService(db)
    trip = service.create_trip(provider, trip_in)
    dates = AvailabilityService(db).list_dates(trip.id)
    return trip_detail(trip, dates)

@router.get("/{trip_id}", response_model=TripDetail)
def get_trip(trip_id: int, db: Session = Depends(get_db)):
    """Trip details with provider summary and open dates"""
    trip, dates = TripService(db).get_trip_with_dates(trip_id)
    return trip_detail(trip, dates)

@router.put("/{trip_id}", response_model=TripDetail)
def update_trip(
    trip_id: int,
    trip_update: TripUpdate,
    provider: ProviderProfile = Depends(get_current_provider),
    db: Session = Depends(get_db),
):
    """Update a trip the provider owns"""
    trip = TripService(db).update_trip(trip_id, provider, trip_update)
    dates = AvailabilityService(db).list_dates(trip.id)
    return trip_detail(trip, dates)

# Availability Endpoints
@router.get("/{trip_id}/dates", response_model=List[TripDate])
def list_trip_dates(
    trip_id: int,
    include_unavailable: bool = Query(False, description="Include full and closed dates"),
    db: Session = Depends(get_db),
):
    """Dates of a trip, earliest first"""
    return AvailabilityService(db).list_dates(trip_id, include_unavailable=include_unavailable)

@router.post("/{trip_id}/dates", response_model=List[TripDate], status_code=status.HTTP_201_CREATED)
def add_trip_dates(
    trip_id: int,
    dates_in: TripDatesCreate,
    provider: ProviderProfile = Depends(get_current_provider),
    db: Session = Depends(get_db),
):
    """Add dated occurrences to a trip"""
    return AvailabilityService(db).add_dates(trip_id, provider, dates_in.dates)

@router.post("/{trip_id}/dates/{trip_date_id}/close", response_model=TripDate)
def close_trip_date(
    trip_id: int,
    trip_date_id: int,
    provider: ProviderProfile = Depends(get_current_provider),
    db: Session = Depends(get_db),
):
    """Stop accepting bookings for a date"""
    return AvailabilityService(db).close_date(trip_id, trip_date_id, provider)
