from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from adventureconnect.config import Settings
from adventureconnect.database import get_db
from adventureconnect.auth.dependencies import get_current_provider, get_settings
from adventureconnect.auth.schemas import ProviderProfileSummary
from adventureconnect.models import BookingStatus, ProviderProfile
from adventureconnect.bookings.booking_service import BookingService
from adventureconnect.bookings.schemas import BookingDetail, BookingList
from adventureconnect.trips.schemas import Trip, TripSearch, TripSearchResult, trip_list_item
from adventureconnect.trips.service import TripService
from adventureconnect.providers.schemas import (
    ProviderProfileUpdate, ProviderPublicProfile, ProviderStats, ProviderTrip,
)
from adventureconnect.providers.service import ProviderService

router = APIRouter()

# Own Provider Endpoints
@router.get("/me/profile", response_model=ProviderProfileSummary)
def get_own_profile(provider: ProviderProfile = Depends(get_current_provider)):
    return provider

@router.put("/me/profile", response_model=ProviderProfileSummary)
def update_own_profile(
    profile_update: ProviderProfileUpdate,
    provider: ProviderProfile = Depends(get_current_provider),
    db: Session = Depends(get_db),
):
    """Update business details shown on the public profile"""
    return ProviderService(db).update_profile(provider, profile_update)

@router.get("/me/stats", response_model=ProviderStats)
def get_dashboard_stats(
    provider: ProviderProfile = Depends(get_current_provider),
    db: Session = Depends(get_db),
):
    """Trip, booking, revenue and rating figures for the dashboard"""
    return ProviderService(db).get_stats(provider)

@router.get("/me/trips", response_model=List[ProviderTrip])
def list_own_trips(
    provider: ProviderProfile = Depends(get_current_provider),
    db: Session = Depends(get_db),
):
    """All of your trips in any status, with booking counts"""
    return [
        ProviderTrip(**Trip.model_validate(trip).model_dump(), booking_count=count)
        for trip, count in TripService(db).list_provider_trips(provider)
    ]

@router.get("/me/bookings", response_model=BookingList)
def list_own_bookings(
    booking_status: Optional[BookingStatus] = Query(None, alias="status", description="Filter by booking status"),
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    provider: ProviderProfile = Depends(get_current_provider),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Bookings on your trips, newest first"""
    bookings, total = BookingService(db, settings).list_provider_bookings(
        provider, booking_status, skip=offset, limit=limit
    )
    return BookingList(
        bookings=[BookingDetail.model_validate(booking) for booking in bookings],
        total=total,
        page=(offset // limit) + 1,
        per_page=limit,
    )

# Public Provider Endpoints
@router.get("/{provider_id}", response_model=ProviderPublicProfile)
def get_provider(provider_id: int, db: Session = Depends(get_db)):
    return ProviderService(db).get_public_profile(provider_id)

@router.get("/{provider_id}/trips", response_model=TripSearchResult)
def list_provider_trips(
    provider_id: int,
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Published trips of a provider"""
    ProviderService(db).get_provider(provider_id)
    trips, total = TripService(db).list_trips(TripSearch(provider_id=provider_id), skip=offset, limit=limit)
    return TripSearchResult(
        trips=[trip_list_item(trip) for trip in trips],
        total=total,
        page=(offset // limit) + 1,
        per_page=limit,
    )
