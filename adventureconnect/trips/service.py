import logging
from typing import List, Optional, Tuple
from sqlalchemy import and_, exists, func, select
from sqlalchemy.orm import Session, joinedload

from adventureconnect.exceptions import Forbidden, NotFound, NotOwner, ValidationError
from adventureconnect.models import (
    ApprovalState, Booking, ProviderProfile, Trip, TripDate, TripDateStatus, TripStatus,
)
from adventureconnect.availability.service import AvailabilityService
from adventureconnect.trips.schemas import TripCreate, TripUpdate, TripSearch

logger = logging.getLogger(__name__)

# columns that may be updated but never set to null
_REQUIRED_FIELDS = {
    "title", "description", "destination", "duration_days", "max_participants", "base_price",
    "included_items", "excluded_items", "itinerary", "customization_options", "status",
}

class TripService:
    """Trip listings: creation, updates, search"""

    def __init__(self, db: Session):
        self.db = db

    def create_trip(self, provider: ProviderProfile, trip_in: TripCreate) -> Trip:
        """Create a draft trip, with optional initial dates, in one transaction"""
        data = trip_in.model_dump(exclude={"dates"}, mode="json")
        data["base_price"] = trip_in.base_price

        trip = Trip(provider_id=provider.id, status=TripStatus.DRAFT.value, **data)

        try:
            self.db.add(trip)
            self.db.flush()
            if trip_in.dates:
                AvailabilityService(self.db).add_dates(trip.id, provider, trip_in.dates, commit=False)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info("Provider %s created trip %s", provider.id, trip.id)
        return self.get_trip(trip.id)

    def update_trip(self, trip_id: int, provider: ProviderProfile, trip_update: TripUpdate) -> Trip:
        """Apply the supplied fields to a trip the provider owns"""
        trip = self.db.get(Trip, trip_id)
        if trip is None:
            raise NotFound("Trip not found")
        if trip.provider_id != provider.id:
            raise NotOwner("You can only update your own trips")

        update_data = trip_update.model_dump(exclude_unset=True, mode="json")
        for field, value in update_data.items():
            if value is None and field in _REQUIRED_FIELDS:
                raise ValidationError(f"{field} cannot be null")

        if "base_price" in update_data:
            update_data["base_price"] = trip_update.base_price

        new_status = update_data.get("status")
        if (
            new_status == TripStatus.PUBLISHED.value
            and trip.status != TripStatus.PUBLISHED.value
            and provider.approval_state != ApprovalState.APPROVED.value
        ):
            raise Forbidden("Provider approval is required before publishing trips")

        for field, value in update_data.items():
            setattr(trip, field, value)

        self.db.commit()
        logger.info("Provider %s updated trip %s (%s)", provider.id, trip.id, ", ".join(update_data))
        return self.get_trip(trip.id)

    def get_trip(self, trip_id: int) -> Trip:
        """Get trip by ID with its provider"""
        trip = self.db.query(Trip).options(
            joinedload(Trip.provider).joinedload(ProviderProfile.user)
        ).filter(Trip.id == trip_id).first()
        if trip is None:
            raise NotFound("Trip not found")
        return trip

    def get_trip_with_dates(self, trip_id: int) -> Tuple[Trip, List[TripDate]]:
        """Trip plus its available dates, earliest first"""
        trip = self.get_trip(trip_id)
        dates = AvailabilityService(self.db).list_dates(trip_id)
        return trip, dates

    def list_trips(
        self,
        search: Optional[TripSearch] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Trip], int]:
        """Trips matching every supplied filter, newest first"""
        search = search or TripSearch()
        if (
            search.min_price is not None
            and search.max_price is not None
            and search.min_price > search.max_price
        ):
            raise ValidationError("min_price cannot be greater than max_price")
        if search.start_date and search.end_date and search.start_date > search.end_date:
            raise ValidationError("start_date cannot be after end_date")

        query = self.db.query(Trip).options(
            joinedload(Trip.provider).joinedload(ProviderProfile.user)
        )

        if search.status:
            query = query.filter(Trip.status == search.status.value)

        if search.destination:
            query = query.filter(Trip.destination.ilike(f"%{search.destination}%"))

        if search.activity_type:
            query = query.filter(Trip.activity_type == search.activity_type)

        if search.min_price is not None:
            query = query.filter(Trip.base_price >= search.min_price)

        if search.max_price is not None:
            query = query.filter(Trip.base_price <= search.max_price)

        if search.provider_id:
            query = query.filter(Trip.provider_id == search.provider_id)

        # at least one open date overlapping the requested window
        if search.start_date or search.end_date:
            conditions = [
                TripDate.trip_id == Trip.id,
                TripDate.status == TripDateStatus.AVAILABLE.value,
            ]
            if search.start_date:
                conditions.append(TripDate.end_date >= search.start_date)
            if search.end_date:
                conditions.append(TripDate.start_date <= search.end_date)
            query = query.filter(exists().where(and_(*conditions)))

        total = query.count()

        trips = query.order_by(
            Trip.created_at.desc(), Trip.id.desc()
        ).offset(skip).limit(limit).all()

        return trips, total

    def list_provider_trips(self, provider: ProviderProfile) -> List[Tuple[Trip, int]]:
        """All of a provider's trips, any status, with their booking counts"""
        booking_count = (
            select(func.count(Booking.id))
            .where(Booking.trip_id == Trip.id)
            .correlate(Trip)
            .scalar_subquery()
        )
        rows = self.db.query(Trip, booking_count).filter(
            Trip.provider_id == provider.id
        ).order_by(Trip.created_at.desc(), Trip.id.desc()).all()
        return [(trip, count) for trip, count in rows]
