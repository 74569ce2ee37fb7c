import logging
from typing import Iterable, List
from sqlalchemy import case, update
from sqlalchemy.orm import Session

from adventureconnect.exceptions import (
    InsufficientAvailability, InvalidRange, NotFound, NotOwner, ValidationError,
)
from adventureconnect.models import ProviderProfile, Trip, TripDate, TripDateStatus
from adventureconnect.availability.schemas import TripDateCreate

logger = logging.getLogger(__name__)

class AvailabilityService:
    """Dated inventory for trips.

    ``reserve`` and ``release`` are single conditional UPDATE statements so
    that concurrent requests for the same date cannot lose updates. Neither
    commits: they run inside the caller's transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def add_dates(
        self,
        trip_id: int,
        provider: ProviderProfile,
        dates: Iterable[TripDateCreate],
        commit: bool = True,
    ) -> List[TripDate]:
        """Add dated occurrences to a trip, each with the trip's full capacity"""
        trip = self.db.get(Trip, trip_id)
        if trip is None:
            raise NotFound("Trip not found")
        if trip.provider_id != provider.id:
            raise NotOwner("You can only add dates to your own trips")

        dates = list(dates)
        for entry in dates:
            if entry.start_date >= entry.end_date:
                raise InvalidRange(
                    f"Start date {entry.start_date} must be before end date {entry.end_date}"
                )

        created = [
            TripDate(
                trip_id=trip.id,
                start_date=entry.start_date,
                end_date=entry.end_date,
                capacity=trip.max_participants,
                available_spots=trip.max_participants,
                status=TripDateStatus.AVAILABLE.value,
            )
            for entry in dates
        ]
        self.db.add_all(created)

        if commit:
            self.db.commit()
            for trip_date in created:
                self.db.refresh(trip_date)
        else:
            self.db.flush()

        logger.info("Added %d dates to trip %s", len(created), trip.id)
        return created

    def list_dates(self, trip_id: int, include_unavailable: bool = False) -> List[TripDate]:
        """Dates of a trip ordered by start date"""
        if self.db.get(Trip, trip_id) is None:
            raise NotFound("Trip not found")

        query = self.db.query(TripDate).filter(TripDate.trip_id == trip_id)
        if not include_unavailable:
            query = query.filter(TripDate.status == TripDateStatus.AVAILABLE.value)
        return query.order_by(TripDate.start_date.asc(), TripDate.id.asc()).all()

    def reserve(self, trip_date_id: int, participant_count: int) -> TripDate:
        """Take ``participant_count`` spots, flipping the date to full at zero"""
        if participant_count < 1:
            raise ValidationError("Participant count must be at least 1")

        stmt = (
            update(TripDate)
            .where(
                TripDate.id == trip_date_id,
                TripDate.status == TripDateStatus.AVAILABLE.value,
                TripDate.available_spots >= participant_count,
            )
            .values(
                available_spots=TripDate.available_spots - participant_count,
                status=case(
                    (TripDate.available_spots == participant_count, TripDateStatus.FULL.value),
                    else_=TripDate.status,
                ),
            )
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)

        if result.rowcount != 1:
            if self.db.get(TripDate, trip_date_id) is None:
                raise NotFound("Trip date not found")
            raise InsufficientAvailability()

        return self._reload(trip_date_id)

    def release(self, trip_date_id: int, participant_count: int) -> TripDate:
        """Give back spots, capped at capacity; a full date becomes available again"""
        if participant_count < 1:
            raise ValidationError("Participant count must be at least 1")

        restored = TripDate.available_spots + participant_count
        stmt = (
            update(TripDate)
            .where(TripDate.id == trip_date_id)
            .values(
                available_spots=case(
                    (restored > TripDate.capacity, TripDate.capacity),
                    else_=restored,
                ),
                status=case(
                    (TripDate.status == TripDateStatus.FULL.value, TripDateStatus.AVAILABLE.value),
                    else_=TripDate.status,
                ),
            )
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)

        if result.rowcount != 1:
            raise NotFound("Trip date not found")

        return self._reload(trip_date_id)

    def close_date(self, trip_id: int, trip_date_id: int, provider: ProviderProfile) -> TripDate:
        """Stop taking bookings for a date; existing bookings are untouched"""
        trip_date = self.db.query(TripDate).filter(
            TripDate.id == trip_date_id,
            TripDate.trip_id == trip_id,
        ).first()
        if trip_date is None:
            raise NotFound("Trip date not found")
        if trip_date.trip.provider_id != provider.id:
            raise NotOwner("You can only close dates of your own trips")

        trip_date.status = TripDateStatus.CLOSED.value
        self.db.commit()
        self.db.refresh(trip_date)
        return trip_date

    def _reload(self, trip_date_id: int) -> TripDate:
        return self.db.get(TripDate, trip_date_id, populate_existing=True)
