import logging
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from adventureconnect.exceptions import NotFound
from adventureconnect.models import Booking, BookingStatus, ProviderProfile, Trip, TripStatus
from adventureconnect.bookings.pricing import to_money
from adventureconnect.providers.schemas import ProviderProfileUpdate, ProviderPublicProfile, ProviderStats

logger = logging.getLogger(__name__)

# bookings whose price counts towards provider revenue
EARNING_STATUSES = (BookingStatus.CONFIRMED.value, BookingStatus.COMPLETED.value)

class ProviderService:
    """Provider profiles and dashboard figures"""

    def __init__(self, db: Session):
        self.db = db

    def get_provider(self, provider_id: int) -> ProviderProfile:
        provider = self.db.query(ProviderProfile).options(
            joinedload(ProviderProfile.user)
        ).filter(ProviderProfile.id == provider_id).first()
        if provider is None:
            raise NotFound("Provider not found")
        return provider

    def get_public_profile(self, provider_id: int) -> ProviderPublicProfile:
        provider = self.get_provider(provider_id)
        published = self.db.query(func.count(Trip.id)).filter(
            Trip.provider_id == provider.id,
            Trip.status == TripStatus.PUBLISHED.value,
        ).scalar()

        return ProviderPublicProfile(
            id=provider.id,
            first_name=provider.user.first_name,
            last_name=provider.user.last_name,
            business_name=provider.business_name,
            bio=provider.bio,
            expertise=provider.expertise or [],
            location=provider.location,
            languages=provider.languages or [],
            years_experience=provider.years_experience,
            approval_state=provider.approval_state,
            published_trip_count=published,
        )

    def update_profile(self, provider: ProviderProfile, profile_update: ProviderProfileUpdate) -> ProviderProfile:
        """Apply the supplied fields; commission and approval are not self-service"""
        update_data = profile_update.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            setattr(provider, field, value)

        self.db.commit()
        self.db.refresh(provider)
        logger.info("Provider %s updated profile (%s)", provider.id, ", ".join(update_data))
        return provider

    def get_stats(self, provider: ProviderProfile) -> ProviderStats:
        trip_rows = self.db.query(Trip.status, func.count(Trip.id)).filter(
            Trip.provider_id == provider.id
        ).group_by(Trip.status).all()
        trips_by_status = dict(trip_rows)

        booking_rows = self.db.query(
            Booking.booking_status,
            func.count(Booking.id),
            func.sum(Booking.total_price),
            func.sum(Booking.commission_amount),
        ).join(Trip, Booking.trip_id == Trip.id).filter(
            Trip.provider_id == provider.id
        ).group_by(Booking.booking_status).all()

        bookings_by_status = {}
        revenue = to_money(0)
        commission = to_money(0)
        for booking_status, count, total_price, commission_amount in booking_rows:
            bookings_by_status[booking_status] = count
            if booking_status in EARNING_STATUSES:
                revenue += to_money(total_price or 0)
                commission += to_money(commission_amount or 0)

        average_rating = self.db.query(func.avg(Trip.rating)).filter(
            Trip.provider_id == provider.id,
            Trip.review_count > 0,
        ).scalar()

        return ProviderStats(
            total_trips=sum(trips_by_status.values()),
            published_trips=trips_by_status.get(TripStatus.PUBLISHED.value, 0),
            total_bookings=sum(bookings_by_status.values()),
            pending_bookings=bookings_by_status.get(BookingStatus.INQUIRY.value, 0),
            active_bookings=bookings_by_status.get(BookingStatus.CONFIRMED.value, 0),
            completed_bookings=bookings_by_status.get(BookingStatus.COMPLETED.value, 0),
            cancelled_bookings=bookings_by_status.get(BookingStatus.CANCELLED.value, 0),
            total_revenue=revenue,
            total_commission=commission,
            average_rating=to_money(average_rating or 0),
        )
