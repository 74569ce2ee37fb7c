from typing import Callable, List, Optional, Tuple
from datetime import datetime, time, timezone
from sqlalchemy import exists, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload
import logging

from adventureconnect.config import Settings
from adventureconnect.exceptions import (
    BookingNumberExhausted, CancellationWindowViolation, InvalidTransition, NotFound, NotOwner,
    TripUnavailable, ValidationError,
)
from adventureconnect.models import (
    Booking, BookingStatus, PaymentStatus, ProviderProfile, Trip, TripDate, TripStatus, User,
)
from adventureconnect.availability.service import AvailabilityService
from adventureconnect.bookings.pricing import (
    compute_commission, compute_total_price, customization_surcharges, generate_booking_number,
)
from adventureconnect.bookings.schemas import BookingCreate
from adventureconnect.notifications import Notifier

logger = logging.getLogger(__name__)

# status changes each party may request through PUT /bookings/{id}/status
PROVIDER_TRANSITIONS = {
    BookingStatus.INQUIRY: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
}
TRAVELER_TRANSITIONS = {
    BookingStatus.INQUIRY: {BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.CANCELLED},
}

CANCELLABLE_STATUSES = (BookingStatus.INQUIRY.value, BookingStatus.CONFIRMED.value)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookingService:
    """Booking lifecycle: inquiry, provider response, cancellation, completion.

    Every state change that touches inventory runs in the same transaction
    as the matching ``AvailabilityService.reserve``/``release`` call, so a
    booking and its spots are committed or rolled back together.
    """

    def __init__(
        self,
        db: Session,
        settings: Settings,
        notifier: Optional[Notifier] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.db = db
        self.settings = settings
        self.notifier = notifier
        self.clock = clock
        self.availability = AvailabilityService(db)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------
    def create_booking(self, traveler: User, booking_in: BookingCreate) -> Booking:
        """Reserve spots on a trip date and record the inquiry"""
        trip = self.db.query(Trip).options(
            joinedload(Trip.provider).joinedload(ProviderProfile.user)
        ).filter(Trip.id == booking_in.trip_id).first()
        if trip is None:
            raise NotFound("Trip not found")
        if trip.status != TripStatus.PUBLISHED.value:
            raise TripUnavailable()

        trip_date = self.db.query(TripDate).filter(
            TripDate.id == booking_in.trip_date_id,
            TripDate.trip_id == trip.id,
        ).first()
        if trip_date is None:
            raise NotFound("Trip date not found")
        if trip_date.start_date <= self.clock().date():
            raise TripUnavailable("This trip date has already departed")

        if booking_in.participant_count > trip.max_participants:
            raise ValidationError(
                f"This trip takes at most {trip.max_participants} participants per booking"
            )

        surcharges = customization_surcharges(trip.customization_options, booking_in.customization)
        total_price = compute_total_price(trip.base_price, booking_in.participant_count, surcharges)

        commission_rate = trip.provider.commission_rate
        if commission_rate is None:
            commission_rate = self.settings.DEFAULT_COMMISSION_RATE
        commission_amount = compute_commission(total_price, commission_rate)

        booking = Booking(
            user_id=traveler.id,
            trip_id=trip.id,
            trip_date_id=trip_date.id,
            participant_count=booking_in.participant_count,
            customization=list(booking_in.customization),
            traveler_info=booking_in.traveler_info.model_dump(mode="json", exclude_none=True),
            special_requests=booking_in.special_requests,
            total_price=total_price,
            commission_rate=commission_rate,
            commission_amount=commission_amount,
            payment_method=booking_in.payment_method,
            payment_status=PaymentStatus.PENDING.value,
            booking_status=BookingStatus.INQUIRY.value,
        )

        try:
            self.availability.reserve(trip_date.id, booking_in.participant_count)
            self._insert_with_booking_number(booking)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Booking %s created by user %s for trip %s (%d participants, total %s)",
            booking.booking_number, traveler.id, trip.id, booking.participant_count, total_price,
        )

        booking = self.get_booking(booking.id)
        self._notify_created(booking, traveler)
        return booking

    def _insert_with_booking_number(self, booking: Booking) -> None:
        """Insert ``booking`` under a fresh booking number, retrying on collisions"""
        attempts = self.settings.BOOKING_NUMBER_MAX_ATTEMPTS
        for attempt in range(1, attempts + 1):
            number = generate_booking_number(self.settings.BOOKING_NUMBER_PREFIX, self.clock())
            if self._booking_number_taken(number):
                logger.warning("Booking number %s already taken (attempt %d/%d)", number, attempt, attempts)
                continue

            booking.booking_number = number
            try:
                with self.db.begin_nested():
                    self.db.add(booking)
                    self.db.flush()
                return
            except IntegrityError:
                # a concurrent insert won the number; anything else is a real error
                if not self._booking_number_taken(number):
                    raise
                logger.warning("Booking number %s collided on insert (attempt %d/%d)", number, attempt, attempts)

        raise BookingNumberExhausted()

    def _booking_number_taken(self, number: str) -> bool:
        return self.db.query(exists().where(Booking.booking_number == number)).scalar()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get_booking(self, booking_id: int) -> Booking:
        booking = self.db.query(Booking).options(
            joinedload(Booking.trip),
            joinedload(Booking.trip_date),
        ).filter(Booking.id == booking_id).first()
        if booking is None:
            raise NotFound("Booking not found")
        return booking

    def get_booking_for_user(self, booking_id: int, user: User) -> Booking:
        """Booking visible to its traveler and to the provider of its trip"""
        booking = self.get_booking(booking_id)
        if booking.user_id == user.id or self._owns_trip(user, booking.trip):
            return booking
        raise NotFound("Booking not found")

    def list_user_bookings(
        self,
        user: User,
        booking_status: Optional[BookingStatus] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Booking], int]:
        """Bookings made by ``user``, newest first"""
        query = self.db.query(Booking).filter(Booking.user_id == user.id)
        if booking_status:
            query = query.filter(Booking.booking_status == booking_status.value)

        total = query.count()
        bookings = query.options(
            joinedload(Booking.trip),
            joinedload(Booking.trip_date),
        ).order_by(Booking.created_at.desc(), Booking.id.desc()).offset(skip).limit(limit).all()
        return bookings, total

    def list_provider_bookings(
        self,
        provider: ProviderProfile,
        booking_status: Optional[BookingStatus] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Booking], int]:
        """Bookings on any of the provider's trips, newest first"""
        query = self.db.query(Booking).join(Trip, Booking.trip_id == Trip.id).filter(
            Trip.provider_id == provider.id
        )
        if booking_status:
            query = query.filter(Booking.booking_status == booking_status.value)

        total = query.count()
        bookings = query.options(
            joinedload(Booking.trip),
            joinedload(Booking.trip_date),
            joinedload(Booking.user),
        ).order_by(Booking.created_at.desc(), Booking.id.desc()).offset(skip).limit(limit).all()
        return bookings, total

    # ------------------------------------------------------------------
    # State changes
    # ------------------------------------------------------------------
    def update_status(
        self,
        booking_id: int,
        actor: User,
        new_status: BookingStatus,
        message: Optional[str] = None,
    ) -> Booking:
        """Provider confirms or declines an inquiry; traveler cancels"""
        booking = self._lock_booking(booking_id)
        if booking is None:
            raise NotFound("Booking not found")

        current = BookingStatus(booking.booking_status)
        acting_as_provider = self._owns_trip(actor, booking.trip)

        if acting_as_provider:
            allowed = PROVIDER_TRANSITIONS.get(current, set())
        elif booking.user_id == actor.id:
            allowed = TRAVELER_TRANSITIONS.get(current, set())
        elif actor.provider_profile is not None:
            raise NotOwner("You can only manage bookings for your own trips")
        else:
            raise NotFound("Booking not found")

        if new_status not in allowed:
            raise InvalidTransition(
                f"Cannot change booking from {current.value} to {new_status.value}"
            )

        now = self.clock()
        try:
            if new_status == BookingStatus.CONFIRMED:
                booking.booking_status = BookingStatus.CONFIRMED.value
                booking.provider_response = message
                booking.responded_at = now
            elif acting_as_provider:
                booking.provider_response = message
                booking.responded_at = now
                self._cancel(booking, message or "Declined by provider", now)
            else:
                self._check_cancellation_window(booking, now)
                self._cancel(booking, message, now)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Booking %s moved from %s to %s by user %s",
            booking.booking_number, current.value, new_status.value, actor.id,
        )

        booking = self.get_booking(booking.id)
        self._notify_status_changed(booking, notify_traveler=acting_as_provider, message=message)
        return booking

    def cancel_booking(self, booking_id: int, traveler: User, reason: Optional[str] = None) -> Booking:
        """Cancel the traveler's own inquiry or confirmed booking and give its spots back"""
        booking = self.db.query(Booking).filter(
            Booking.id == booking_id,
            Booking.user_id == traveler.id,
            Booking.booking_status.in_(CANCELLABLE_STATUSES),
        ).with_for_update().first()
        if booking is None:
            raise NotFound("Booking not found or cannot be cancelled")

        now = self.clock()
        try:
            self._check_cancellation_window(booking, now)
            self._cancel(booking, reason, now)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info("Booking %s cancelled by traveler %s", booking.booking_number, traveler.id)

        booking = self.get_booking(booking.id)
        self._notify_status_changed(booking, notify_traveler=False, message=reason)
        return booking

    def complete_due_bookings(self, now: Optional[datetime] = None) -> int:
        """Mark confirmed bookings whose trip date has ended as completed"""
        now = now or self.clock()
        ended = select(TripDate.id).where(TripDate.end_date < now.date())

        result = self.db.execute(
            update(Booking)
            .where(
                Booking.booking_status == BookingStatus.CONFIRMED.value,
                Booking.trip_date_id.in_(ended),
            )
            .values(booking_status=BookingStatus.COMPLETED.value, completed_at=now)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()

        logger.info("Completed %d bookings whose trips ended before %s", result.rowcount, now.date())
        return result.rowcount

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _lock_booking(self, booking_id: int) -> Optional[Booking]:
        return self.db.query(Booking).filter(Booking.id == booking_id).with_for_update().first()

    @staticmethod
    def _owns_trip(user: User, trip: Trip) -> bool:
        profile = user.provider_profile
        return profile is not None and trip.provider_id == profile.id

    def _check_cancellation_window(self, booking: Booking, now: datetime) -> None:
        window = self.settings.CANCELLATION_WINDOW_HOURS
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

        trip_start = datetime.combine(booking.trip_date.start_date, time.min, tzinfo=timezone.utc)
        hours_until_trip = (trip_start - now).total_seconds() / 3600
        if hours_until_trip < window:
            raise CancellationWindowViolation(f"Cannot cancel within {window} hours of the trip")

    def _cancel(self, booking: Booking, reason: Optional[str], now: datetime) -> None:
        booking.booking_status = BookingStatus.CANCELLED.value
        booking.cancelled_at = now
        booking.cancellation_reason = reason
        if booking.payment_status == PaymentStatus.COMPLETED.value:
            booking.payment_status = PaymentStatus.REFUNDED.value
        self.availability.release(booking.trip_date_id, booking.participant_count)

    def _context(self, booking: Booking) -> dict:
        trip = booking.trip
        provider = trip.provider
        return {
            "booking_number": booking.booking_number,
            "trip_title": trip.title,
            "provider_name": provider.business_name or provider.user.full_name,
            "travel_date": booking.trip_date.start_date.isoformat(),
            "participant_count": booking.participant_count,
            "total_price": booking.total_price,
            "booking_status": booking.booking_status,
        }

    def _notify_created(self, booking: Booking, traveler: User) -> None:
        if self.notifier is None:
            return
        context = self._context(booking)
        context.update(
            traveler_name=traveler.full_name,
            traveler_email=traveler.email,
            special_requests=booking.special_requests,
        )
        self.notifier.notify(traveler.email, "booking_confirmation", context)
        self.notifier.notify(booking.trip.provider.user.email, "booking_inquiry", context)

    def _notify_status_changed(self, booking: Booking, notify_traveler: bool, message: Optional[str]) -> None:
        if self.notifier is None:
            return
        context = self._context(booking)
        context["message"] = message
        if notify_traveler:
            recipient = booking.user.email
        else:
            recipient = booking.trip.provider.user.email
        self.notifier.notify(recipient, "booking_status_changed", context)
