import logging
from decimal import Decimal
from typing import List, Optional, Tuple
from sqlalchemy import exists, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from adventureconnect.exceptions import (
    DuplicateReview, InvalidRating, NotFound, ReviewNotAllowed,
)
from adventureconnect.models import Booking, BookingStatus, Review, Trip, User
from adventureconnect.bookings.pricing import to_money

logger = logging.getLogger(__name__)

class ReviewService:
    """Trip reviews and the rating aggregate stored on the trip.

    ``rating`` and ``review_count`` on the trip are recomputed from the
    review rows while the trip row is locked, in the transaction that
    inserts the review.
    """

    def __init__(self, db: Session):
        self.db = db

    def create_review(self, user: User, trip_id: int, rating: int, comment: Optional[str] = None) -> Review:
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise InvalidRating()

        trip = self.db.query(Trip).filter(Trip.id == trip_id).with_for_update().first()
        if trip is None:
            raise NotFound("Trip not found")

        if not self._has_completed_booking(user.id, trip_id):
            raise ReviewNotAllowed()

        if self.db.query(exists().where(Review.user_id == user.id, Review.trip_id == trip_id)).scalar():
            raise DuplicateReview()

        review = Review(user_id=user.id, trip_id=trip_id, rating=rating, comment=comment)
        try:
            self.db.add(review)
            self.db.flush()

            count, total = self.db.query(
                func.count(Review.id), func.coalesce(func.sum(Review.rating), 0)
            ).filter(Review.trip_id == trip_id).one()
            trip.review_count = count
            trip.rating = to_money(Decimal(total) / Decimal(count))

            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateReview()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "User %s reviewed trip %s (%d stars); trip rating now %s over %d reviews",
            user.id, trip_id, rating, trip.rating, trip.review_count,
        )
        return self.db.query(Review).options(joinedload(Review.user)).filter(Review.id == review.id).one()

    def list_reviews(self, trip_id: int, skip: int = 0, limit: int = 20) -> Tuple[List[Review], int, Trip]:
        """Reviews of a trip, newest first"""
        trip = self.db.get(Trip, trip_id)
        if trip is None:
            raise NotFound("Trip not found")

        query = self.db.query(Review).filter(Review.trip_id == trip_id)
        total = query.count()
        reviews = query.options(joinedload(Review.user)).order_by(
            Review.created_at.desc(), Review.id.desc()
        ).offset(skip).limit(limit).all()
        return reviews, total, trip

    def _has_completed_booking(self, user_id: int, trip_id: int) -> bool:
        return self.db.query(
            exists().where(
                Booking.user_id == user_id,
                Booking.trip_id == trip_id,
                Booking.booking_status == BookingStatus.COMPLETED.value,
            )
        ).scalar()
