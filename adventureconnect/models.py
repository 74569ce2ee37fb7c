from decimal import Decimal
from enum import Enum
from sqlalchemy import (
    Column, Integer, BigInteger, String, Boolean, DateTime, Date, Text, ForeignKey, Numeric, JSON,
    CheckConstraint, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from adventureconnect.database import Base

# SQLite only autoincrements INTEGER PRIMARY KEY columns
PrimaryKey = BigInteger().with_variant(Integer(), "sqlite")

# ================================
# Enumerations
# ================================
class Role(str, Enum):
    TRAVELER = "traveler"
    PROVIDER = "provider"

class ApprovalState(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"

class TripStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    PUBLISHED = "published"
    PAUSED = "paused"
    INACTIVE = "inactive"

class TripDateStatus(str, Enum):
    AVAILABLE = "available"
    FULL = "full"
    CLOSED = "closed"

class BookingStatus(str, Enum):
    INQUIRY = "inquiry"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"

# ================================
# Users & Providers
# ================================
class User(Base):
    __tablename__ = "users"

    id = Column(PrimaryKey, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    role = Column(String(20), nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    provider_profile = relationship("ProviderProfile", back_populates="user", uselist=False)
    bookings = relationship("Booking", back_populates="user")
    reviews = relationship("Review", back_populates="user")

    __table_args__ = (
        CheckConstraint("role IN ('traveler', 'provider')", name="check_user_role"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

class ProviderProfile(Base):
    __tablename__ = "provider_profiles"

    id = Column(PrimaryKey, primary_key=True, index=True)
    user_id = Column(PrimaryKey, ForeignKey("users.id"), unique=True, nullable=False)
    business_name = Column(String(255))
    bio = Column(Text)
    expertise = Column(JSON, default=list)
    location = Column(String(255))
    languages = Column(JSON, default=list)
    years_experience = Column(Integer, default=0)
    commission_rate = Column(Numeric(5, 2), nullable=False, default=Decimal("15.00"))
    approval_state = Column(String(20), nullable=False, default=ApprovalState.PENDING.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="provider_profile")
    trips = relationship("Trip", back_populates="provider")

# ================================
# Catalog & Availability
# ================================
class Trip(Base):
    __tablename__ = "trips"

    id = Column(PrimaryKey, primary_key=True, index=True)
    provider_id = Column(PrimaryKey, ForeignKey("provider_profiles.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    destination = Column(String(255), nullable=False, index=True)
    duration_days = Column(Integer, nullable=False)
    max_participants = Column(Integer, nullable=False)
    base_price = Column(Numeric(10, 2), nullable=False)
    included_items = Column(JSON, default=list)
    excluded_items = Column(JSON, default=list)
    itinerary = Column(JSON, default=dict)
    customization_options = Column(JSON, default=list)
    activity_type = Column(String(50), index=True)
    difficulty_level = Column(String(50))
    status = Column(String(20), nullable=False, default=TripStatus.DRAFT.value, index=True)
    rating = Column(Numeric(3, 2), nullable=False, default=Decimal("0.00"))
    review_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    provider = relationship("ProviderProfile", back_populates="trips")
    dates = relationship("TripDate", back_populates="trip", order_by="TripDate.start_date")
    bookings = relationship("Booking", back_populates="trip")
    reviews = relationship("Review", back_populates="trip")

    __table_args__ = (
        CheckConstraint("duration_days > 0", name="check_trip_duration_positive"),
        CheckConstraint("max_participants >= 1", name="check_trip_max_participants"),
        CheckConstraint("base_price >= 0", name="check_trip_base_price"),
    )

class TripDate(Base):
    __tablename__ = "trip_dates"

    id = Column(PrimaryKey, primary_key=True, index=True)
    trip_id = Column(PrimaryKey, ForeignKey("trips.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False, index=True)
    end_date = Column(Date, nullable=False)
    capacity = Column(Integer, nullable=False)
    available_spots = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default=TripDateStatus.AVAILABLE.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    trip = relationship("Trip", back_populates="dates")
    bookings = relationship("Booking", back_populates="trip_date")

    __table_args__ = (
        CheckConstraint("available_spots >= 0", name="check_trip_date_spots_non_negative"),
        CheckConstraint("available_spots <= capacity", name="check_trip_date_spots_within_capacity"),
        CheckConstraint("start_date < end_date", name="check_trip_date_range"),
    )

# ================================
# Bookings & Reviews
# ================================
class Booking(Base):
    __tablename__ = "bookings"

    id = Column(PrimaryKey, primary_key=True, index=True)
    booking_number = Column(String(20), unique=True, nullable=False, index=True)
    user_id = Column(PrimaryKey, ForeignKey("users.id"), nullable=False, index=True)
    trip_id = Column(PrimaryKey, ForeignKey("trips.id"), nullable=False, index=True)
    trip_date_id = Column(PrimaryKey, ForeignKey("trip_dates.id"), nullable=False, index=True)
    participant_count = Column(Integer, nullable=False)
    customization = Column(JSON, default=list)
    traveler_info = Column(JSON, default=dict)
    special_requests = Column(Text)
    total_price = Column(Numeric(10, 2), nullable=False)
    commission_rate = Column(Numeric(5, 2), nullable=False)
    commission_amount = Column(Numeric(10, 2), nullable=False)
    payment_method = Column(String(50))
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    booking_status = Column(String(20), nullable=False, default=BookingStatus.INQUIRY.value, index=True)
    provider_response = Column(Text)
    responded_at = Column(DateTime(timezone=True))
    cancelled_at = Column(DateTime(timezone=True))
    cancellation_reason = Column(Text)
    completed_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="bookings")
    trip = relationship("Trip", back_populates="bookings")
    trip_date = relationship("TripDate", back_populates="bookings")

    __table_args__ = (
        CheckConstraint("participant_count > 0", name="check_booking_participants_positive"),
        CheckConstraint(
            "booking_status IN ('inquiry', 'confirmed', 'cancelled', 'completed')",
            name="check_booking_status",
        ),
        CheckConstraint(
            "payment_status IN ('pending', 'completed', 'failed', 'refunded')",
            name="check_booking_payment_status",
        ),
    )

class Review(Base):
    __tablename__ = "reviews"

    id = Column(PrimaryKey, primary_key=True, index=True)
    user_id = Column(PrimaryKey, ForeignKey("users.id"), nullable=False, index=True)
    trip_id = Column(PrimaryKey, ForeignKey("trips.id"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    # Relationships
    user = relationship("User", back_populates="reviews")
    trip = relationship("Trip", back_populates="reviews")

    __table_args__ = (
        UniqueConstraint("user_id", "trip_id", name="uq_review_user_trip"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="check_review_rating_range"),
    )
