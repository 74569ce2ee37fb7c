#!/usr/bin/env python3

from datetime import date, timedelta
from decimal import Decimal

from adventureconnect.config import get_settings
from adventureconnect.database import build_engine, build_session_factory, init_db
from adventureconnect.auth.utils import get_password_hash
from adventureconnect.models import (
    ApprovalState, Booking, ProviderProfile, Review, Role, Trip, TripDate, TripDateStatus,
    TripStatus, User,
)

SEED_PASSWORD = "password123"

def create_seed_data():
    settings = get_settings()
    engine = build_engine(settings)
    init_db(engine)
    db = build_session_factory(engine)()

    try:
        print("🚀 Creating seed data for AdventureConnect...")

        # Clear existing data (in reverse dependency order)
        print("Clearing existing data...")
        db.query(Review).delete()
        db.query(Booking).delete()
        db.query(TripDate).delete()
        db.query(Trip).delete()
        db.query(ProviderProfile).delete()
        db.query(User).delete()

        password_hash = get_password_hash(SEED_PASSWORD)

        # 1. Create Providers
        print("Creating providers...")
        provider_users = [
            User(email="alex@adventureconnect.com", password_hash=password_hash,
                 first_name="Alex", last_name="Chen", role=Role.PROVIDER.value, is_verified=True),
            User(email="sofia@adventureconnect.com", password_hash=password_hash,
                 first_name="Sofia", last_name="Rodriguez", role=Role.PROVIDER.value, is_verified=True),
        ]
        db.add_all(provider_users)
        db.flush()

        providers = [
            ProviderProfile(
                user_id=provider_users[0].id,
                business_name="Wanderlust Adventures",
                bio="Travel photographer specializing in Southeast Asian cultural experiences.",
                expertise=["Cultural Tours", "Photography", "Adventure Travel"],
                location="Chiang Mai, Thailand",
                languages=["English", "Thai", "Mandarin"],
                years_experience=8,
                commission_rate=settings.DEFAULT_COMMISSION_RATE,
                approval_state=ApprovalState.APPROVED.value,
            ),
            ProviderProfile(
                user_id=provider_users[1].id,
                business_name="Andes Explorers",
                bio="Mountain guide for high-altitude trekking and cultural immersion in Peru and Bolivia.",
                expertise=["Hiking", "Cultural Tours", "Wildlife"],
                location="Cusco, Peru",
                languages=["English", "Spanish", "Quechua"],
                years_experience=12,
                commission_rate=Decimal("12.50"),
                approval_state=ApprovalState.APPROVED.value,
            ),
        ]
        db.add_all(providers)
        db.flush()

        # 2. Create Travelers
        print("Creating travelers...")
        travelers = [
            User(email="sarah@example.com", password_hash=password_hash,
                 first_name="Sarah", last_name="Miller", role=Role.TRAVELER.value, is_verified=True),
            User(email="john@example.com", password_hash=password_hash,
                 first_name="John", last_name="Smith", role=Role.TRAVELER.value, is_verified=True),
        ]
        db.add_all(travelers)
        db.flush()

        # 3. Create Trips
        print("Creating trips...")
        trips = [
            Trip(
                provider_id=providers[0].id,
                title="Northern Thailand Hill Tribe Cultural Immersion",
                description=(
                    "Seven days through remote villages of Northern Thailand: traditional "
                    "ceremonies, craft workshops and treks through mountain landscapes."
                ),
                destination="Chiang Mai, Thailand",
                duration_days=7,
                max_participants=12,
                base_price=Decimal("899.00"),
                included_items=[
                    "All meals",
                    "Village homestays and eco-lodges",
                    "Local expert guide and translator",
                    "All transportation during the trip",
                ],
                excluded_items=["International flights", "Travel insurance", "Tips for guides"],
                itinerary={"day_1": "Arrival in Chiang Mai", "day_7": "Return to Chiang Mai"},
                customization_options=[
                    {"name": "Private room", "price": "120.00"},
                    {"name": "Cooking class", "price": "45.00"},
                ],
                activity_type="Cultural",
                difficulty_level="Moderate",
                status=TripStatus.PUBLISHED.value,
            ),
            Trip(
                provider_id=providers[1].id,
                title="Sacred Valley & Machu Picchu Photography Expedition",
                description=(
                    "Ten days of sunrise shoots at Machu Picchu, hidden Inca sites and daily "
                    "life in traditional Andean communities."
                ),
                destination="Cusco, Peru",
                duration_days=10,
                max_participants=8,
                base_price=Decimal("1599.00"),
                included_items=[
                    "Professional photography guidance",
                    "Boutique hotels and lodges",
                    "Machu Picchu entrance and train tickets",
                ],
                excluded_items=["International flights", "Dinner meals", "Photography equipment"],
                itinerary={},
                customization_options=[{"name": "Drone workshop", "price": "150.00"}],
                activity_type="Photography",
                difficulty_level="Moderate",
                status=TripStatus.PUBLISHED.value,
            ),
        ]
        db.add_all(trips)
        db.flush()

        # 4. Create Trip Dates
        print("Creating trip dates...")
        first_start = date.today() + timedelta(days=60)
        second_start = date.today() + timedelta(days=90)
        trip_dates = [
            TripDate(trip_id=trips[0].id, start_date=first_start,
                     end_date=first_start + timedelta(days=7), capacity=12, available_spots=12,
                     status=TripDateStatus.AVAILABLE.value),
            TripDate(trip_id=trips[0].id, start_date=second_start,
                     end_date=second_start + timedelta(days=7), capacity=12, available_spots=12,
                     status=TripDateStatus.AVAILABLE.value),
            TripDate(trip_id=trips[1].id, start_date=first_start,
                     end_date=first_start + timedelta(days=10), capacity=8, available_spots=8,
                     status=TripDateStatus.AVAILABLE.value),
        ]
        db.add_all(trip_dates)

        # Commit all changes
        db.commit()
        print("✅ Successfully created seed data for AdventureConnect!")
        print(f"Created:")
        print(f"  - {len(providers)} approved providers")
        print(f"  - {len(travelers)} travelers")
        print(f"  - {len(trips)} published trips")
        print(f"  - {len(trip_dates)} trip dates")
        print(f"All accounts use the password '{SEED_PASSWORD}':")
        for user in provider_users + travelers:
            print(f"  - {user.email} ({user.role})")

    except Exception as e:
        print(f"❌ Error creating seed data: {e}")
        db.rollback()
        raise
    finally:
        db.close()

if __name__ == "__main__":
    create_seed_data()
