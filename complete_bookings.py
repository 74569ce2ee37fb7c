#!/usr/bin/env python3
"""Mark confirmed bookings whose trip has ended as completed.

Meant to run from cron once a day; completed bookings are what allow
travelers to review a trip.
"""

from datetime import datetime, timezone

from adventureconnect.config import get_settings
from adventureconnect.database import build_engine, build_session_factory
from adventureconnect.logging_config import configure_logging
from adventureconnect.bookings.booking_service import BookingService

def complete_bookings() -> int:
    settings = get_settings()
    configure_logging(settings)
    db = build_session_factory(build_engine(settings))()

    try:
        completed = BookingService(db, settings).complete_due_bookings(datetime.now(timezone.utc))
        print(f"✅ Completed {completed} bookings")
        return completed
    except Exception as e:
        print(f"❌ Error completing bookings: {e}")
        db.rollback()
        raise
    finally:
        db.close()

if __name__ == "__main__":
    complete_bookings()
