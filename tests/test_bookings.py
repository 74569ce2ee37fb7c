import re
import threading
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from adventureconnect.bookings.booking_service import BookingService
from adventureconnect.bookings.schemas import BookingCreate
from adventureconnect.exceptions import CancellationWindowViolation, InsufficientAvailability
from adventureconnect.models import User

from conftest import API, date_range


@pytest.fixture
def provider(market):
    return market.provider(email="guide@example.com", commission_rate=Decimal("15.00"))


@pytest.fixture
def traveler(market):
    return market.traveler(email="sarah@example.com", first_name="Sarah", last_name="Miller")


def test_booking_prices_and_commission(market, provider, traveler, sender):
    trip = market.published_trip(provider, base_price="100.00")

    response = market.book(traveler, trip, participant_count=2, special_requests="Vegetarian meals")

    assert response.status_code == 201, response.json()
    booking = response.json()
    assert Decimal(booking["total_price"]) == Decimal("200.00")
    assert Decimal(booking["commission_rate"]) == Decimal("15.00")
    assert Decimal(booking["commission_amount"]) == Decimal("30.00")
    assert booking["booking_status"] == "inquiry"
    assert booking["payment_status"] == "pending"
    assert re.fullmatch(r"AC\d{8}", booking["booking_number"])
    assert booking["trip"]["id"] == trip["id"]
    assert booking["trip_date"]["available_spots"] == 8

    assert "booking_confirmation" in sender.templates_for("sarah@example.com")
    assert "booking_inquiry" in sender.templates_for("guide@example.com")


def test_booking_uses_provider_commission_and_customizations(market, traveler):
    provider = market.provider(commission_rate=Decimal("12.50"))
    trip = market.published_trip(provider, base_price="100.00")

    response = market.book(traveler, trip, participant_count=3, customization=["Private room", "Cooking class"])

    booking = response.json()
    assert Decimal(booking["total_price"]) == Decimal("406.50")
    assert Decimal(booking["commission_amount"]) == Decimal("50.81")
    assert booking["customization"] == ["Private room", "Cooking class"]


def test_booking_stores_traveler_info(market, provider, traveler):
    trip = market.published_trip(provider)

    response = market.book(
        traveler, trip,
        traveler_info={"first_name": "Sarah", "phone": "+66 81 234 5678"},
        payment_method="credit_card",
    )

    booking = response.json()
    assert booking["traveler_info"]["phone"] == "+66 81 234 5678"
    assert booking["payment_method"] == "credit_card"


def test_unknown_customization_is_rejected(market, provider, traveler):
    trip = market.published_trip(provider)

    response = market.book(traveler, trip, customization=["Helicopter transfer"])

    assert response.status_code == 400
    assert market.trip_date(trip["id"], trip["dates"][0]["id"])["available_spots"] == 10


def test_unpublished_trip_cannot_be_booked(market, provider, traveler):
    trip = market.create_trip(provider)

    response = market.book(traveler, trip)

    assert response.status_code == 400
    assert response.json()["kind"] == "trip_unavailable"


def test_unknown_trip_is_not_found(market, traveler):
    response = market.book(traveler, {"id": 31337, "dates": [{"id": 1}]})

    assert response.status_code == 404


def test_date_from_another_trip_is_not_found(market, provider, traveler):
    trip = market.published_trip(provider)
    other = market.published_trip(provider)

    response = market.book(traveler, trip, trip_date_id=other["dates"][0]["id"])

    assert response.status_code == 404


@pytest.mark.parametrize("participant_count", [0, 11])
def test_participant_count_bounds(market, provider, traveler, participant_count):
    trip = market.published_trip(provider, max_participants=10)

    response = market.book(traveler, trip, participant_count=participant_count)

    assert response.status_code == 400


def test_booking_requires_authentication(client, market, provider):
    trip = market.published_trip(provider)

    response = client.post(f"{API}/bookings", json={
        "trip_id": trip["id"], "trip_date_id": trip["dates"][0]["id"], "participant_count": 1,
    })

    assert response.status_code == 401


def test_overbooking_is_rejected(market, provider, traveler):
    trip = market.published_trip(provider, max_participants=3)
    first = market.book(traveler, trip, participant_count=3)
    assert first.status_code == 201
    assert first.json()["trip_date"]["status"] == "full"

    second = market.book(market.traveler(), trip, participant_count=1)

    assert second.status_code == 400
    assert second.json()["kind"] == "insufficient_availability"


def test_large_group_fits_large_trip(market, provider, traveler):
    trip = market.published_trip(provider, max_participants=80)

    response = market.book(traveler, trip, participant_count=60)

    assert response.status_code == 201
    assert response.json()["trip_date"]["available_spots"] == 20


@pytest.mark.parametrize("days_ahead", [-20, -2, 0])
def test_departed_date_cannot_be_booked(market, provider, traveler, days_ahead):
    trip = market.published_trip(provider)
    trip_date_id = trip["dates"][0]["id"]
    market.move_date(trip_date_id, days_ahead)

    response = market.book(traveler, trip)

    assert response.status_code == 400
    assert response.json()["kind"] == "trip_unavailable"
    assert market.trip_date(trip["id"], trip_date_id)["available_spots"] == 10


def test_concurrent_bookings_for_last_spot(app, settings, market, provider, session_scope):
    trip = market.published_trip(provider, max_participants=1)
    trip_date_id = trip["dates"][0]["id"]
    traveler_ids = [market.traveler()["user"]["id"] for _ in range(2)]
    outcomes = []
    lock = threading.Lock()
    start = threading.Barrier(2)

    def attempt(user_id):
        db = app.state.session_factory()
        try:
            service = BookingService(db, settings)
            user = db.get(User, user_id)
            db.commit()
            start.wait()
            booking = service.create_booking(user, BookingCreate(
                trip_id=trip["id"], trip_date_id=trip_date_id, participant_count=1,
            ))
            result = booking.booking_status
        except InsufficientAvailability:
            result = "insufficient_availability"
        finally:
            db.close()
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=attempt, args=(user_id,)) for user_id in traveler_ids]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(outcomes) == ["inquiry", "insufficient_availability"]
    trip_date = market.trip_date(trip["id"], trip_date_id)
    assert (trip_date["available_spots"], trip_date["status"]) == (0, "full")


def test_cancel_outside_window_releases_spots(market, client, provider, traveler):
    trip = market.published_trip(provider, max_participants=2, dates=[date_range(3)])
    booking = market.book(traveler, trip, participant_count=2).json()
    assert booking["trip_date"]["status"] == "full"

    response = client.post(
        f"{API}/bookings/{booking['id']}/cancel",
        json={"reason": "Change of plans"},
        headers=market.auth(traveler),
    )

    assert response.status_code == 200
    cancelled = response.json()
    assert cancelled["booking_status"] == "cancelled"
    assert cancelled["cancellation_reason"] == "Change of plans"
    assert cancelled["cancelled_at"] is not None
    trip_date = market.trip_date(trip["id"], booking["trip_date_id"])
    assert (trip_date["available_spots"], trip_date["status"]) == (2, "available")


def test_cancel_inside_window_is_refused(market, client, provider, traveler):
    trip = market.published_trip(provider, dates=[date_range(1)])
    booking = market.book(traveler, trip, participant_count=2).json()

    response = client.post(f"{API}/bookings/{booking['id']}/cancel", headers=market.auth(traveler))

    assert response.status_code == 400
    assert response.json() == {
        "kind": "cancellation_window_violation",
        "message": "Cannot cancel within 48 hours of the trip",
    }
    unchanged = client.get(f"{API}/bookings/{booking['id']}", headers=market.auth(traveler)).json()
    assert unchanged["booking_status"] == "inquiry"
    assert market.trip_date(trip["id"], booking["trip_date_id"])["available_spots"] == 8


def test_cancellation_window_follows_settings(market, settings, session_scope, provider, traveler):
    trip = market.published_trip(provider, dates=[date_range(5)])
    booking = market.book(traveler, trip).json()
    strict = settings.model_copy(update={"CANCELLATION_WINDOW_HOURS": 240})

    with pytest.raises(CancellationWindowViolation, match="240 hours"):
        with session_scope() as db:
            BookingService(db, strict).cancel_booking(booking["id"], db.get(User, traveler["user"]["id"]))

    assert "48" not in CancellationWindowViolation.default_message


def test_second_cancel_does_not_release_twice(market, client, provider, traveler):
    trip = market.published_trip(provider, dates=[date_range(10)])
    market.book(market.traveler(), trip, participant_count=3)
    booking = market.book(traveler, trip, participant_count=2).json()

    first = client.post(f"{API}/bookings/{booking['id']}/cancel", headers=market.auth(traveler))
    second = client.post(f"{API}/bookings/{booking['id']}/cancel", headers=market.auth(traveler))

    assert first.status_code == 200
    assert second.status_code == 404
    assert market.trip_date(trip["id"], booking["trip_date_id"])["available_spots"] == 7


def test_cancel_someone_elses_booking_is_not_found(market, client, provider, traveler):
    trip = market.published_trip(provider)
    booking = market.book(traveler, trip).json()

    response = client.post(f"{API}/bookings/{booking['id']}/cancel", headers=market.auth(market.traveler()))

    assert response.status_code == 404


def test_provider_confirms_inquiry(market, client, provider, traveler, sender):
    trip = market.published_trip(provider)
    booking = market.book(traveler, trip).json()

    response = client.put(
        f"{API}/bookings/{booking['id']}/status",
        json={"status": "confirmed", "message": "See you at the meeting point!"},
        headers=market.auth(provider),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["booking_status"] == "confirmed"
    assert body["provider_response"] == "See you at the meeting point!"
    assert body["responded_at"] is not None
    assert "booking_status_changed" in sender.templates_for("sarah@example.com")


def test_provider_decline_releases_spots(market, client, provider, traveler):
    trip = market.published_trip(provider)
    booking = market.book(traveler, trip, participant_count=4).json()

    response = client.put(
        f"{API}/bookings/{booking['id']}/status",
        json={"status": "cancelled", "message": "Guide unavailable"},
        headers=market.auth(provider),
    )

    assert response.status_code == 200
    assert response.json()["booking_status"] == "cancelled"
    assert market.trip_date(trip["id"], booking["trip_date_id"])["available_spots"] == 10


def test_terminal_and_illegal_transitions(market, client, provider, traveler):
    trip = market.published_trip(provider)
    booking = market.book(traveler, trip).json()
    url = f"{API}/bookings/{booking['id']}/status"

    traveler_confirm = client.put(url, json={"status": "confirmed"}, headers=market.auth(traveler))
    assert traveler_confirm.status_code == 400
    assert traveler_confirm.json()["kind"] == "invalid_transition"

    assert client.put(url, json={"status": "confirmed"}, headers=market.auth(provider)).status_code == 200

    reconfirm = client.put(url, json={"status": "confirmed"}, headers=market.auth(provider))
    assert reconfirm.status_code == 400
    assert reconfirm.json()["kind"] == "invalid_transition"

    provider_complete = client.put(url, json={"status": "completed"}, headers=market.auth(provider))
    assert provider_complete.status_code == 400


def test_other_provider_cannot_respond(market, client, provider, traveler):
    trip = market.published_trip(provider)
    booking = market.book(traveler, trip).json()

    response = client.put(
        f"{API}/bookings/{booking['id']}/status",
        json={"status": "confirmed"},
        headers=market.auth(market.provider()),
    )

    assert response.status_code == 403
    assert response.json()["kind"] == "not_owner"


def test_traveler_cancels_through_status_endpoint(market, client, provider, traveler, sender):
    trip = market.published_trip(provider, dates=[date_range(20)])
    booking = market.book(traveler, trip, participant_count=2).json()

    response = client.put(
        f"{API}/bookings/{booking['id']}/status",
        json={"status": "cancelled", "message": "Sick"},
        headers=market.auth(traveler),
    )

    assert response.status_code == 200
    assert response.json()["cancellation_reason"] == "Sick"
    assert market.trip_date(trip["id"], booking["trip_date_id"])["available_spots"] == 10
    assert "booking_status_changed" in sender.templates_for("guide@example.com")


def test_booking_visibility(market, client, provider, traveler):
    trip = market.published_trip(provider)
    booking = market.book(traveler, trip).json()
    url = f"{API}/bookings/{booking['id']}"

    assert client.get(url, headers=market.auth(traveler)).status_code == 200
    assert client.get(url, headers=market.auth(provider)).status_code == 200
    assert client.get(url, headers=market.auth(market.traveler())).status_code == 404
    assert client.get(url, headers=market.auth(market.provider())).status_code == 404


def test_list_my_bookings_with_status_filter(market, client, provider, traveler):
    trip = market.published_trip(provider)
    first = market.book(traveler, trip).json()
    second = market.book(traveler, trip).json()
    client.put(
        f"{API}/bookings/{first['id']}/status", json={"status": "confirmed"}, headers=market.auth(provider)
    )

    everything = client.get(f"{API}/bookings", headers=market.auth(traveler)).json()
    confirmed = client.get(f"{API}/bookings", params={"status": "confirmed"}, headers=market.auth(traveler)).json()

    assert everything["total"] == 2
    assert [b["id"] for b in everything["bookings"]] == [second["id"], first["id"]]
    assert [b["id"] for b in confirmed["bookings"]] == [first["id"]]


def test_complete_due_bookings(market, client, settings, session_scope, provider, traveler):
    past = market.published_trip(provider)
    future = market.published_trip(provider, dates=[date_range(30)])
    finished = market.book(traveler, past).json()
    upcoming = market.book(traveler, future).json()
    unanswered = market.book(market.traveler(), past).json()
    for booking in (finished, upcoming):
        client.put(
            f"{API}/bookings/{booking['id']}/status", json={"status": "confirmed"}, headers=market.auth(provider)
        )
    market.move_date(past["dates"][0]["id"], -10)

    with session_scope() as db:
        completed = BookingService(db, settings).complete_due_bookings(datetime.now(timezone.utc))

    assert completed == 1
    finished_now = client.get(f"{API}/bookings/{finished['id']}", headers=market.auth(traveler)).json()
    assert finished_now["booking_status"] == "completed"
    assert finished_now["completed_at"] is not None
    assert client.get(
        f"{API}/bookings/{upcoming['id']}", headers=market.auth(traveler)
    ).json()["booking_status"] == "confirmed"
    assert client.get(
        f"{API}/bookings/{unanswered['id']}", headers=market.auth(provider)
    ).json()["booking_status"] == "inquiry"


def test_booking_number_collision_is_retried(market, provider, traveler, monkeypatch):
    trip = market.published_trip(provider)
    numbers = iter(["AC26010001", "AC26010001", "AC26010002"])
    monkeypatch.setattr(
        "adventureconnect.bookings.booking_service.generate_booking_number",
        lambda prefix, now: next(numbers),
    )

    first = market.book(traveler, trip).json()
    second = market.book(traveler, trip).json()

    assert first["booking_number"] == "AC26010001"
    assert second["booking_number"] == "AC26010002"


def test_booking_number_exhaustion_rolls_back(market, provider, traveler, monkeypatch):
    trip = market.published_trip(provider)
    monkeypatch.setattr(
        "adventureconnect.bookings.booking_service.generate_booking_number",
        lambda prefix, now: "AC26019999",
    )
    assert market.book(traveler, trip).status_code == 201

    response = market.book(traveler, trip, participant_count=2)

    assert response.status_code == 409
    assert response.json()["kind"] == "booking_number_exhausted"
    assert market.trip_date(trip["id"], trip["dates"][0]["id"])["available_spots"] == 9
