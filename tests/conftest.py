import itertools
from contextlib import contextmanager
from datetime import date, datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from adventureconnect.config import Settings
from adventureconnect.main import create_app
from adventureconnect.models import ApprovalState, ProviderProfile, TripDate
from adventureconnect.notifications import BaseSender

API = "/api/v1"
PASSWORD = "secret123"


class RecordingSender(BaseSender):
    """Keeps sent messages in memory; fails every attempt when ``fail`` is set"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.attempts = 0
        self.sent = []

    def send(self, message) -> None:
        self.attempts += 1
        if self.fail:
            raise ConnectionError("SMTP relay unavailable")
        self.sent.append(message)

    def templates_for(self, to: str):
        return [message.template for message in self.sent if message.to == to]


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def date_range(days_ahead: int, length: int = 5) -> dict:
    start = utc_today() + timedelta(days=days_ahead)
    return {"start_date": start.isoformat(), "end_date": (start + timedelta(days=length)).isoformat()}


class Marketplace:
    """Drives the API the way a client would, for test setup"""

    _emails = itertools.count(1)

    def __init__(self, client: TestClient, session_scope):
        self.client = client
        self.session_scope = session_scope

    @staticmethod
    def auth(account: dict) -> dict:
        return {"Authorization": f"Bearer {account['access_token']}"}

    def register(self, role: str = "traveler", email: str = None, **fields) -> dict:
        payload = {
            "email": email or f"{role}{next(self._emails)}@example.com",
            "password": PASSWORD,
            "first_name": fields.pop("first_name", "Test"),
            "last_name": fields.pop("last_name", role.title()),
            "role": role,
        }
        payload.update(fields)
        response = self.client.post(f"{API}/auth/register", json=payload)
        assert response.status_code == 201, response.json()
        return response.json()

    def traveler(self, **fields) -> dict:
        return self.register("traveler", **fields)

    def provider(self, approved: bool = True, commission_rate=None, **fields) -> dict:
        account = self.register("provider", **fields)
        if approved or commission_rate is not None:
            with self.session_scope() as db:
                profile = db.query(ProviderProfile).filter(
                    ProviderProfile.user_id == account["user"]["id"]
                ).one()
                if approved:
                    profile.approval_state = ApprovalState.APPROVED.value
                if commission_rate is not None:
                    profile.commission_rate = commission_rate
                account["provider_id"] = profile.id
        else:
            account["provider_id"] = account["user"]["provider_profile"]["id"]
        return account

    def create_trip(self, provider: dict, dates=None, **overrides) -> dict:
        payload = {
            "title": "Hill Tribe Trek",
            "description": "Five days walking between hill tribe villages.",
            "destination": "Chiang Mai, Thailand",
            "duration_days": 5,
            "max_participants": 10,
            "base_price": "100.00",
            "activity_type": "Cultural",
            "difficulty_level": "Moderate",
            "customization_options": [
                {"name": "Private room", "price": "20.00"},
                {"name": "Cooking class", "price": "15.50"},
            ],
            "dates": [date_range(30)] if dates is None else dates,
        }
        payload.update(overrides)
        response = self.client.post(f"{API}/trips", json=payload, headers=self.auth(provider))
        assert response.status_code == 201, response.json()
        return response.json()

    def publish(self, provider: dict, trip_id: int) -> dict:
        response = self.client.put(
            f"{API}/trips/{trip_id}", json={"status": "published"}, headers=self.auth(provider)
        )
        assert response.status_code == 200, response.json()
        return response.json()

    def published_trip(self, provider: dict, dates=None, **overrides) -> dict:
        trip = self.create_trip(provider, dates=dates, **overrides)
        self.publish(provider, trip["id"])
        return trip

    def book(self, traveler: dict, trip: dict, trip_date_id: int = None, participant_count: int = 1, **extra):
        payload = {
            "trip_id": trip["id"],
            "trip_date_id": trip_date_id or trip["dates"][0]["id"],
            "participant_count": participant_count,
        }
        payload.update(extra)
        return self.client.post(f"{API}/bookings", json=payload, headers=self.auth(traveler))

    def trip_date(self, trip_id: int, trip_date_id: int) -> dict:
        response = self.client.get(f"{API}/trips/{trip_id}/dates", params={"include_unavailable": True})
        assert response.status_code == 200, response.json()
        return next(entry for entry in response.json() if entry["id"] == trip_date_id)

    def move_date(self, trip_date_id: int, days_ahead: int, length: int = 5) -> None:
        """Reschedule a trip date directly in storage, e.g. into the past once booked"""
        start = utc_today() + timedelta(days=days_ahead)
        with self.session_scope() as db:
            trip_date = db.get(TripDate, trip_date_id)
            trip_date.start_date = start
            trip_date.end_date = start + timedelta(days=length)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite:///{tmp_path / 'adventureconnect-test.db'}",
        SECRET_KEY="test-secret-key",
        ENVIRONMENT="test",
        LOG_LEVEL="WARNING",
        NOTIFICATION_MAX_ATTEMPTS=3,
        NOTIFICATION_RETRY_DELAY_SECONDS=0,
    )


@pytest.fixture
def app(settings):
    app = create_app(settings)
    app.state.notification_sender = RecordingSender()
    yield app
    app.state.engine.dispose()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def sender(app) -> RecordingSender:
    return app.state.notification_sender


@pytest.fixture
def session_scope(app):
    """Short-lived sessions; each commits and closes so requests are never blocked"""

    @contextmanager
    def scope():
        db = app.state.session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    return scope


@pytest.fixture
def market(client, session_scope) -> Marketplace:
    return Marketplace(client, session_scope)
