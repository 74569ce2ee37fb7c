"""Money arithmetic and booking number generation.

All amounts are ``Decimal`` with two places, rounded half-up.
"""
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Sequence
import random
import secrets

from adventureconnect.exceptions import ValidationError

TWO_PLACES = Decimal("0.01")
HUNDRED = Decimal("100")

_system_random = secrets.SystemRandom()


def to_money(value) -> Decimal:
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def customization_surcharges(options: Optional[Sequence[dict]], selected: Iterable[str]) -> List[Decimal]:
    """Per-participant prices of the selected customization options"""
    prices = {option["name"]: to_money(option.get("price", 0)) for option in (options or [])}
    surcharges = []
    for name in selected:
        if name not in prices:
            raise ValidationError(f"Unknown customization option: {name}")
        surcharges.append(prices[name])
    return surcharges


def compute_total_price(base_price, participant_count: int, surcharges: Iterable[Decimal] = ()) -> Decimal:
    """(base price + surcharges) per participant, times the participant count"""
    per_person = to_money(base_price) + sum(surcharges, Decimal("0"))
    return to_money(per_person * participant_count)


def compute_commission(total_price, commission_rate) -> Decimal:
    return to_money(to_money(total_price) * Decimal(str(commission_rate)) / HUNDRED)


def generate_booking_number(prefix: str, now: datetime, rng: random.Random = _system_random) -> str:
    """``prefix`` + YY + MM + four random digits, e.g. ``AC26100427``"""
    return f"{prefix}{now:%y%m}{rng.randrange(10000):04d}"
