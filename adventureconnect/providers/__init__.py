"""
Providers Module

Public provider profiles and the provider dashboard: own profile updates,
stats, trips with booking counts, and bookings on the provider's trips.
"""

from .router import router
from .service import ProviderService

__all__ = ["router", "ProviderService"]
