"""
Catalog Module

Trip listings owned by providers: creation (optionally with initial dates),
partial updates with ownership checks, filtered and paginated browsing, and
trip details with provider summary and open dates. Date management endpoints
(/trips/{id}/dates) are served here on top of the availability service.
"""

from .router import router
from .service import TripService
from .schemas import TripCreate, TripUpdate, TripSearch, TripDetail, TripSearchResult

__all__ = [
    "router",
    "TripService",
    "TripCreate",
    "TripUpdate",
    "TripSearch",
    "TripDetail",
    "TripSearchResult",
]
