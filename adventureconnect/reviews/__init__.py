"""
Reviews Module

One review per user per trip, allowed once the user has a completed
booking for it. Keeps the trip's rating and review_count in step.
"""

from .router import router
from .service import ReviewService

__all__ = ["router", "ReviewService"]
