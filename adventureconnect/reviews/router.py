from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from adventureconnect.database import get_db
from adventureconnect.auth.dependencies import get_current_user
from adventureconnect.models import User
from adventureconnect.reviews.schemas import Review, ReviewCreate, ReviewList
from adventureconnect.reviews.service import ReviewService

router = APIRouter()

@router.post("/{trip_id}/reviews", response_model=Review, status_code=status.HTTP_201_CREATED)
def create_review(
    trip_id: int,
    review_in: ReviewCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Review a trip you have completed"""
    return ReviewService(db).create_review(current_user, trip_id, review_in.rating, review_in.comment)

@router.get("/{trip_id}/reviews", response_model=ReviewList)
def list_reviews(
    trip_id: int,
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Reviews of a trip, newest first"""
    reviews, total, trip = ReviewService(db).list_reviews(trip_id, skip=offset, limit=limit)
    return ReviewList(
        reviews=[Review.model_validate(review) for review in reviews],
        total=total,
        page=(offset // limit) + 1,
        per_page=limit,
        rating=trip.rating,
        review_count=trip.review_count,
    )
