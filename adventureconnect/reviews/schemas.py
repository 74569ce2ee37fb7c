from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

class ReviewCreate(BaseModel):
    # range checked by ReviewService so the error kind is invalid_rating
    rating: int
    comment: Optional[str] = Field(None, max_length=5000)

    class Config:
        extra = "forbid"

class ReviewAuthor(BaseModel):
    id: int
    first_name: str
    last_name: str

    class Config:
        from_attributes = True

class Review(BaseModel):
    id: int
    user_id: int
    trip_id: int
    rating: int
    comment: Optional[str] = None
    created_at: datetime
    user: ReviewAuthor

    class Config:
        from_attributes = True

class ReviewList(BaseModel):
    reviews: List[Review]
    total: int
    page: int
    per_page: int
    rating: Decimal
    review_count: int
