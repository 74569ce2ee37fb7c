from pydantic import BaseModel, Field
from typing import List
from datetime import date, datetime

class TripDateCreate(BaseModel):
    start_date: date
    end_date: date

    class Config:
        extra = "forbid"

class TripDatesCreate(BaseModel):
    dates: List[TripDateCreate] = Field(..., min_length=1, max_length=100)

    class Config:
        extra = "forbid"

class TripDate(BaseModel):
    id: int
    trip_id: int
    start_date: date
    end_date: date
    capacity: int
    available_spots: int
    status: str
    created_at: datetime

    class Config:
        from_attributes = True
