# app/schemas.py
from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from .core.config import settings
from .helper.timestamps import as_utc
from .models import CategoryEnum, ReportReasonEnum


# --- Geo Schemas ---


class Coordinate(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


# --- Listing Schemas ---


class ListingCreate(BaseModel):
    title: str = Field(..., example="Free Pizza")
    description: str = ""
    category: CategoryEnum
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    photo_reference: str = ""
    expires_at: Optional[datetime] = None
    cleanliness_rating: Optional[float] = Field(None, ge=1, le=10)


class Listing(BaseModel):
    id: int
    title: str
    description: str
    category: CategoryEnum
    latitude: float
    longitude: float
    photo_reference: str
    posted_by: str
    created_at: datetime
    expires_at: datetime
    upvote_count: int
    average_rating: float
    review_count: int
    is_active: bool
    cleanliness_rating: Optional[float] = None
    distance_miles: Optional[float] = None

    _utc_timestamps = field_validator("created_at", "expires_at")(as_utc)

    class Config:
        from_attributes = True


class SearchParams(BaseModel):
    search_text: str = ""
    category: Optional[CategoryEnum] = None
    user_location: Optional[Coordinate] = None
    radius_miles: float = Field(settings.DEFAULT_SEARCH_RADIUS_MILES, gt=0)
    poop_mode_only: bool = False


class PhotoReference(BaseModel):
    photo_reference: str


# --- Upvote Schemas ---


class UpvoteResult(BaseModel):
    applied: bool
    upvote_count: int


class UpvoteStatus(BaseModel):
    upvoted: bool


# --- Review Schemas ---


class ReviewCreate(BaseModel):
    rating: float = Field(..., ge=1, le=5)
    text: str = ""


class Review(ReviewCreate):
    id: int
    listing_id: int
    reviewer_id: str
    created_at: datetime

    _utc_created_at = field_validator("created_at")(as_utc)

    class Config:
        from_attributes = True


# --- Report Schemas ---


class ReportCreate(BaseModel):
    reason: ReportReasonEnum
    description: Optional[str] = None


class Report(ReportCreate):
    id: int
    listing_id: int
    reporter_id: str
    created_at: datetime

    _utc_created_at = field_validator("created_at")(as_utc)

    class Config:
        from_attributes = True


# --- Device Schemas ---


class Device(BaseModel):
    device_id: str
