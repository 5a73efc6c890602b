# app/models.py
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    Float,
    Boolean,
    ForeignKey,
    Enum,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base
import enum


class CategoryEnum(str, enum.Enum):
    food = "food"
    event = "event"
    stuff = "stuff"
    service = "service"
    water = "water"
    bathroom = "bathroom"


class ReportReasonEnum(str, enum.Enum):
    fake = "fake"
    expired = "expired"
    inappropriate = "inappropriate"


class Listing(Base):
    __tablename__ = "listings"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    category = Column(Enum(CategoryEnum), nullable=False, index=True)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    # Either an inline data URL or a hosted image URL
    photo_reference = Column(Text, nullable=False, default="")
    posted_by = Column(String, nullable=False, index=True)

    upvote_count = Column(Integer, nullable=False, default=0)
    average_rating = Column(Float, nullable=False, default=0.0)
    review_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)  # Never hard-deleted
    cleanliness_rating = Column(Float, nullable=True)  # Bathrooms only

    created_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    reviews = relationship("Review", back_populates="listing")
    reports = relationship("Report", back_populates="listing")
    upvotes = relationship("UpvoteRecord", back_populates="listing")

    __table_args__ = (
        Index('idx_listings_location', 'latitude', 'longitude'),
    )


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    listing_id = Column(Integer, ForeignKey("listings.id"), nullable=False, index=True)
    rating = Column(Float, nullable=False)
    text = Column(Text, nullable=False, default="")
    reviewer_id = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    listing = relationship("Listing", back_populates="reviews")


class Report(Base):
    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, index=True)
    listing_id = Column(Integer, ForeignKey("listings.id"), nullable=False, index=True)
    reason = Column(Enum(ReportReasonEnum), nullable=False)
    reporter_id = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    listing = relationship("Listing", back_populates="reports")


class UpvoteRecord(Base):
    __tablename__ = "upvote_records"

    id = Column(Integer, primary_key=True, index=True)
    listing_id = Column(Integer, ForeignKey("listings.id"), nullable=False)
    device_id = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    listing = relationship("Listing", back_populates="upvotes")

    __table_args__ = (
        UniqueConstraint('listing_id', 'device_id', name='uq_upvote_listing_device'),
    )
