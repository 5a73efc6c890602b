# app/crud.py

from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Iterator, List

from sqlalchemy import func, insert, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import models, schemas
from .core.config import settings
from .core.exceptions import NotFoundError, StoreError, ValidationError
from .core.logging import get_logger
from .helper.timestamps import as_utc

logger = get_logger(__name__)

# Dialects that can express "insert unless it already exists" in one statement
_CONDITIONAL_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


# --- Helper Functions ---

def store_operation(f):
    """Roll back and re-raise database failures as StoreError."""
    @wraps(f)
    def wrapper(db: Session, *args, **kwargs):
        try:
            return f(db, *args, **kwargs)
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("Store operation %s failed", f.__name__)
            raise StoreError(f"Database error during {f.__name__}") from e
    return wrapper


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _require_listing(db: Session, listing_id: int) -> models.Listing:
    listing = db.get(models.Listing, listing_id)
    if listing is None:
        raise NotFoundError(f"Listing {listing_id} not found")
    return listing


# --- Listing CRUD ---

@store_operation
def create_listing(db: Session, draft: schemas.ListingCreate, posted_by: str) -> models.Listing:
    if draft.cleanliness_rating is not None and draft.category != models.CategoryEnum.bathroom:
        raise ValidationError("cleanliness_rating is only allowed for bathroom listings")

    created_at = _utcnow()
    expires_at = draft.expires_at or created_at + timedelta(hours=settings.LISTING_TTL_HOURS)
    # SQLite keeps the wall-clock value only, so store everything in UTC
    expires_at = as_utc(expires_at)
    if expires_at <= created_at:
        raise ValidationError("expires_at must be in the future")

    db_listing = models.Listing(
        **draft.model_dump(exclude={"expires_at"}),
        posted_by=posted_by,
        created_at=created_at,
        expires_at=expires_at,
        upvote_count=0,
        average_rating=0.0,
        review_count=0,
        is_active=True,
    )
    db.add(db_listing)
    db.commit()
    db.refresh(db_listing)
    logger.info("Created listing %s (%s) for device %s", db_listing.id, db_listing.category.value, posted_by)
    return db_listing


def get_active_listings(db: Session, batch_size: int = 100) -> Iterator[models.Listing]:
    """
    Stream every active listing in insertion order.

    Each call issues a fresh query, so iterating again observes writes made
    since the previous pass.
    """
    try:
        query = (
            db.query(models.Listing)
            .filter(models.Listing.is_active.is_(True))
            .order_by(models.Listing.id)
            .yield_per(batch_size)
        )
        for listing in query:
            yield listing
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Streaming active listings failed")
        raise StoreError("Database error during get_active_listings") from e


@store_operation
def get_listing(db: Session, listing_id: int) -> models.Listing:
    return _require_listing(db, listing_id)


@store_operation
def get_device_listings(db: Session, device_id: str) -> List[models.Listing]:
    return (
        db.query(models.Listing)
        .filter(models.Listing.posted_by == device_id)
        .order_by(models.Listing.created_at.desc(), models.Listing.id.desc())
        .all()
    )


# --- Upvotes ---

def _insert_upvote_record(db: Session, listing_id: int, device_id: str) -> bool:
    values = {"listing_id": listing_id, "device_id": device_id, "created_at": _utcnow()}
    conditional_insert = _CONDITIONAL_INSERTS.get(db.get_bind().dialect.name)

    if conditional_insert is not None:
        stmt = (
            conditional_insert(models.UpvoteRecord.__table__)
            .values(**values)
            .on_conflict_do_nothing(index_elements=["listing_id", "device_id"])
        )
        return db.execute(stmt).rowcount == 1

    # Other backends: let the unique constraint reject the duplicate
    try:
        with db.begin_nested():
            db.execute(insert(models.UpvoteRecord.__table__).values(**values))
    except IntegrityError:
        return False
    return True


@store_operation
def record_upvote(db: Session, listing_id: int, device_id: str) -> schemas.UpvoteResult:
    _require_listing(db, listing_id)

    applied = _insert_upvote_record(db, listing_id, device_id)
    if applied:
        db.execute(
            update(models.Listing)
            .where(models.Listing.id == listing_id)
            .values(upvote_count=models.Listing.upvote_count + 1)
        )
    db.commit()

    upvote_count = db.query(models.Listing.upvote_count).filter(models.Listing.id == listing_id).scalar()
    if applied:
        logger.info("Device %s upvoted listing %s (now %s)", device_id, listing_id, upvote_count)
    return schemas.UpvoteResult(applied=applied, upvote_count=upvote_count)


@store_operation
def has_upvoted(db: Session, listing_id: int, device_id: str) -> bool:
    _require_listing(db, listing_id)
    return db.query(models.UpvoteRecord).filter(
        models.UpvoteRecord.listing_id == listing_id,
        models.UpvoteRecord.device_id == device_id
    ).first() is not None


# --- Reviews & Aggregation ---

@store_operation
def recompute_rating(db: Session, listing_id: int) -> None:
    review_count, average = (
        db.query(func.count(models.Review.id), func.avg(models.Review.rating))
        .filter(models.Review.listing_id == listing_id)
        .one()
    )
    average_rating = float(average) if review_count else 0.0

    db.execute(
        update(models.Listing)
        .where(models.Listing.id == listing_id)
        .values(average_rating=average_rating, review_count=review_count)
    )
    db.commit()
    logger.info("Listing %s rating is %.2f over %s reviews", listing_id, average_rating, review_count)


@store_operation
def add_review(db: Session, listing_id: int, review: schemas.ReviewCreate, reviewer_id: str) -> models.Review:
    _require_listing(db, listing_id)

    db_review = models.Review(
        **review.model_dump(),
        listing_id=listing_id,
        reviewer_id=reviewer_id,
        created_at=_utcnow(),
    )
    db.add(db_review)
    db.commit()
    db.refresh(db_review)

    recompute_rating(db, listing_id)
    return db_review


@store_operation
def get_reviews(db: Session, listing_id: int) -> List[models.Review]:
    _require_listing(db, listing_id)
    return (
        db.query(models.Review)
        .filter(models.Review.listing_id == listing_id)
        .order_by(models.Review.created_at.desc(), models.Review.id.desc())
        .all()
    )


# --- Reports ---

@store_operation
def add_report(db: Session, listing_id: int, report: schemas.ReportCreate, reporter_id: str) -> models.Report:
    _require_listing(db, listing_id)

    db_report = models.Report(
        **report.model_dump(),
        listing_id=listing_id,
        reporter_id=reporter_id,
        created_at=_utcnow(),
    )
    db.add(db_report)
    db.commit()
    db.refresh(db_report)
    logger.info("Listing %s reported as %s by device %s", listing_id, report.reason.value, reporter_id)
    return db_report
