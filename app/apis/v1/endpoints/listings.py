from typing import List, Optional, Any

from fastapi import APIRouter, Depends, status, File, UploadFile, Query
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app import crud, schemas, models
from app.core.config import settings
from app.core.exceptions import ValidationError
from app.dependencies import get_db, get_device_id
from app.helper.geo import haversine_distance_meters, meters_to_miles
from app.helper.image_optimizer import store_photo
from app.helper.ranking import search_listings

router = APIRouter()


# --- Endpoints ---


@router.post("/photos", response_model=schemas.PhotoReference, status_code=status.HTTP_201_CREATED)
async def upload_photo(
    file: UploadFile = File(...),
    device_id: str = Depends(get_device_id),
):
    """
    Store a photo ahead of posting. The returned reference goes into the
    listing's `photo_reference`.
    """
    data = await file.read()
    reference = await run_in_threadpool(store_photo, data)
    return schemas.PhotoReference(photo_reference=reference)


@router.post("/", response_model=schemas.Listing, status_code=status.HTTP_201_CREATED)
def create_listing(
    listing: schemas.ListingCreate,
    db: Session = Depends(get_db),
    device_id: str = Depends(get_device_id),
) -> Any:
    return crud.create_listing(db=db, draft=listing, posted_by=device_id)


@router.get("/", response_model=List[schemas.Listing])
def read_listings(
    db: Session = Depends(get_db),
    q: str = "",
    category: Optional[models.CategoryEnum] = None,
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    radius_miles: float = Query(settings.DEFAULT_SEARCH_RADIUS_MILES, ge=1, le=settings.MAX_SEARCH_RADIUS_MILES),
    poop_mode: bool = False,
) -> Any:
    if (lat is None) != (lng is None):
        raise ValidationError("lat and lng must be provided together")

    user_location = schemas.Coordinate(latitude=lat, longitude=lng) if lat is not None else None
    params = schemas.SearchParams(
        search_text=q,
        category=category,
        user_location=user_location,
        radius_miles=radius_miles,
        poop_mode_only=poop_mode,
    )
    results = search_listings(crud.get_active_listings(db), params)

    for listing in results:
        listing.distance_miles = (
            meters_to_miles(haversine_distance_meters(user_location, listing))
            if user_location is not None else None
        )
    return results


@router.get("/mine", response_model=List[schemas.Listing])
def read_my_listings(
    db: Session = Depends(get_db),
    device_id: str = Depends(get_device_id),
) -> Any:
    return crud.get_device_listings(db, device_id=device_id)


@router.get("/{listing_id}", response_model=schemas.Listing)
def read_listing(listing_id: int, db: Session = Depends(get_db)) -> Any:
    return crud.get_listing(db, listing_id=listing_id)


@router.post("/{listing_id}/upvote", response_model=schemas.UpvoteResult)
def upvote_listing(
    listing_id: int,
    db: Session = Depends(get_db),
    device_id: str = Depends(get_device_id),
):
    return crud.record_upvote(db, listing_id=listing_id, device_id=device_id)


@router.get("/{listing_id}/upvote", response_model=schemas.UpvoteStatus)
def read_upvote_status(
    listing_id: int,
    db: Session = Depends(get_db),
    device_id: str = Depends(get_device_id),
):
    return schemas.UpvoteStatus(upvoted=crud.has_upvoted(db, listing_id=listing_id, device_id=device_id))


@router.get("/{listing_id}/reviews", response_model=List[schemas.Review])
def read_reviews(listing_id: int, db: Session = Depends(get_db)):
    return crud.get_reviews(db, listing_id=listing_id)


@router.post("/{listing_id}/reviews", response_model=schemas.Review, status_code=status.HTTP_201_CREATED)
def create_review(
    listing_id: int,
    review: schemas.ReviewCreate,
    db: Session = Depends(get_db),
    device_id: str = Depends(get_device_id),
):
    return crud.add_review(db, listing_id=listing_id, review=review, reviewer_id=device_id)


@router.post("/{listing_id}/reports", response_model=schemas.Report, status_code=status.HTTP_201_CREATED)
def create_report(
    listing_id: int,
    report: schemas.ReportCreate,
    db: Session = Depends(get_db),
    device_id: str = Depends(get_device_id),
):
    return crud.add_report(db, listing_id=listing_id, report=report, reporter_id=device_id)
