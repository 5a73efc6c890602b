from datetime import datetime, timezone
from typing import Iterable, List, Optional

from app import schemas
from app.models import CategoryEnum
from app.helper.geo import haversine_distance_meters, meters_to_miles
from app.helper.timestamps import as_utc


def _matches_text(listing, needle: str) -> bool:
    return needle in (listing.title or "").lower() or needle in (listing.description or "").lower()


def search_listings(
    listings: Iterable,
    params: schemas.SearchParams,
    now: Optional[datetime] = None,
) -> List:
    """
    Filter and order a materialised set of listings.

    A listing is kept when it is active, not yet expired, matches the
    category (bathrooms only in poop mode), contains the search text in its
    title or description, and lies within `radius_miles` of the user.

    With a user location the result is ordered nearest first, otherwise
    newest first. Python's sort is stable, so ties keep the input order.
    """
    now = as_utc(now or datetime.now(timezone.utc))
    needle = params.search_text.strip().lower()
    origin = params.user_location

    matched = []
    for listing in listings:
        if not listing.is_active:
            continue
        if as_utc(listing.expires_at) <= now:
            continue
        if params.poop_mode_only and listing.category != CategoryEnum.bathroom:
            continue
        if params.category is not None and listing.category != params.category:
            continue
        if needle and not _matches_text(listing, needle):
            continue

        distance = None
        if origin is not None:
            distance = haversine_distance_meters(origin, listing)
            if meters_to_miles(distance) > params.radius_miles:
                continue
        matched.append((listing, distance))

    if origin is not None:
        matched.sort(key=lambda pair: pair[1])
    else:
        matched.sort(key=lambda pair: as_utc(pair[0].created_at), reverse=True)

    return [listing for listing, _ in matched]
