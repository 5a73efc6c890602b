import math

EARTH_RADIUS_METERS = 6371000.0
METERS_PER_MILE = 1609.34


def haversine_distance_meters(a, b) -> float:
    """
    Great-circle distance between two points that expose `latitude` and
    `longitude` in degrees (coordinates, listings, ORM rows).
    """
    lat1, lat2 = math.radians(a.latitude), math.radians(b.latitude)
    d_lat = lat2 - lat1
    d_lng = math.radians(b.longitude - a.longitude)

    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    # Rounding can push h a hair above 1 for antipodal points
    return 2 * EARTH_RADIUS_METERS * math.asin(math.sqrt(min(1.0, h)))


def meters_to_miles(meters: float) -> float:
    return meters / METERS_PER_MILE
