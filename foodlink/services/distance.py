# foodlink/services/distance.py
from typing import Iterable, List
from math import radians, sin, cos, atan2, sqrt

from foodlink.schemas import GeoPoint, Organization, MatchCandidate

EARTH_RADIUS_KM = 6371.0

def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
    """
    Great-circle distance in km on a spherical Earth.
    Coordinates are not range-checked; that's the caller's job.
    """
    dlat = radians(b.lat - a.lat)
    dlng = radians(b.lng - a.lng)
    s = sin(dlat/2)**2 + cos(radians(a.lat)) * cos(radians(b.lat)) * sin(dlng/2)**2
    return 2 * EARTH_RADIUS_KM * atan2(sqrt(s), sqrt(1 - s))

def to_candidate(ngo: Organization, distance_km: float) -> MatchCandidate:
    return MatchCandidate(**ngo.model_dump(), distance=distance_km)

def locate(origin: GeoPoint, candidates: Iterable[Organization], max_distance_km: float) -> List[MatchCandidate]:
    """
    Organizations within max_distance_km of origin, closest first.
    Orgs without a location are skipped; ties keep input order.
    """
    nearby: List[MatchCandidate] = []
    for ngo in candidates:
        if ngo.location is None:
            continue
        dist = haversine_km(origin, ngo.location)
        if dist <= max_distance_km:
            nearby.append(to_candidate(ngo, round(dist, 2)))

    nearby.sort(key=lambda c: c.distance)
    return nearby
