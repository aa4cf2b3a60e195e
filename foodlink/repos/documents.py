# foodlink/repos/documents.py
"""
Conversion between stored documents and the domain models.

Documents keep locations as GeoJSON points ([lng, lat]) so Mongo can
2dsphere-index them; nothing outside the repos sees that shape.
"""
from typing import Any, Dict, Optional

from foodlink.schemas import Donation, Organization, GeoPoint, PickupLocation

def geo_doc(point: Optional[GeoPoint]) -> Optional[Dict[str, Any]]:
    if point is None:
        return None
    return {"type": "Point", "coordinates": [float(point.lng), float(point.lat)]}

def geo_from_doc(d: Optional[dict]) -> Optional[GeoPoint]:
    coords = (d or {}).get("coordinates")
    if not isinstance(coords, (list, tuple)) or len(coords) != 2:
        return None
    return GeoPoint(lat=float(coords[1]), lng=float(coords[0]))

# --------------------------
# Donations
# --------------------------
def donation_to_doc(d: Donation) -> Dict[str, Any]:
    loc = d.pickup_location
    return {
        "restaurant_id": d.restaurant_id,
        "restaurant_name": d.restaurant_name,
        "food_items": [i.model_dump() for i in d.food_items],
        "pickup_location": {**geo_doc(loc.point), "address": loc.address},
        "pickup_time_window": d.pickup_time_window.model_dump(),
        "status": d.status,
        "claimed_by": d.claimed_by.model_dump() if d.claimed_by else None,
        "ai_verified": d.ai_verified,
        "created_at": d.created_at,
        "updated_at": d.updated_at,
    }

def donation_from_doc(doc: dict) -> Donation:
    raw_loc = doc.get("pickup_location") or {}
    point = geo_from_doc(raw_loc) or GeoPoint(lat=0.0, lng=0.0)
    return Donation(
        id=str(doc["_id"]),
        restaurant_id=doc.get("restaurant_id", ""),
        restaurant_name=doc.get("restaurant_name", ""),
        food_items=doc.get("food_items") or [],
        pickup_location=PickupLocation(lat=point.lat, lng=point.lng, address=raw_loc.get("address") or ""),
        pickup_time_window=doc.get("pickup_time_window"),
        status=doc.get("status", "available"),
        claimed_by=doc.get("claimed_by") or None,
        ai_verified=bool(doc.get("ai_verified", False)),
        claim_pending=bool(doc.get("claim_pending", False)),
        created_at=doc.get("created_at"),
        updated_at=doc.get("updated_at"),
    )

# --------------------------
# NGOs
# --------------------------
def ngo_to_doc(n: Organization) -> Dict[str, Any]:
    return {
        "name": n.name,
        "email": str(n.email).lower(),
        "password_hash": n.password_hash,
        "phone": n.phone,
        "address": n.address.model_dump() if n.address else None,
        "location": geo_doc(n.location),
        "capacity": n.capacity,
        "food_preferences": list(n.food_preferences),
        "verified": n.verified,
        "active": n.active,
        "total_donations_received": n.total_donations_received,
        "credited_donations": [],
        "created_at": n.created_at,
        "updated_at": n.updated_at,
    }

def ngo_changes_to_doc(changes: Dict[str, Any]) -> Dict[str, Any]:
    """Partial update from NGOUpdateIn.model_dump(exclude_unset=True) -> $set body."""
    out = dict(changes)
    if "location" in out:
        loc = out["location"]
        out["location"] = geo_doc(GeoPoint(**loc)) if loc else None
    return out

def ngo_from_doc(doc: dict) -> Organization:
    return Organization(
        id=str(doc["_id"]),
        name=doc.get("name", ""),
        email=doc.get("email"),
        password_hash=doc.get("password_hash") or "",
        phone=doc.get("phone") or "",
        address=doc.get("address") or None,
        location=geo_from_doc(doc.get("location")),
        # no default: a record without capacity must not be scored
        capacity=doc.get("capacity"),
        food_preferences=doc.get("food_preferences") or [],
        verified=bool(doc.get("verified", False)),
        active=bool(doc.get("active", True)),
        total_donations_received=int(doc.get("total_donations_received") or 0),
        created_at=doc.get("created_at"),
        updated_at=doc.get("updated_at"),
    )
