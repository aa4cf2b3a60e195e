from datetime import datetime, timedelta, timezone

from foodlink.schemas import Donation, FoodItem, GeoPoint, Organization, PickupLocation, TimeWindow

ORIGIN = GeoPoint(lat=40.7684, lng=-73.9657)
KM_PER_DEG_LAT = 6371.0 * 3.141592653589793 / 180.0

def north_of_origin(km: float) -> GeoPoint:
    """Point km kilometres due north of ORIGIN."""
    return GeoPoint(lat=ORIGIN.lat + km / KM_PER_DEG_LAT, lng=ORIGIN.lng)

def item(category="vegetables", quantity=5, unit="kg", name=None) -> FoodItem:
    return FoodItem(
        name=name or category.title(),
        quantity=quantity,
        unit=unit,
        category=category,
        expiry_hours=24,
        description="test item",
    )

def make_ngo(id="ngo-a", *, km=0.0, prefs=("vegetables",), capacity=100, history=0,
             active=True, verified=False, located=True, name=None) -> Organization:
    return Organization(
        id=id,
        name=name or f"NGO {id}",
        email=f"{id}@example.com",
        phone="+1-555-000-0000",
        location=north_of_origin(km) if located else None,
        capacity=capacity,
        food_preferences=list(prefs),
        verified=verified,
        active=active,
        total_donations_received=history,
    )

def make_donation(items=None, id="don-1", at: GeoPoint = ORIGIN, status="available") -> Donation:
    now = datetime.now(timezone.utc)
    return Donation(
        id=id,
        restaurant_id="rest-1",
        restaurant_name="Test Bistro",
        food_items=items if items is not None else [item()],
        pickup_location=PickupLocation(lat=at.lat, lng=at.lng, address="1 Test Plaza"),
        pickup_time_window=TimeWindow(start=now + timedelta(hours=1), end=now + timedelta(hours=3)),
        status=status,
        created_at=now,
        updated_at=now,
    )

def donation_payload(items=None, start_in_h=1.0, length_h=2.0, **overrides) -> dict:
    now = datetime.now(timezone.utc)
    start = now + timedelta(hours=start_in_h)
    body = {
        "restaurant_id": "rest-1",
        "restaurant_name": "Test Bistro",
        "food_items": items if items is not None else [item().model_dump()],
        "pickup_location": {"lat": ORIGIN.lat, "lng": ORIGIN.lng, "address": "1 Test Plaza"},
        "pickup_time_window": {
            "start": start.isoformat(),
            "end": (start + timedelta(hours=length_h)).isoformat(),
        },
    }
    body.update(overrides)
    return body
