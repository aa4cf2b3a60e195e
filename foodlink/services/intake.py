# foodlink/services/intake.py
from datetime import datetime, timezone, timedelta
from typing import List, Optional

from foodlink.core.errors import ValidationError
from foodlink.core.states import INITIAL_STATE
from foodlink.schemas import Donation, DonationIn, FoodItem, TimeWindow

def _utcnow():
    return datetime.now(timezone.utc)

def as_utc(dt: datetime) -> datetime:
    # naive timestamps from clients are taken as UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)

def validate_pickup_window(window: TimeWindow, now: datetime, max_hours: float) -> TimeWindow:
    """
    Raise ValidationError naming the first broken rule:
    start not in the past, end after start, at most max_hours long.
    """
    start, end = as_utc(window.start), as_utc(window.end)
    if start < as_utc(now):
        raise ValidationError("Pickup window must not start in the past")
    if end <= start:
        raise ValidationError("Pickup window must end after it starts")
    if end - start > timedelta(hours=max_hours):
        raise ValidationError(f"Pickup window must not exceed {max_hours:g} hours")
    return TimeWindow(start=start, end=end)

def build_donation(body: DonationIn, max_window_hours: float, now: datetime = None,
                   tagged_items: Optional[List[FoodItem]] = None) -> Donation:
    """
    Validated, not-yet-stored donation (empty id).

    Items produced by the image tagger replace the submitted ones and
    mark the donation ai_verified; clients cannot set that flag.
    """
    now = now or _utcnow()
    items = list(tagged_items) if tagged_items else list(body.food_items)
    if not items:
        raise ValidationError("At least one food item is required")
    window = validate_pickup_window(body.pickup_time_window, now, max_window_hours)
    return Donation(
        id="",
        restaurant_id=body.restaurant_id,
        restaurant_name=body.restaurant_name,
        food_items=items,
        pickup_location=body.pickup_location,
        pickup_time_window=window,
        status=INITIAL_STATE,
        ai_verified=bool(tagged_items),
        created_at=now,
        updated_at=now,
    )
