# foodlink/core/indexes.py
from pymongo import ASCENDING, DESCENDING, GEOSPHERE

async def ensure_indexes(db):
    # NGOs
    await db.ngos.create_index("email", unique=True)
    await db.ngos.create_index("active")
    await db.ngos.create_index([("location", GEOSPHERE)])
    # Donations
    await db.donations.create_index("status")
    await db.donations.create_index("restaurant_id")
    await db.donations.create_index("claimed_by.ngo_id")
    await db.donations.create_index([("created_at", DESCENDING)])
    await db.donations.create_index([("pickup_location.coordinates", GEOSPHERE)])
    await db.donations.create_index([("claim_pending", ASCENDING)], sparse=True)
