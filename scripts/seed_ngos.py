import asyncio
from datetime import datetime, timezone

from foodlink.core.db import get_client, get_db
from foodlink.core.security import hash_password
from foodlink.repos.mongo import MongoRepo
from foodlink.schemas import Address, GeoPoint, Organization

DEMO_PASSWORD = "changeme"

def demo_ngos():
    now = datetime.now(timezone.utc)
    pw = hash_password(DEMO_PASSWORD)
    rows = [
        ("ngo001", "Community Food Bank", "info@communityfoodbank.org", "+1-555-001-0001",
         "789 Charity Lane", "10003", (40.7684, -73.9657), 500,
         ["vegetables", "bakery", "cooked_food"], True, 25),
        ("ngo002", "Helping Hands Shelter", "contact@helpinghands.org", "+1-555-002-0002",
         "321 Giving Street", "10004", (40.7384, -73.9957), 300,
         ["cooked_food", "dairy", "beverages"], True, 18),
        ("ngo003", "Green Cares Foundation", "support@greencare.org", "+1-555-003-0003",
         "654 Eco Road", "10005", (40.7784, -73.9557), 200,
         ["fruits", "vegetables", "other"], False, 12),
    ]
    for nid, name, email, phone, street, zip_code, (lat, lng), cap, prefs, verified, received in rows:
        yield Organization(
            id=nid, name=name, email=email, password_hash=pw, phone=phone,
            address=Address(street=street, city="New York", state="NY", zip_code=zip_code, country="USA"),
            location=GeoPoint(lat=lat, lng=lng), capacity=cap, food_preferences=prefs,
            verified=verified, active=True, total_donations_received=received,
            created_at=now, updated_at=now,
        )

async def main():
    db = get_db()
    repo = MongoRepo(db)
    ngos = list(demo_ngos())

    # wipe demo rows if they exist
    await db.ngos.delete_many({"_id": {"$in": [n.id for n in ngos]}})
    for n in ngos:
        await repo.create_ngo(n)
    print("Seeded:", ", ".join(n.id for n in ngos), f"(password: {DEMO_PASSWORD})")
    get_client().close()

if __name__ == "__main__":
    asyncio.run(main())
