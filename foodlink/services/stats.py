# foodlink/services/stats.py
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Iterable, List

from foodlink.core.errors import NotFoundError
from foodlink.services.units import to_kg

RECENT_DAYS = 30

def _utcnow():
    return datetime.now(timezone.utc)

def _is_recent(d, since: datetime) -> bool:
    return d.created_at is not None and d.created_at >= since

def _kg(donations: Iterable) -> int:
    return round(sum(to_kg(i.quantity, i.unit) for d in donations for i in d.food_items))

def _by_category(donations: Iterable) -> List[dict]:
    counts = Counter(i.category for d in donations for i in d.food_items)
    return [{"category": c, "count": n} for c, n in counts.most_common()]

async def compute_overview(repo, now: datetime = None) -> dict:
    """
    Platform-wide numbers, matching the StatsOverview schema.
    Repo must implement list_donations() and list_ngos().
    """
    now = now or _utcnow()
    since = now - timedelta(days=RECENT_DAYS)
    donations = await repo.list_donations()
    ngos = await repo.list_ngos()

    by_status = Counter(d.status for d in donations)
    recent = [d for d in donations if _is_recent(d, since)]

    return {
        "donations": {
            "total": len(donations),
            "available": by_status["available"],
            "claimed": by_status["claimed"],
            "picked_up": by_status["picked_up"],
            "expired": by_status["expired"],
            "last_30_days": len(recent),
        },
        "ngos": {
            "total": len(ngos),
            "verified": sum(1 for n in ngos if n.verified),
            "active": sum(1 for n in ngos if n.active),
        },
        "impact": {
            "total_food_items": sum(len(d.food_items) for d in donations),
            "estimated_food_saved_kg": _kg(recent),
            "donations_by_category": _by_category(donations),
        },
    }

async def compute_ngo_stats(repo, ngo_id: str, now: datetime = None) -> dict:
    ngo = await repo.find_ngo(ngo_id)
    if ngo is None:
        raise NotFoundError("NGO not found")

    now = now or _utcnow()
    since = now - timedelta(days=RECENT_DAYS)
    received = await repo.list_donations(ngo_id=ngo_id)
    recent = [d for d in received if _is_recent(d, since)]

    return {
        "ngo_id": ngo.id,
        "ngo_name": ngo.name,
        "total_received": len(received),
        "recent_30_days": len(recent),
        "estimated_food_received_kg": _kg(recent),
        "donations_by_category": _by_category(received),
    }
