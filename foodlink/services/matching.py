# foodlink/services/matching.py
import logging
from math import floor
from typing import Iterable, List, Optional

from foodlink.core.errors import OracleContractError
from foodlink.schemas import Donation, Organization, MatchCandidate
from foodlink.services.distance import locate

log = logging.getLogger(__name__)

PROXIMITY_MAX = 100.0
PROXIMITY_FALLOFF_PER_KM = 10.0
PREFERENCE_POINTS = 20
CAPACITY_DIVISOR = 10.0
HISTORY_DIVISOR = 5.0

def accepts_any(ngo: Organization, categories: set) -> bool:
    prefs = set(ngo.food_preferences)
    if not prefs:
        return True  # no preferences: takes everything
    return bool(prefs & categories)

def match(donation: Donation, candidates: Iterable[Organization], max_distance_km: float) -> List[MatchCandidate]:
    """
    Located candidates whose preferences overlap the donation's categories.
    Pure filter; order is the locator's (closest first).
    """
    nearby = locate(donation.pickup_location.point, candidates, max_distance_km)
    wanted = donation.categories()
    return [c for c in nearby if accepts_any(c, wanted)]

def _round_half_up(x: float) -> int:
    return int(floor(x + 0.5))

def compute_priority(donation: Donation, cand: MatchCandidate) -> int:
    score = max(0.0, PROXIMITY_MAX - cand.distance * PROXIMITY_FALLOFF_PER_KM)

    # empty preferences earn nothing here even though match() lets them through
    prefs = set(cand.food_preferences)
    overlapping = sum(1 for item in donation.food_items if item.category in prefs)
    score += overlapping * PREFERENCE_POINTS

    score += cand.capacity / CAPACITY_DIVISOR
    score += cand.total_donations_received / HISTORY_DIVISOR
    return _round_half_up(score)

def prioritize(donation: Donation, candidates: Iterable[Organization], max_distance_km: float) -> List[MatchCandidate]:
    """
    Matched candidates with priority_score set, best first.
    Equal scores keep the closest-first order from match().
    """
    ranked = [
        c.model_copy(update={"priority_score": compute_priority(donation, c)})
        for c in match(donation, candidates, max_distance_km)
    ]
    ranked.sort(key=lambda c: c.priority_score, reverse=True)
    return ranked

def recommend(donation: Donation, candidates: Iterable[Organization], oracle,
              max_distance_km: float) -> Optional[MatchCandidate]:
    """
    Single best candidate. Trivial for 0 or 1 matches; otherwise the
    oracle picks. Raises OracleContractError if the oracle answers with
    an organization that was not offered.
    """
    matched = match(donation, candidates, max_distance_km)
    if not matched:
        return None
    if len(matched) == 1:
        return matched[0]

    log.debug("deferring %d candidates for donation %s to oracle", len(matched), donation.id)
    picked = oracle.rank(donation, matched)
    if picked is None:
        return None

    picked_id = getattr(picked, "id", None)
    for c in matched:
        if c.id == picked_id:
            return c
    raise OracleContractError(f"Oracle returned {picked_id!r}, not one of {len(matched)} candidates")
