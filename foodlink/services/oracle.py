# foodlink/services/oracle.py
from __future__ import annotations

import logging
from typing import List, NamedTuple, Optional

import httpx

from foodlink.core.errors import OracleContractError
from foodlink.schemas import Donation, FoodItem, MatchCandidate

log = logging.getLogger(__name__)

class UnlistedPick(NamedTuple):
    """What the remote ranker named when it isn't one of our candidates."""
    id: Optional[str]

def describe_item(item: FoodItem) -> str:
    return f"{item.name}, Quantity: {item.quantity} {item.unit}, Category: {item.category}"

class FirstCandidateOracle:
    """
    Offline ranker: trusts the order it was given (closest first).
    """
    def rank(self, donation: Donation, candidates: List[MatchCandidate]):
        return candidates[0] if candidates else None

class HttpRankingOracle:
    """
    Asks a remote ranking service to choose among matched NGOs.

    POST {url} with the donation summary and candidate list; the service
    answers {"ngo_id": "<id>"} or {"ngo_id": null}.
    Any other reply body raises OracleContractError.
    """
    def __init__(self, url: str, timeout: float = 10.0, client: Optional[httpx.Client] = None):
        self.url = url
        self._client = client or httpx.Client(timeout=timeout)

    def _payload(self, donation: Donation, candidates: List[MatchCandidate]) -> dict:
        return {
            "donation": {
                "id": donation.id,
                "items": [describe_item(i) for i in donation.food_items],
                "categories": sorted(donation.categories()),
                "address": donation.pickup_location.address,
            },
            "candidates": [
                {
                    "id": c.id,
                    "name": c.name,
                    "distance_km": c.distance,
                    "capacity": c.capacity,
                    "food_preferences": list(c.food_preferences),
                    "total_donations_received": c.total_donations_received,
                }
                for c in candidates
            ],
        }

    def rank(self, donation: Donation, candidates: List[MatchCandidate]):
        r = self._client.post(self.url, json=self._payload(donation, candidates))
        r.raise_for_status()
        try:
            reply = r.json()
        except ValueError as ex:
            raise OracleContractError(f"Oracle reply is not JSON: {ex}") from ex
        if not isinstance(reply, dict):
            raise OracleContractError(f"Oracle reply must be an object, got {type(reply).__name__}")

        ngo_id = reply.get("ngo_id")
        if ngo_id is None:
            log.info("oracle declined to pick for donation %s", donation.id)
            return None
        for c in candidates:
            if c.id == ngo_id:
                return c
        return UnlistedPick(ngo_id)

def build_oracle(url: str, timeout: float):
    if url:
        return HttpRankingOracle(url, timeout=timeout)
    return FirstCandidateOracle()
