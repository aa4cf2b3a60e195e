# foodlink/repos/inmemory.py
import copy
import threading
import uuid
from datetime import datetime, timezone
from typing import Optional, List, Dict, Tuple

from foodlink.core.errors import ConflictError, NotFoundError
from foodlink.core.states import CasResult
from foodlink.repos.documents import (
    donation_to_doc, donation_from_doc, ngo_to_doc, ngo_from_doc, ngo_changes_to_doc,
)
from foodlink.schemas import ClaimRecord, Donation, Organization

def _id() -> str:
    return uuid.uuid4().hex

def _utcnow():
    return datetime.now(timezone.utc)

class InMemoryRepo:
    """
    Dict-backed store with the same surface as MongoRepo.
    Documents go through the same converters; a lock makes
    check-then-write on a single record atomic.
    """
    def __init__(self):
        self.ngos: Dict[str, dict] = {}
        self.ngos_by_email: Dict[str, str] = {}
        self.donations: Dict[str, dict] = {}
        self._lock = threading.Lock()

    # NGOs
    async def create_ngo(self, ngo: Organization) -> Organization:
        doc = ngo_to_doc(ngo)
        with self._lock:
            if doc["email"] in self.ngos_by_email:
                raise ConflictError("NGO with this email already exists")
            nid = ngo.id or _id()
            if nid in self.ngos:
                raise ConflictError("NGO id already exists")
            doc["_id"] = nid
            self.ngos[nid] = doc
            self.ngos_by_email[doc["email"]] = nid
        return ngo_from_doc(copy.deepcopy(doc))

    async def find_ngo(self, ngo_id: str) -> Optional[Organization]:
        doc = self.ngos.get(ngo_id)
        return ngo_from_doc(copy.deepcopy(doc)) if doc else None

    async def find_ngo_by_email(self, email: str) -> Optional[Organization]:
        nid = self.ngos_by_email.get(str(email).lower())
        return await self.find_ngo(nid) if nid else None

    async def list_ngos(self, active: Optional[bool] = None, verified: Optional[bool] = None) -> List[Organization]:
        out = []
        for doc in list(self.ngos.values()):
            if active is not None and doc["active"] != active:
                continue
            if verified is not None and doc["verified"] != verified:
                continue
            out.append(ngo_from_doc(copy.deepcopy(doc)))
        return out

    async def find_active_ngos(self) -> List[Organization]:
        return await self.list_ngos(active=True)

    async def update_ngo(self, ngo_id: str, changes: dict) -> Optional[Organization]:
        with self._lock:
            doc = self.ngos.get(ngo_id)
            if doc is None:
                return None
            doc.update(ngo_changes_to_doc(changes))
            doc["updated_at"] = _utcnow()
        return await self.find_ngo(ngo_id)

    async def delete_ngo(self, ngo_id: str) -> bool:
        with self._lock:
            doc = self.ngos.pop(ngo_id, None)
            if doc is None:
                return False
            self.ngos_by_email.pop(doc["email"], None)
        return True

    async def increment_history(self, ngo_id: str, donation_id: str) -> Organization:
        with self._lock:
            doc = self.ngos.get(ngo_id)
            if doc is None:
                raise NotFoundError("NGO not found")
            if donation_id not in doc["credited_donations"]:
                doc["credited_donations"].append(donation_id)
                doc["total_donations_received"] += 1
                doc["updated_at"] = _utcnow()
        return await self.find_ngo(ngo_id)

    async def release_credit_marker(self, ngo_id: str, donation_id: str) -> None:
        with self._lock:
            doc = self.ngos.get(ngo_id)
            if doc is not None and donation_id in doc["credited_donations"]:
                doc["credited_donations"].remove(donation_id)

    # Donations
    async def insert_donation(self, donation: Donation) -> Donation:
        doc = donation_to_doc(donation)
        did = _id()
        doc["_id"] = did
        with self._lock:
            self.donations[did] = doc
        return donation_from_doc(copy.deepcopy(doc))

    async def find_donation(self, donation_id: str) -> Optional[Donation]:
        doc = self.donations.get(donation_id)
        return donation_from_doc(copy.deepcopy(doc)) if doc else None

    async def list_donations(self, status: Optional[str] = None, restaurant_id: Optional[str] = None,
                             ngo_id: Optional[str] = None) -> List[Donation]:
        out = []
        for doc in list(self.donations.values()):
            if status is not None and doc["status"] != status:
                continue
            if restaurant_id is not None and doc["restaurant_id"] != restaurant_id:
                continue
            if ngo_id is not None and (doc.get("claimed_by") or {}).get("ngo_id") != ngo_id:
                continue
            out.append(donation_from_doc(copy.deepcopy(doc)))
        out.sort(key=lambda d: d.created_at or datetime.min.replace(tzinfo=timezone.utc), reverse=True)
        return out

    async def compare_and_set_status(self, donation_id: str, expected: str, new: str,
                                     claim: Optional[ClaimRecord] = None) -> Tuple[CasResult, Optional[Donation]]:
        with self._lock:
            doc = self.donations.get(donation_id)
            if doc is None:
                return CasResult.NOT_FOUND, None
            if doc["status"] != expected:
                return CasResult.CONFLICT, None
            doc["status"] = new
            doc["updated_at"] = _utcnow()
            if new == "claimed":
                doc["claimed_by"] = claim.model_dump() if claim else None
                doc["claim_pending"] = True
            elif new == "available":
                doc["claimed_by"] = None
                doc.pop("claim_pending", None)
            snapshot = copy.deepcopy(doc)
        return CasResult.SUCCESS, donation_from_doc(snapshot)

    async def clear_claim_pending(self, donation_id: str) -> Optional[Donation]:
        with self._lock:
            doc = self.donations.get(donation_id)
            if doc is None:
                return None
            doc.pop("claim_pending", None)
            snapshot = copy.deepcopy(doc)
        return donation_from_doc(snapshot)

    async def list_pending_claims(self) -> List[Donation]:
        return [
            donation_from_doc(copy.deepcopy(d))
            for d in list(self.donations.values())
            if d.get("claim_pending") and d["status"] == "claimed"
        ]

    async def delete_donation(self, donation_id: str) -> bool:
        with self._lock:
            return self.donations.pop(donation_id, None) is not None
