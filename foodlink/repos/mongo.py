# foodlink/repos/mongo.py
from datetime import datetime, timezone
from typing import Any, Optional, List, Tuple

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from foodlink.core.errors import ConflictError, NotFoundError
from foodlink.core.states import CasResult
from foodlink.repos.documents import (
    donation_to_doc, donation_from_doc, ngo_to_doc, ngo_from_doc, ngo_changes_to_doc,
)
from foodlink.schemas import ClaimRecord, Donation, Organization

def _utcnow():
    return datetime.now(timezone.utc)

def _key(any_id: str) -> Any:
    """ObjectId when it parses as one, else the raw string (seeded ids)."""
    if isinstance(any_id, str) and ObjectId.is_valid(any_id):
        return ObjectId(any_id)
    return any_id

class MongoRepo:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    # NGOs
    async def create_ngo(self, ngo: Organization) -> Organization:
        doc = ngo_to_doc(ngo)
        if ngo.id:
            doc["_id"] = ngo.id
        try:
            res = await self.db.ngos.insert_one(doc)
        except DuplicateKeyError:
            raise ConflictError("NGO with this email already exists")
        doc["_id"] = res.inserted_id
        return ngo_from_doc(doc)

    async def find_ngo(self, ngo_id: str) -> Optional[Organization]:
        doc = await self.db.ngos.find_one({"_id": _key(ngo_id)})
        return ngo_from_doc(doc) if doc else None

    async def find_ngo_by_email(self, email: str) -> Optional[Organization]:
        doc = await self.db.ngos.find_one({"email": str(email).lower()})
        return ngo_from_doc(doc) if doc else None

    async def list_ngos(self, active: Optional[bool] = None, verified: Optional[bool] = None) -> List[Organization]:
        q = {}
        if active is not None:
            q["active"] = active
        if verified is not None:
            q["verified"] = verified
        return [ngo_from_doc(d) async for d in self.db.ngos.find(q)]

    async def find_active_ngos(self) -> List[Organization]:
        return await self.list_ngos(active=True)

    async def update_ngo(self, ngo_id: str, changes: dict) -> Optional[Organization]:
        body = {**ngo_changes_to_doc(changes), "updated_at": _utcnow()}
        doc = await self.db.ngos.find_one_and_update(
            {"_id": _key(ngo_id)}, {"$set": body}, return_document=ReturnDocument.AFTER,
        )
        return ngo_from_doc(doc) if doc else None

    async def delete_ngo(self, ngo_id: str) -> bool:
        res = await self.db.ngos.delete_one({"_id": _key(ngo_id)})
        return res.deleted_count > 0

    async def increment_history(self, ngo_id: str, donation_id: str) -> Organization:
        # credited_donations makes the increment idempotent per donation
        doc = await self.db.ngos.find_one_and_update(
            {"_id": _key(ngo_id), "credited_donations": {"$ne": donation_id}},
            {
                "$inc": {"total_donations_received": 1},
                "$addToSet": {"credited_donations": donation_id},
                "$set": {"updated_at": _utcnow()},
            },
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            doc = await self.db.ngos.find_one({"_id": _key(ngo_id)})
            if doc is None:
                raise NotFoundError("NGO not found")
        return ngo_from_doc(doc)

    async def release_credit_marker(self, ngo_id: str, donation_id: str) -> None:
        await self.db.ngos.update_one({"_id": _key(ngo_id)}, {"$pull": {"credited_donations": donation_id}})

    # Donations
    async def insert_donation(self, donation: Donation) -> Donation:
        doc = donation_to_doc(donation)
        res = await self.db.donations.insert_one(doc)
        doc["_id"] = res.inserted_id
        return donation_from_doc(doc)

    async def find_donation(self, donation_id: str) -> Optional[Donation]:
        doc = await self.db.donations.find_one({"_id": _key(donation_id)})
        return donation_from_doc(doc) if doc else None

    async def list_donations(self, status: Optional[str] = None, restaurant_id: Optional[str] = None,
                             ngo_id: Optional[str] = None) -> List[Donation]:
        q = {}
        if status:
            q["status"] = status
        if restaurant_id:
            q["restaurant_id"] = restaurant_id
        if ngo_id:
            q["claimed_by.ngo_id"] = ngo_id
        cur = self.db.donations.find(q).sort("created_at", -1)
        return [donation_from_doc(d) async for d in cur]

    async def compare_and_set_status(self, donation_id: str, expected: str, new: str,
                                     claim: Optional[ClaimRecord] = None) -> Tuple[CasResult, Optional[Donation]]:
        upd = {"$set": {"status": new, "updated_at": _utcnow()}}
        if new == "claimed":
            upd["$set"]["claimed_by"] = claim.model_dump() if claim else None
            upd["$set"]["claim_pending"] = True
        elif new == "available":
            upd["$set"]["claimed_by"] = None
            upd["$unset"] = {"claim_pending": ""}

        key = _key(donation_id)
        doc = await self.db.donations.find_one_and_update(
            {"_id": key, "status": expected}, upd, return_document=ReturnDocument.AFTER,
        )
        if doc is not None:
            return CasResult.SUCCESS, donation_from_doc(doc)
        if await self.db.donations.count_documents({"_id": key}, limit=1) == 0:
            return CasResult.NOT_FOUND, None
        return CasResult.CONFLICT, None

    async def clear_claim_pending(self, donation_id: str) -> Optional[Donation]:
        doc = await self.db.donations.find_one_and_update(
            {"_id": _key(donation_id)}, {"$unset": {"claim_pending": ""}},
            return_document=ReturnDocument.AFTER,
        )
        return donation_from_doc(doc) if doc else None

    async def list_pending_claims(self) -> List[Donation]:
        cur = self.db.donations.find({"claim_pending": True, "status": "claimed"})
        return [donation_from_doc(d) async for d in cur]

    async def delete_donation(self, donation_id: str) -> bool:
        res = await self.db.donations.delete_one({"_id": _key(donation_id)})
        return res.deleted_count > 0
