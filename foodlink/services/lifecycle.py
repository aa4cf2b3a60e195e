# foodlink/services/lifecycle.py
import logging
from typing import Optional

from foodlink.core.errors import ValidationError, InvalidStatusError, ConflictError, NotFoundError
from foodlink.core.states import (
    DONATION_STATES, TERMINAL_STATES, CasResult,
    is_valid_state, can_transition, requires_claim,
)
from foodlink.schemas import ClaimRecord, Donation

log = logging.getLogger(__name__)

def check_transition(src: str, dst, claim: Optional[ClaimRecord]) -> None:
    """Pure validity check; raises without touching the store."""
    if not is_valid_state(dst):
        raise InvalidStatusError(f"Invalid status {dst!r}. Allowed: {DONATION_STATES}")
    if src in TERMINAL_STATES:
        raise ConflictError(f"Donation is already {src}; no further transitions")
    if not can_transition(src, dst):
        raise ConflictError(f"Transition {src} -> {dst} not allowed")
    if requires_claim(src, dst) and (claim is None or not claim.ngo_id):
        raise ValidationError("Claiming a donation requires ngo_id")

def _raise_for(outcome: CasResult, donation_id: str, src: str, dst: str) -> None:
    if outcome is CasResult.NOT_FOUND:
        raise NotFoundError("Donation not found")
    if outcome is CasResult.CONFLICT:
        log.warning("donation %s: %s -> %s lost to a concurrent update", donation_id, src, dst)
        raise ConflictError("Donation status changed concurrently. Refresh and retry.")

async def _credit_claim(repo, donation: Donation) -> Donation:
    """
    Second half of the claim saga: credit the NGO once for this donation,
    then clear the pending marker. A vanished NGO reverts the claim.
    """
    claim = donation.claimed_by
    try:
        await repo.increment_history(claim.ngo_id, donation.id)
    except NotFoundError:
        log.warning("donation %s: NGO %s vanished mid-claim, reverting", donation.id, claim.ngo_id)
        await repo.compare_and_set_status(donation.id, "claimed", "available")
        raise
    cleared = await repo.clear_claim_pending(donation.id)
    return cleared or donation

async def settle_pending_claim(repo, donation: Donation) -> Donation:
    """Finish the NGO credit of a claim left pending; otherwise a no-op."""
    if not (donation.claim_pending and donation.status == "claimed"):
        return donation
    log.info("donation %s: settling pending claim credit", donation.id)
    try:
        return await _credit_claim(repo, donation)
    except NotFoundError:
        return await repo.find_donation(donation.id) or donation

async def _claim(repo, donation: Donation, claim: ClaimRecord) -> Donation:
    ngo = await repo.find_ngo(claim.ngo_id)
    if ngo is None:
        raise NotFoundError("NGO not found")
    if not claim.ngo_name:
        claim = ClaimRecord(ngo_id=claim.ngo_id, ngo_name=ngo.name)

    outcome, claimed = await repo.compare_and_set_status(donation.id, donation.status, "claimed", claim)
    _raise_for(outcome, donation.id, donation.status, "claimed")
    updated = await _credit_claim(repo, claimed)
    log.info("donation %s claimed by NGO %s", donation.id, claim.ngo_id)
    return updated

async def transition(repo, donation_id: str, requested_status, claim: Optional[ClaimRecord] = None) -> Donation:
    """
    Move a donation to requested_status.

    Raises InvalidStatusError / ValidationError for bad input,
    NotFoundError for a missing donation or NGO, ConflictError for a
    disallowed transition or a lost race. Never retries the write, but
    first settles any NGO credit an earlier claim left pending.
    """
    if not is_valid_state(requested_status):
        raise InvalidStatusError(f"Invalid status {requested_status!r}. Allowed: {DONATION_STATES}")

    current = await repo.find_donation(donation_id)
    if current is None:
        raise NotFoundError("Donation not found")

    current = await settle_pending_claim(repo, current)
    src = current.status
    check_transition(src, requested_status, claim)
    if requires_claim(src, requested_status):
        return await _claim(repo, current, claim)

    outcome, updated = await repo.compare_and_set_status(current.id, src, requested_status)
    _raise_for(outcome, current.id, src, requested_status)
    if requested_status in TERMINAL_STATES and updated.claimed_by:
        # credit markers are only needed while the claim can still be settled
        await repo.release_credit_marker(updated.claimed_by.ngo_id, current.id)
    log.info("donation %s: %s -> %s", current.id, src, requested_status)
    return updated

async def reconcile_pending_claims(repo) -> int:
    """
    Finish claims interrupted between the status write and the NGO credit.
    Safe to run repeatedly; returns how many were settled.
    """
    settled = 0
    for donation in await repo.list_pending_claims():
        try:
            await _credit_claim(repo, donation)
        except NotFoundError:
            continue
        settled += 1
    if settled:
        log.info("reconciled %d pending claims", settled)
    return settled
