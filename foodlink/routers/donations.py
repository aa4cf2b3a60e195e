# foodlink/routers/donations.py
import logging
from typing import List, Optional

import httpx
import pydantic
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.exceptions import RequestValidationError
from starlette.concurrency import run_in_threadpool

from foodlink.core.config import settings
from foodlink.core.errors import OracleContractError
from foodlink.deps import get_repo, get_oracle, get_tagger
from foodlink.schemas import (
    ClaimRecord, Donation, DonationIn, DonationCreatedOut, DonationDetailOut,
    FoodItem, MatchCandidate, RecommendationOut, StatusUpdateIn,
)
from foodlink.services.intake import build_donation
from foodlink.services.lifecycle import settle_pending_claim, transition
from foodlink.services.matching import prioritize, recommend

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/donations", tags=["donations"])

async def _load(repo, donation_id: str) -> Donation:
    donation = await repo.find_donation(donation_id)
    if not donation:
        raise HTTPException(status_code=404, detail="Donation not found")
    return donation

async def _recommend(donation: Donation, ngos, oracle) -> Optional[RecommendationOut]:
    # oracle may block on the network, keep it off the event loop
    try:
        best = await run_in_threadpool(recommend, donation, ngos, oracle, settings.match_radius_km)
    except OracleContractError as ex:
        log.warning("oracle contract violation for donation %s: %s", donation.id, ex)
        return None
    except httpx.HTTPError as ex:
        log.warning("oracle unavailable for donation %s: %s", donation.id, ex)
        return None
    if best is None:
        return None
    return RecommendationOut(id=best.id, name=best.name, distance=best.distance)

async def _store_and_match(body: DonationIn, repo, oracle, tagged_items=None) -> dict:
    donation = await repo.insert_donation(
        build_donation(body, settings.max_pickup_window_hours, tagged_items=tagged_items)
    )
    log.info("donation %s created by restaurant %s", donation.id, donation.restaurant_id)

    ngos = await repo.find_active_ngos()
    ranked = prioritize(donation, ngos, settings.match_radius_km)
    return {
        "donation": donation,
        "matching_ngos": ranked[:settings.top_matches],
        "recommended_ngo": await _recommend(donation, ngos, oracle),
    }

@router.post("", status_code=status.HTTP_201_CREATED, response_model=DonationCreatedOut)
async def create_donation(body: DonationIn, repo=Depends(get_repo), oracle=Depends(get_oracle)):
    return await _store_and_match(body, repo, oracle)

@router.post("/upload", status_code=status.HTTP_201_CREATED, response_model=DonationCreatedOut)
async def create_donation_with_images(
    donation: str = Form(...),
    images: Optional[List[UploadFile]] = File(None),
    repo=Depends(get_repo),
    oracle=Depends(get_oracle),
    tagger=Depends(get_tagger),
):
    """
    Multipart create: `donation` is the JSON body of POST /api/donations,
    each file in `images` is run through the tagger and becomes a food item.
    """
    try:
        body = DonationIn.model_validate_json(donation)
    except pydantic.ValidationError as ex:
        raise RequestValidationError(ex.errors(include_url=False))
    tagged = [tagger.tag(await image.read()) for image in images or []]
    return await _store_and_match(body, repo, oracle, tagged_items=tagged)

@router.post("/analyze", response_model=FoodItem)
async def analyze_image(image: UploadFile = File(...), tagger=Depends(get_tagger)):
    data = await image.read()
    return tagger.tag(data)

@router.get("", response_model=List[Donation])
async def list_donations(
    status_q: Optional[str] = Query(None, alias="status"),
    restaurant_id: Optional[str] = None,
    ngo_id: Optional[str] = None,
    repo=Depends(get_repo),
):
    return await repo.list_donations(status=status_q, restaurant_id=restaurant_id, ngo_id=ngo_id)

@router.get("/{donation_id}", response_model=DonationDetailOut)
async def get_donation(donation_id: str, repo=Depends(get_repo)):
    donation = await settle_pending_claim(repo, await _load(repo, donation_id))
    ngos = await repo.find_active_ngos()
    ranked = prioritize(donation, ngos, settings.match_radius_km)
    return {"donation": donation, "matching_ngos": ranked[:settings.top_matches]}

@router.get("/{donation_id}/matches", response_model=List[MatchCandidate])
async def list_matches(
    donation_id: str,
    radius_km: Optional[float] = Query(None, gt=0),
    repo=Depends(get_repo),
):
    donation = await _load(repo, donation_id)
    radius = radius_km if radius_km is not None else settings.match_radius_km
    return prioritize(donation, await repo.find_active_ngos(), radius)

@router.get("/{donation_id}/recommendation", response_model=Optional[RecommendationOut])
async def get_recommendation(donation_id: str, repo=Depends(get_repo), oracle=Depends(get_oracle)):
    donation = await _load(repo, donation_id)
    return await _recommend(donation, await repo.find_active_ngos(), oracle)

@router.put("/{donation_id}/status", response_model=Donation)
async def update_status(donation_id: str, body: StatusUpdateIn, repo=Depends(get_repo)):
    claim = None
    if body.ngo_id:
        claim = ClaimRecord(ngo_id=body.ngo_id, ngo_name=body.ngo_name or "")
    return await transition(repo, donation_id, body.status, claim)

@router.delete("/{donation_id}")
async def delete_donation(donation_id: str, repo=Depends(get_repo)):
    if not await repo.delete_donation(donation_id):
        raise HTTPException(status_code=404, detail="Donation not found")
    log.info("donation %s removed", donation_id)
    return {"ok": True}
