# foodlink/routers/ngos.py
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from foodlink.core.security import (
    hash_password, verify_password, create_token, get_current_ngo, ensure_self,
)
from foodlink.deps import get_repo
from foodlink.schemas import NGOAuthOut, NGOLoginIn, NGORegisterIn, NGOUpdateIn, Organization

router = APIRouter(prefix="/api/ngos", tags=["ngos"])

def _utcnow():
    return datetime.now(timezone.utc)

def _auth_out(ngo: Organization) -> dict:
    token = create_token({"sub": ngo.id, "email": str(ngo.email)})
    return {"access_token": token, "token_type": "bearer", "ngo": ngo}

@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=NGOAuthOut)
async def register(body: NGORegisterIn, repo=Depends(get_repo)):
    if await repo.find_ngo_by_email(body.email):
        raise HTTPException(status_code=409, detail="NGO with this email already exists")

    now = _utcnow()
    ngo = await repo.create_ngo(Organization(
        id="",
        name=body.name,
        email=body.email,
        password_hash=hash_password(body.password),
        phone=body.phone,
        address=body.address,
        location=body.location,
        capacity=body.capacity,
        food_preferences=body.food_preferences,
        created_at=now,
        updated_at=now,
    ))
    return _auth_out(ngo)

@router.post("/login", response_model=NGOAuthOut)
async def login(body: NGOLoginIn, repo=Depends(get_repo)):
    ngo = await repo.find_ngo_by_email(body.email)
    if not ngo or not verify_password(body.password, ngo.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return _auth_out(ngo)

@router.get("", response_model=List[Organization])
async def list_ngos(active: Optional[bool] = None, verified: Optional[bool] = None, repo=Depends(get_repo)):
    return await repo.list_ngos(active=active, verified=verified)

@router.get("/{ngo_id}", response_model=Organization)
async def get_ngo(ngo_id: str, repo=Depends(get_repo)):
    ngo = await repo.find_ngo(ngo_id)
    if not ngo:
        raise HTTPException(status_code=404, detail="NGO not found")
    return ngo

@router.put("/{ngo_id}", response_model=Organization)
async def update_ngo(ngo_id: str, body: NGOUpdateIn, current=Depends(get_current_ngo), repo=Depends(get_repo)):
    ensure_self(ngo_id, current)
    changes = body.model_dump(exclude_unset=True)
    if not changes:
        return current
    ngo = await repo.update_ngo(ngo_id, changes)
    if not ngo:
        raise HTTPException(status_code=404, detail="NGO not found")
    return ngo

@router.delete("/{ngo_id}")
async def delete_ngo(ngo_id: str, current=Depends(get_current_ngo), repo=Depends(get_repo)):
    ensure_self(ngo_id, current)
    if not await repo.delete_ngo(ngo_id):
        raise HTTPException(status_code=404, detail="NGO not found")
    return {"ok": True}
