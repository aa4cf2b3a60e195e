from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer

from foodlink.core.config import settings
from foodlink.deps import get_repo

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/ngos/login")


def hash_password(password: str) -> str:
    return pwd_context.hash(password or "")

def verify_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    try:
        return pwd_context.verify(password or "", hashed)
    except ValueError:
        # unrecognized/legacy hash format
        return False

def create_token(payload: Dict[str, Any], minutes: int = None) -> str:
    payload = dict(payload)
    ttl = settings.access_ttl_min if minutes is None else minutes
    payload["exp"] = datetime.now(timezone.utc) + timedelta(minutes=ttl)
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_alg)

def decode_token(token: str):
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_alg])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")

async def get_current_ngo(token: str = Depends(oauth2_scheme), repo=Depends(get_repo)):
    data = decode_token(token)
    ngo = await repo.find_ngo(data.get("sub", ""))
    if not ngo:
        raise HTTPException(status_code=401, detail="NGO not found")
    return ngo

def ensure_self(ngo_id: str, current) -> None:
    if current.id != ngo_id:
        raise HTTPException(status_code=403, detail="Cannot act on another NGO")
