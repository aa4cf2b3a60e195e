# foodlink/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from foodlink.core.config import settings
from foodlink.core.errors import (
    FoodLinkError, ValidationError, ConflictError, NotFoundError, OracleContractError,
)
from foodlink.deps import get_repo
from foodlink.middleware.audit import AuditMiddleware
from foodlink.routers import donations as donations_router
from foodlink.routers import ngos as ngos_router
from foodlink.routers import stats as stats_router
from foodlink.services.lifecycle import reconcile_pending_claims

logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
log = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.use_mongo:
        from foodlink.core.db import get_db
        from foodlink.core.indexes import ensure_indexes
        await ensure_indexes(get_db())

    # honor test overrides of the store
    repo = app.dependency_overrides.get(get_repo, get_repo)()
    await reconcile_pending_claims(repo)

    yield

    if settings.use_mongo:
        from foodlink.core.db import get_client
        get_client().close()


app = FastAPI(lifespan=lifespan, title="FoodLink API")

app.add_middleware(AuditMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------- Domain errors -> HTTP ----------------
_STATUS_FOR = [
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (OracleContractError, 502),
]

@app.exception_handler(FoodLinkError)
async def _domain_error(request: Request, exc: FoodLinkError):
    code = next((c for cls, c in _STATUS_FOR if isinstance(exc, cls)), 500)
    return JSONResponse({"detail": str(exc)}, status_code=code)

# ---------------- Include routers ----------------
app.include_router(donations_router.router)   # /api/donations
app.include_router(ngos_router.router)        # /api/ngos
app.include_router(stats_router.router)       # /api/stats

# Health
@app.get("/health")
def health():
    return {"ok": True}
