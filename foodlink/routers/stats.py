from fastapi import APIRouter, Depends

from foodlink.deps import get_repo
from foodlink.schemas import NGOStatsOut, StatsOverview
from foodlink.services.stats import compute_overview, compute_ngo_stats

router = APIRouter(prefix="/api/stats", tags=["stats"])

@router.get("", response_model=StatsOverview)
async def overview(repo=Depends(get_repo)):
    return await compute_overview(repo)

@router.get("/ngo/{ngo_id}", response_model=NGOStatsOut)
async def ngo_stats(ngo_id: str, repo=Depends(get_repo)):
    return await compute_ngo_stats(repo, ngo_id)
