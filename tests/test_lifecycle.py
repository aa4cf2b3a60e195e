import asyncio

import pytest

from foodlink.core.errors import ConflictError, InvalidStatusError, NotFoundError, ValidationError
from foodlink.core.states import CasResult, next_states
from foodlink.repos.inmemory import InMemoryRepo
from foodlink.schemas import ClaimRecord
from foodlink.services.lifecycle import reconcile_pending_claims, settle_pending_claim, transition

from factories import make_donation, make_ngo

pytestmark = pytest.mark.anyio

class InterleavingRepo(InMemoryRepo):
    """Yields after reads so concurrent claimants both see 'available'."""
    async def find_donation(self, donation_id):
        d = await super().find_donation(donation_id)
        await asyncio.sleep(0)
        return d

class CrashingCreditRepo(InMemoryRepo):
    """NGO credit fails the first `failures` times."""
    def __init__(self, failures=1, error=RuntimeError):
        super().__init__()
        self.failures = failures
        self.error = error

    async def increment_history(self, ngo_id, donation_id):
        if self.failures:
            self.failures -= 1
            raise self.error("credit write failed")
        return await super().increment_history(ngo_id, donation_id)

async def _setup(repo, *ngo_ids):
    for nid in ngo_ids or ("A",):
        await repo.create_ngo(make_ngo(nid, history=3))
    donation = await repo.insert_donation(make_donation())
    return donation

def _claim(ngo_id="A", name="NGO A"):
    return ClaimRecord(ngo_id=ngo_id, ngo_name=name)

async def _history(repo, ngo_id):
    return (await repo.find_ngo(ngo_id)).total_donations_received

# --------------------------
# reachability
# --------------------------
def test_reachable_states():
    assert sorted(next_states("available")) == ["claimed", "expired"]
    assert sorted(next_states("claimed")) == ["expired", "picked_up"]
    assert next_states("picked_up") == []
    assert next_states("expired") == []

async def test_claim_then_pickup(repo):
    d = await _setup(repo)

    claimed = await transition(repo, d.id, "claimed", _claim())
    assert claimed.status == "claimed"
    assert claimed.claimed_by == _claim()
    assert await _history(repo, "A") == 4
    assert "claim_pending" not in repo.donations[d.id]

    picked = await transition(repo, d.id, "picked_up")
    assert picked.status == "picked_up"
    assert picked.claimed_by == _claim()
    assert await _history(repo, "A") == 4

@pytest.mark.parametrize("path", [["expired"], ["claimed", "expired"]])
async def test_expiry_from_pre_terminal_states(repo, path):
    d = await _setup(repo)
    for status in path:
        d = await transition(repo, d.id, status, _claim() if status == "claimed" else None)
    assert d.status == "expired"

@pytest.mark.parametrize("terminal_path", [["expired"], ["claimed", "picked_up"]])
@pytest.mark.parametrize("target", ["available", "claimed", "picked_up", "expired"])
async def test_terminal_states_reject_everything(repo, terminal_path, target):
    d = await _setup(repo)
    for status in terminal_path:
        await transition(repo, d.id, status, _claim() if status == "claimed" else None)

    with pytest.raises(ConflictError):
        await transition(repo, d.id, target, _claim())

async def test_available_cannot_jump_to_picked_up(repo):
    d = await _setup(repo)
    with pytest.raises(ConflictError):
        await transition(repo, d.id, "picked_up")
    assert (await repo.find_donation(d.id)).status == "available"

async def test_second_claim_conflicts_and_does_not_credit(repo):
    d = await _setup(repo, "A", "B")
    await transition(repo, d.id, "claimed", _claim("A"))

    with pytest.raises(ConflictError):
        await transition(repo, d.id, "claimed", _claim("B", "NGO B"))

    current = await repo.find_donation(d.id)
    assert current.claimed_by.ngo_id == "A"
    assert await _history(repo, "B") == 3

# --------------------------
# validation
# --------------------------
@pytest.mark.parametrize("bad", ["delivered", "", "AVAILABLE", None])
async def test_unknown_status_rejected_without_mutation(repo, bad):
    d = await _setup(repo)
    with pytest.raises(InvalidStatusError):
        await transition(repo, d.id, bad, _claim())
    assert (await repo.find_donation(d.id)).status == "available"
    assert await _history(repo, "A") == 3

async def test_invalid_status_is_a_validation_error(repo):
    d = await _setup(repo)
    with pytest.raises(ValidationError):
        await transition(repo, d.id, "lost")

async def test_claim_requires_claim_record(repo):
    d = await _setup(repo)
    with pytest.raises(ValidationError):
        await transition(repo, d.id, "claimed")
    assert (await repo.find_donation(d.id)).status == "available"

async def test_claim_fills_in_ngo_name(repo):
    d = await _setup(repo)
    claimed = await transition(repo, d.id, "claimed", ClaimRecord(ngo_id="A", ngo_name=""))
    assert claimed.claimed_by.ngo_name == "NGO A"

async def test_missing_donation(repo):
    with pytest.raises(NotFoundError):
        await transition(repo, "nope", "expired")

async def test_claim_by_unknown_ngo(repo):
    d = await _setup(repo)
    with pytest.raises(NotFoundError):
        await transition(repo, d.id, "claimed", _claim("ghost"))
    assert (await repo.find_donation(d.id)).status == "available"

# --------------------------
# concurrency
# --------------------------
async def test_compare_and_set_is_single_winner(repo):
    d = await _setup(repo)
    first = await repo.compare_and_set_status(d.id, "available", "claimed", _claim())
    second = await repo.compare_and_set_status(d.id, "available", "claimed", _claim("B"))
    missing = await repo.compare_and_set_status("nope", "available", "claimed", _claim())

    assert first[0] is CasResult.SUCCESS
    assert second == (CasResult.CONFLICT, None)
    assert missing == (CasResult.NOT_FOUND, None)

async def test_concurrent_claims_one_winner():
    repo = InterleavingRepo()
    d = await _setup(repo, "A", "B")

    results = await asyncio.gather(
        transition(repo, d.id, "claimed", _claim("A")),
        transition(repo, d.id, "claimed", _claim("B", "NGO B")),
        return_exceptions=True,
    )

    wins = [r for r in results if not isinstance(r, Exception)]
    losses = [r for r in results if isinstance(r, ConflictError)]
    assert len(wins) == 1 and len(losses) == 1

    winner = wins[0].claimed_by.ngo_id
    loser = "B" if winner == "A" else "A"
    assert await _history(repo, winner) == 4
    assert await _history(repo, loser) == 3
    assert (await repo.find_donation(d.id)).claimed_by.ngo_id == winner

# --------------------------
# claim saga
# --------------------------
async def test_history_credit_is_idempotent_per_donation(repo):
    await repo.create_ngo(make_ngo("A", history=0))
    await repo.increment_history("A", "don-x")
    await repo.increment_history("A", "don-x")
    await repo.increment_history("A", "don-y")
    assert await _history(repo, "A") == 2

async def test_vanished_ngo_reverts_claim():
    repo = CrashingCreditRepo(error=NotFoundError)
    d = await _setup(repo)

    with pytest.raises(NotFoundError):
        await transition(repo, d.id, "claimed", _claim())

    current = await repo.find_donation(d.id)
    assert current.status == "available"
    assert current.claimed_by is None
    assert "claim_pending" not in repo.donations[d.id]

async def test_interrupted_claim_is_reconciled():
    repo = CrashingCreditRepo(failures=1)
    d = await _setup(repo)

    with pytest.raises(RuntimeError):
        await transition(repo, d.id, "claimed", _claim())

    assert (await repo.find_donation(d.id)).status == "claimed"
    assert await _history(repo, "A") == 3
    assert [p.id for p in await repo.list_pending_claims()] == [d.id]

    assert await reconcile_pending_claims(repo) == 1
    assert await _history(repo, "A") == 4
    assert await repo.list_pending_claims() == []

    assert await reconcile_pending_claims(repo) == 0
    assert await _history(repo, "A") == 4

async def test_pending_credit_is_settled_by_next_transition():
    repo = CrashingCreditRepo(failures=1)
    d = await _setup(repo)

    with pytest.raises(RuntimeError):
        await transition(repo, d.id, "claimed", _claim())
    assert await _history(repo, "A") == 3

    picked = await transition(repo, d.id, "picked_up")
    assert picked.status == "picked_up"
    assert await _history(repo, "A") == 4
    assert await repo.list_pending_claims() == []

async def test_settled_claim_is_not_credited_twice(repo):
    d = await _setup(repo)
    claimed = await transition(repo, d.id, "claimed", _claim())
    assert claimed.claim_pending is False

    assert await settle_pending_claim(repo, claimed) == claimed
    assert await reconcile_pending_claims(repo) == 0
    assert await _history(repo, "A") == 4

async def test_credit_marker_is_dropped_at_terminal_state(repo):
    d = await _setup(repo)
    await transition(repo, d.id, "claimed", _claim())
    assert repo.ngos["A"]["credited_donations"] == [d.id]

    await transition(repo, d.id, "expired")
    assert repo.ngos["A"]["credited_donations"] == []
    assert await _history(repo, "A") == 4
