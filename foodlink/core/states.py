from enum import Enum

DONATION_STATES = ["available", "claimed", "picked_up", "expired"]

INITIAL_STATE = "available"
TERMINAL_STATES = {"picked_up", "expired"}

TRANSITIONS = {
    ("available", "claimed"):   {"requires_claim": True},
    ("available", "expired"):   {"requires_claim": False},
    ("claimed",   "picked_up"): {"requires_claim": False},
    ("claimed",   "expired"):   {"requires_claim": False},
}

def is_valid_state(status) -> bool:
    return status in DONATION_STATES

def can_transition(src: str, dst: str) -> bool:
    return (src, dst) in TRANSITIONS

def requires_claim(src: str, dst: str) -> bool:
    rule = TRANSITIONS.get((src, dst))
    return bool(rule and rule["requires_claim"])

def next_states(src: str) -> list[str]:
    return [dst for (s, dst) in TRANSITIONS if s == src]

class CasResult(str, Enum):
    SUCCESS = "success"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
