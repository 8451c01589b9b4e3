"""Subscription request lifecycle transitions enforced by the orchestrator."""

ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    "RECEIVED": {"VALIDATED", "REJECTED"},
    "VALIDATED": {"CUSTOMER_READY", "FAILED"},
    "CUSTOMER_READY": {"CATALOG_READY", "FAILED"},
    "CATALOG_READY": {"ACTIVE", "REQUIRES_ACTION", "INCOMPLETE", "DECLINED", "FAILED"},
    "ACTIVE": set(),
    "REQUIRES_ACTION": set(),
    "INCOMPLETE": set(),
    "REJECTED": set(),
    "DECLINED": {"COMPENSATED"},
    "FAILED": {"COMPENSATED"},
    "COMPENSATED": set(),
}


def validate_transition(current: str, new: str) -> None:
    """Raise when a transition is not allowed by the state machine."""

    if new not in ALLOWED_TRANSITIONS.get(current, set()):
        raise ValueError(f"Invalid transition: {current} -> {new}")


def status_to_state(status: str) -> str:
    """Map a processor subscription status onto a terminal lifecycle state."""

    if status == "active" or status == "trialing":
        return "ACTIVE"
    if status == "requires_action":
        return "REQUIRES_ACTION"
    return "INCOMPLETE"
