"""Unit tests for subscription request lifecycle guardrails."""

import pytest

from donatepay.common.state_machine import status_to_state, validate_transition


def test_valid_transition():
    """Sanity check: a legal transition should pass."""

    validate_transition("VALIDATED", "CUSTOMER_READY")


def test_invalid_transition():
    """Skipping the catalog step must raise to protect orchestration order."""

    with pytest.raises(ValueError):
        validate_transition("CUSTOMER_READY", "ACTIVE")


def test_rejected_only_before_remote_calls():
    validate_transition("RECEIVED", "REJECTED")
    with pytest.raises(ValueError):
        validate_transition("CUSTOMER_READY", "REJECTED")


def test_only_failures_can_be_compensated():
    validate_transition("FAILED", "COMPENSATED")
    validate_transition("DECLINED", "COMPENSATED")
    with pytest.raises(ValueError):
        validate_transition("ACTIVE", "COMPENSATED")


@pytest.mark.parametrize(
    "status,state",
    [("active", "ACTIVE"), ("requires_action", "REQUIRES_ACTION"), ("incomplete", "INCOMPLETE"), ("past_due", "INCOMPLETE")],
)
def test_status_to_state(status, state):
    assert status_to_state(status) == state
