"""
Unit tests for carrier status normalization.
"""

import pytest

from rental_backend.app.domain.shipping.status_map import (
    CarrierPhase,
    SHIPPED_STATUSES,
    DELIVERED_STATUSES,
    EXCEPTION_STATUSES,
    to_carrier_phase,
    is_shipped_status,
    is_delivered_status,
)


@pytest.mark.parametrize("status", sorted(SHIPPED_STATUSES))
def test_shipped_statuses_any_case(status):
    for variant in (status, status.lower(), f"  {status.title()}  "):
        assert to_carrier_phase(variant) == CarrierPhase.SHIPPED
        assert is_shipped_status(variant) is True


@pytest.mark.parametrize("status", sorted(DELIVERED_STATUSES))
def test_delivered_statuses(status):
    assert to_carrier_phase(status) == CarrierPhase.DELIVERED
    assert to_carrier_phase(f" {status.lower()} ") == CarrierPhase.DELIVERED
    assert is_delivered_status(status) is True


@pytest.mark.parametrize("status", sorted(EXCEPTION_STATUSES))
def test_exception_statuses(status):
    assert to_carrier_phase(status) == CarrierPhase.EXCEPTION
    assert is_shipped_status(status) is False
    assert is_delivered_status(status) is False


@pytest.mark.parametrize("status", [None, "", "   "])
def test_empty_input_is_other(status):
    assert to_carrier_phase(status) == CarrierPhase.OTHER
    assert is_shipped_status(status) is False
    assert is_delivered_status(status) is False


def test_concrete_scenarios():
    assert to_carrier_phase("IN_TRANSIT") == CarrierPhase.SHIPPED
    assert to_carrier_phase("RETURNED") == CarrierPhase.EXCEPTION
    assert to_carrier_phase("random-status") == CarrierPhase.OTHER
    assert is_shipped_status("PRE_TRANSIT") is True


def test_case_insensitive():
    assert to_carrier_phase("in_transit") == to_carrier_phase("IN_TRANSIT")


@pytest.mark.parametrize("status", [
    "DELIVERED_TO_ACCESS_POINT",
    "DELIVERED_TO_NEIGHBOR",
    "delivered (locker)",
])
def test_delivered_prefix_variants(status):
    """Suffixed variants count as delivered but keep the OTHER phase."""
    assert is_delivered_status(status) is True
    assert to_carrier_phase(status) == CarrierPhase.OTHER


def test_delivered_substring_is_not_delivered():
    assert is_delivered_status("UNDELIVERED") is False
    assert is_delivered_status("NOT_DELIVERED") is False


def test_non_string_input_does_not_raise():
    assert to_carrier_phase(42) == CarrierPhase.OTHER
    assert is_delivered_status(0) is False


def test_classification_is_stateless():
    statuses = ["DELIVERED", "TRANSIT", "FAILURE", "whatever", None]
    first = [to_carrier_phase(s) for s in statuses]
    second = [to_carrier_phase(s) for s in reversed(statuses)]
    assert first == list(reversed(second))


def test_status_sets_can_be_extended(monkeypatch):
    monkeypatch.setattr(
        "rental_backend.app.domain.shipping.status_map.SHIPPED_STATUSES",
        SHIPPED_STATUSES | {"OUT_FOR_PICKUP"},
    )
    assert to_carrier_phase("out_for_pickup") == CarrierPhase.SHIPPED


def test_phase_is_string_enum():
    assert CarrierPhase.SHIPPED == "SHIPPED"
    assert CarrierPhase("OTHER") is CarrierPhase.OTHER
