"""
Unit tests for the balance ledger: pending units, reservable balance and
used_units reconciliation against the delivery history.
"""

import uuid

import pytest

from medistock.core.errors import InsufficientPendingBalanceError, NotFoundError
from medistock.models import Delivery
from medistock.services.ledger_service import (
    list_pending_balances,
    pending_units,
    reconcile_patient_ledger,
    recompute_used,
)
from medistock.services.reservation_service import RequestedItem, reserve
from tests.demo_data import ACET, ANA, CARLOS, DISP_AV27, ENAL, METF, NOW, set_used, used_of


def _record_delivery(store, *, patient_id, medicine_id, units, reservation):
    with store.transaction():
        store.add_delivery(
            Delivery(
                id=uuid.uuid4(),
                reservation_id=reservation.id,
                patient_id=patient_id,
                dispenser_id=DISP_AV27,
                medicine_id=medicine_id,
                units=units,
                delivered_at=NOW,
            )
        )


# =============================================================================
# pending_units
# =============================================================================

class TestPendingUnits:
    def test_pending_is_max_minus_used(self, store):
        set_used(store, ANA, ACET, 12)

        assert pending_units(store, patient_id=ANA, medicine_id=ACET) == 18

    def test_missing_prescription_means_zero(self, store):
        assert pending_units(store, patient_id=CARLOS, medicine_id=METF) == 0
        assert pending_units(store, patient_id=ANA, medicine_id=ENAL) == 0

    def test_never_negative(self, store):
        set_used(store, ANA, METF, 30)

        assert pending_units(store, patient_id=ANA, medicine_id=METF) == 0


# =============================================================================
# list_pending_balances
# =============================================================================

class TestPendingBalances:
    def test_lists_every_prescription_with_medicine_details(self, store):
        balances = list_pending_balances(store, patient_id=ANA, now=NOW)

        assert [b.medicine_id for b in balances] == [ACET, METF]
        acet = balances[0]
        assert acet.med_code == "ACET500TAB"
        assert acet.rx_number == "RX-A001"
        assert (acet.max_units, acet.used_units, acet.pending, acet.reserved) == (30, 0, 30, 0)

    def test_live_reservations_reduce_reservable(self, store):
        reserve(
            store,
            patient_id=ANA,
            dispenser_id=DISP_AV27,
            items=[RequestedItem(medicine_id=ACET, units=4)],
            now=NOW,
        )

        acet = list_pending_balances(store, patient_id=ANA, now=NOW)[0]

        assert acet.pending == 30
        assert acet.reserved == 4
        assert acet.reservable == 26

    def test_unknown_patient_has_no_balances(self, store):
        assert list_pending_balances(store, patient_id=999, now=NOW) == []


# =============================================================================
# recompute_used / reconcile_patient_ledger
# =============================================================================

class TestRecomputeUsed:
    def test_rewrites_used_units_from_deliveries(self, store):
        reservation = reserve(
            store,
            patient_id=ANA,
            dispenser_id=DISP_AV27,
            items=[RequestedItem(medicine_id=ACET, units=3)],
            now=NOW,
        )
        _record_delivery(store, patient_id=ANA, medicine_id=ACET, units=3, reservation=reservation)
        _record_delivery(store, patient_id=ANA, medicine_id=ACET, units=2, reservation=reservation)
        set_used(store, ANA, ACET, 1)

        assert recompute_used(store, patient_id=ANA, medicine_id=ACET) == 5
        assert used_of(store, ANA, ACET) == 5

    def test_idempotent(self, store):
        set_used(store, ANA, METF, 7)

        first = recompute_used(store, patient_id=ANA, medicine_id=METF)
        second = recompute_used(store, patient_id=ANA, medicine_id=METF)

        assert first == second == 0
        assert used_of(store, ANA, METF) == 0

    def test_over_delivery_is_kept_and_blocks_new_reservations(self, store):
        reservation = reserve(
            store,
            patient_id=ANA,
            dispenser_id=DISP_AV27,
            items=[RequestedItem(medicine_id=ACET, units=2)],
            now=NOW,
        )
        _record_delivery(store, patient_id=ANA, medicine_id=ACET, units=20, reservation=reservation)
        _record_delivery(store, patient_id=ANA, medicine_id=ACET, units=12, reservation=reservation)

        assert recompute_used(store, patient_id=ANA, medicine_id=ACET) == 32
        assert used_of(store, ANA, ACET) == 32
        assert pending_units(store, patient_id=ANA, medicine_id=ACET) == 0

        with pytest.raises(InsufficientPendingBalanceError):
            reserve(
                store,
                patient_id=ANA,
                dispenser_id=DISP_AV27,
                items=[RequestedItem(medicine_id=ACET, units=1)],
                now=NOW,
            )

    def test_missing_prescription_is_not_found(self, store):
        with pytest.raises(NotFoundError):
            recompute_used(store, patient_id=CARLOS, medicine_id=METF)

    def test_reconcile_all_prescriptions_returns_fresh_balances(self, store):
        set_used(store, ANA, ACET, 4)
        set_used(store, ANA, METF, 9)

        balances = reconcile_patient_ledger(store, patient_id=ANA)

        assert [(b.medicine_id, b.used_units, b.pending) for b in balances] == [
            (ACET, 0, 30),
            (METF, 0, 30),
        ]

    def test_reconcile_single_medicine_leaves_others(self, store):
        set_used(store, ANA, ACET, 4)
        set_used(store, ANA, METF, 9)

        reconcile_patient_ledger(store, patient_id=ANA, medicine_id=METF)

        assert used_of(store, ANA, ACET) == 4
        assert used_of(store, ANA, METF) == 0
