"""Tests for guide-fee payment items and reconciliation."""

from decimal import Decimal
from unittest import mock

import pytest
from django.db import DatabaseError
from django.test import override_settings

from django_hunt_contracts import reconciliation
from django_hunt_contracts.exceptions import InvalidPaymentAmountError, ReconciliationConflictError
from django_hunt_contracts.models import Hunt, HuntContract, PaymentItem
from django_hunt_contracts.reconciliation import (
    compute_expected_totals,
    compute_platform_fee_cents,
    create_guide_fee_payment_item_if_needed,
    payment_status_for,
    reconcile_payment_item,
    reconcile_payment_item_safely,
    record_payment,
)
from django_hunt_contracts.workflow import generate_contract


class TestPlatformFee:
    """Platform fee computation."""

    def test_five_percent_rounded_up(self):
        """The fee is 5% rounded up to the cent."""
        assert compute_platform_fee_cents(520000) == 26000
        assert compute_platform_fee_cents(10001) == 501

    def test_minimum_fee(self):
        """Small subtotals pay the minimum fee."""
        assert compute_platform_fee_cents(100) == 50

    def test_fee_never_below_minimum(self):
        """Every positive subtotal pays at least the minimum and at least 5%."""
        subtotals = [*range(1, 2000, 7), 9999, 10000, 10001, 123457, 520000, 99999999]
        for subtotal in subtotals:
            fee = compute_platform_fee_cents(subtotal)
            assert fee >= 50, subtotal
            assert fee * 100 >= subtotal * 5, subtotal

    def test_zero_subtotal_has_no_fee(self):
        """Nothing billed means no fee."""
        assert compute_platform_fee_cents(0) == 0

    @override_settings(HUNT_CONTRACTS_PLATFORM_FEE_PERCENT="2.5", HUNT_CONTRACTS_MIN_PLATFORM_FEE_CENTS=0)
    def test_fee_is_configurable(self):
        """Percent and minimum come from settings."""
        assert compute_platform_fee_cents(10000) == 250
        assert compute_platform_fee_cents(1) == 1

    def test_payment_status(self):
        """Status follows the amount paid."""
        assert payment_status_for(1000, 0) == PaymentItem.Status.PENDING
        assert payment_status_for(1000, 400) == PaymentItem.Status.PARTIALLY_PAID
        assert payment_status_for(1000, 1000) == PaymentItem.Status.PAID


@pytest.mark.django_db
class TestCreateGuideFeeItem:
    """Lazy creation of the guide-fee obligation."""

    def test_created_once(self, executed_contract):
        """Repeated calls return the same item."""
        first = create_guide_fee_payment_item_if_needed(executed_contract)
        second = create_guide_fee_payment_item_if_needed(executed_contract)

        assert first.pk == second.pk
        assert PaymentItem.objects.filter(contract=executed_contract).count() == 1
        assert first.total_cents == first.subtotal_cents + first.platform_fee_cents

    def test_unexecuted_contract_has_no_item(self, private_hunt):
        """Only fully executed contracts create obligations."""
        contract = generate_contract(private_hunt).contract
        assert create_guide_fee_payment_item_if_needed(contract) is None

    def test_zero_bill_has_no_item(self, outfitter, hunter):
        """A contract whose bill is zero owes nothing."""
        hunt = Hunt.objects.create(outfitter=outfitter, client=hunter, species="Moose")
        contract = HuntContract.objects.create(
            outfitter=outfitter,
            hunt=hunt,
            client=hunter,
            status=HuntContract.Status.FULLY_EXECUTED,
            client_signed_at=hunt.created_at,
            admin_signed_at=hunt.created_at,
        )
        assert create_guide_fee_payment_item_if_needed(contract) is None


@pytest.mark.django_db
class TestReconcile:
    """Correcting drifted totals."""

    def test_matching_totals_are_left_alone(self, executed_contract):
        """An item that matches its contract is not written."""
        item = PaymentItem.objects.get(contract=executed_contract)
        result = reconcile_payment_item(item)

        assert not result.changed
        assert result.payment_item.version == item.version

    def test_drift_is_corrected_without_touching_payments(self, executed_contract):
        """Totals converge to the bill; amount paid is kept."""
        item = PaymentItem.objects.get(contract=executed_contract)
        record_payment(item, 100000)
        PaymentItem.objects.filter(pk=item.pk).update(subtotal_cents=500000, platform_fee_cents=25000, total_cents=525000)

        result = reconcile_payment_item(item)

        assert result.changed
        assert result.previous_total_cents == 525000
        fresh = result.payment_item
        assert fresh.total_cents == 546000
        assert fresh.amount_paid_cents == 100000
        assert fresh.status == PaymentItem.Status.PARTIALLY_PAID

    def test_catalog_edit_after_signing_does_not_reprice(self, executed_contract, elk_package):
        """Signed prices are pinned; catalog edits do not move the bill."""
        elk_package.amount_usd = Decimal("6500.00")
        elk_package.save()

        totals = compute_expected_totals(executed_contract)

        assert totals.subtotal_cents == 520000
        item = PaymentItem.objects.get(contract=executed_contract)
        assert not reconcile_payment_item(item).changed

    def test_payment_during_reconcile_is_kept(self, executed_contract):
        """A payment landing between read and write forces a reread, not an overwrite."""
        item = PaymentItem.objects.get(contract=executed_contract)
        PaymentItem.objects.filter(pk=item.pk).update(subtotal_cents=500000, platform_fee_cents=25000, total_cents=525000)
        real_compute = reconciliation.compute_expected_totals
        calls = []

        def pay_then_compute(contract, **kwargs):
            if not calls:
                record_payment(item, 7000)
            calls.append(contract.pk)
            return real_compute(contract, **kwargs)

        with mock.patch.object(reconciliation, "compute_expected_totals", side_effect=pay_then_compute):
            result = reconcile_payment_item(item)

        assert result.changed
        assert result.attempts == 2
        fresh = PaymentItem.objects.get(pk=item.pk)
        assert fresh.amount_paid_cents == 7000
        assert fresh.total_cents == 546000
        assert fresh.status == PaymentItem.Status.PARTIALLY_PAID

    def test_version_race_exhausts_retries(self, executed_contract):
        """A version that moves on every attempt raises a conflict."""
        item = PaymentItem.objects.get(contract=executed_contract)
        PaymentItem.objects.filter(pk=item.pk).update(subtotal_cents=1, platform_fee_cents=0, total_cents=1)

        with mock.patch.object(reconciliation.PaymentItem.objects, "filter") as filter_mock:
            filter_mock.return_value.update.return_value = 0
            with pytest.raises(ReconciliationConflictError) as exc_info:
                reconcile_payment_item(item)

        assert exc_info.value.attempts == 3

    def test_safe_reconcile_falls_back_to_stored_totals(self, executed_contract):
        """Failures leave the stored totals in place and are reported."""
        item = PaymentItem.objects.get(contract=executed_contract)

        with mock.patch.object(reconciliation, "compute_expected_totals", side_effect=DatabaseError("db down")):
            result = reconcile_payment_item_safely(item)

        assert result.error == "db down"
        assert not result.changed
        assert result.totals.total_cents == item.total_cents

    def test_non_guide_fee_items_are_skipped(self, outfitter):
        """Only guide-fee items are reconciled."""
        item = PaymentItem.objects.create(
            outfitter=outfitter,
            item_type=PaymentItem.ItemType.TAG_PURCHASE,
            description="Elk tag",
            subtotal_cents=65000,
            total_cents=65000,
        )
        result = reconcile_payment_item(item)
        assert result.totals is None
        assert not result.changed


@pytest.mark.django_db
class TestRecordPayment:
    """Applying received payments."""

    def test_payments_accumulate(self, executed_contract):
        """Partial then full payment marks the item paid."""
        item = PaymentItem.objects.get(contract=executed_contract)

        item = record_payment(item, 46000)
        assert item.status == PaymentItem.Status.PARTIALLY_PAID
        item = record_payment(item, 500000)
        assert item.status == PaymentItem.Status.PAID
        assert item.balance_cents == 0

    @pytest.mark.parametrize("amount", [0, -100, 10.5, True])
    def test_invalid_amounts_are_rejected(self, executed_contract, amount):
        """Only positive integer cents are accepted."""
        item = PaymentItem.objects.get(contract=executed_contract)
        with pytest.raises(InvalidPaymentAmountError):
            record_payment(item, amount)

