"""Tests for admin registration and read-only history."""

import pytest
from django.contrib import admin

from django_hunt_contracts.admin import ContractRevisionInline
from django_hunt_contracts.models import (
    Client,
    ContractRevision,
    ContractTemplate,
    Hunt,
    HuntContract,
    Outfitter,
    PaymentItem,
    PricingItem,
    ScheduleEntry,
)


@pytest.mark.parametrize("model", [
    Outfitter,
    Client,
    PricingItem,
    ContractTemplate,
    Hunt,
    HuntContract,
    ContractRevision,
    PaymentItem,
    ScheduleEntry,
])
def test_model_is_registered(model):
    """Every model has an admin."""
    assert admin.site.is_registered(model)


@pytest.mark.django_db
class TestRevisionAdmin:
    """Revision history cannot be edited from the admin."""

    def test_revisions_are_read_only(self, admin_user, rf):
        """Superusers cannot add, change or delete revisions."""
        request = rf.get("/admin/")
        request.user = admin_user
        model_admin = admin.site._registry[ContractRevision]

        assert not model_admin.has_add_permission(request)
        assert not model_admin.has_change_permission(request)
        assert not model_admin.has_delete_permission(request)

    def test_inline_cannot_add(self, admin_user, rf):
        """The contract page shows revisions without an add row."""
        request = rf.get("/admin/")
        request.user = admin_user
        inline = ContractRevisionInline(HuntContract, admin.site)

        assert not inline.has_add_permission(request)

    def test_payment_amounts_are_read_only(self, admin_user, rf):
        """Payment totals change only through reconciliation."""
        request = rf.get("/admin/")
        request.user = admin_user
        model_admin = admin.site._registry[PaymentItem]

        readonly = model_admin.get_readonly_fields(request)
        assert {"total_cents", "amount_paid_cents", "status"} <= set(readonly)
