"""Concurrency tests for row locking and compare-and-swap writes.

SQLite serializes writers, so these only run against PostgreSQL
(HUNT_CONTRACTS_TEST_DB=postgres).
"""

from concurrent.futures import ThreadPoolExecutor, as_completed

import pytest
from django.db import connection

from django_hunt_contracts.models import HuntContract, PaymentItem
from django_hunt_contracts.reconciliation import (
    create_guide_fee_payment_item_if_needed,
    reconcile_payment_item,
    record_payment,
)

pytestmark = pytest.mark.skipif(
    connection.vendor != "postgresql",
    reason="Row-locking tests need PostgreSQL",
)


def run_concurrently(calls, workers=5):
    """Run each callable in a thread pool; return (results, errors)."""
    results, errors = [], []

    def call(fn):
        try:
            return fn()
        except Exception as e:
            return e
        finally:
            connection.close()

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(call, fn) for fn in calls]
        for future in as_completed(futures):
            result = future.result()
            (errors if isinstance(result, Exception) else results).append(result)
    return results, errors


@pytest.mark.django_db(transaction=True)
class TestGuideFeeConcurrency:
    """Concurrent creation, payment and reconciliation."""

    def test_concurrent_creation_makes_one_item(self, executed_contract):
        """Racing creators all get the same single item."""
        PaymentItem.all_objects.filter(contract=executed_contract).delete()

        results, errors = run_concurrently(
            [lambda: create_guide_fee_payment_item_if_needed(executed_contract)] * 10,
        )

        assert errors == []
        assert len({item.pk for item in results}) == 1
        assert PaymentItem.objects.filter(contract=executed_contract).count() == 1

    def test_payments_survive_reconcile_race(self, executed_contract):
        """Payments recorded while reconciling are never lost."""
        item = PaymentItem.objects.get(contract=executed_contract)
        PaymentItem.objects.filter(pk=item.pk).update(subtotal_cents=1, platform_fee_cents=0, total_cents=1)

        calls = (
            [lambda: record_payment(item, 1000)] * 10
            + [lambda: reconcile_payment_item(item)] * 10
        )
        results, errors = run_concurrently(calls)

        item.refresh_from_db()
        assert item.amount_paid_cents == 10000
        assert item.total_cents == 546000
        assert all(type(e).__name__ == "ReconciliationConflictError" for e in errors)

    def test_contract_writes_are_serialized(self, executed_contract):
        """Concurrent signature replays leave one consistent version."""
        version = HuntContract.objects.get(pk=executed_contract.pk).version

        results, errors = run_concurrently(
            [lambda: record_signature(executed_contract, party="admin")] * 6,
        )

        assert errors == []
        assert HuntContract.objects.get(pk=executed_contract.pk).version == version
