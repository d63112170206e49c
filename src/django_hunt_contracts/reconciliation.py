"""Guide-fee payment reconciliation.

Keeps each guide-fee PaymentItem equal to the bill its contract's
completion snapshot produces, plus the platform fee.

Functions:
- compute_platform_fee_cents(): Fee for a subtotal, floored at the minimum
- compute_expected_totals(): Replay a contract's bill (read-only)
- create_guide_fee_payment_item_if_needed(): Lazily create the obligation
- reconcile_payment_item(): Correct drifted totals (compare-and-swap)
- reconcile_payment_item_safely(): Same, falling back to stored totals
- record_payment(): Apply a received payment

amount_paid_cents is only ever written by record_payment().
"""

import logging
from decimal import Decimal, ROUND_CEILING
from typing import NamedTuple

from django.db import DatabaseError, transaction
from django.db.models import F
from django.utils import timezone

from . import conf
from .billing import Bill, compose_hunt_bill
from .exceptions import (
    HuntContractError,
    InvalidPaymentAmountError,
    ReconciliationConflictError,
)
from .models import HuntContract, PaymentItem
from .selectors import catalog_for, guide_fee_items_for
from .snapshots import CompletionSnapshot

logger = logging.getLogger(__name__)

GUIDE_FEE_SUFFIX = " (signed contract)"


class ExpectedTotals(NamedTuple):
    """Guide-fee breakdown in integer cents."""

    subtotal_cents: int
    platform_fee_cents: int
    total_cents: int
    description: str
    bill: Bill | None = None

    @classmethod
    def from_item(cls, item: PaymentItem) -> "ExpectedTotals":
        return cls(item.subtotal_cents, item.platform_fee_cents, item.total_cents, item.description)

    def matches(self, item: PaymentItem) -> bool:
        return (
            item.subtotal_cents == self.subtotal_cents
            and item.platform_fee_cents == self.platform_fee_cents
            and item.total_cents == self.total_cents
        )


class ReconciliationResult(NamedTuple):
    """Outcome of a reconcile call."""

    payment_item: PaymentItem
    totals: ExpectedTotals | None
    changed: bool
    attempts: int
    previous_total_cents: int
    error: str | None = None


def compute_platform_fee_cents(subtotal_cents: int) -> int:
    """Platform fee: ceil(subtotal x percent / 100), never below the minimum.

    A zero subtotal carries no fee.
    """
    if subtotal_cents <= 0:
        return 0
    fee = (Decimal(subtotal_cents) * conf.platform_fee_percent() / 100).to_integral_value(
        rounding=ROUND_CEILING
    )
    return max(conf.min_platform_fee_cents(), int(fee))


def payment_status_for(total_cents: int, amount_paid_cents: int) -> str:
    """Payment status implied by the amounts."""
    if amount_paid_cents <= 0:
        return PaymentItem.Status.PENDING
    if amount_paid_cents >= total_cents:
        return PaymentItem.Status.PAID
    return PaymentItem.Status.PARTIALLY_PAID


def totals_for_bill(bill: Bill) -> ExpectedTotals | None:
    """Breakdown for a composed bill, or None when there is nothing to charge."""
    subtotal = bill.total_cents
    if subtotal <= 0:
        return None
    fee = compute_platform_fee_cents(subtotal)
    return ExpectedTotals(subtotal, fee, subtotal + fee, bill.title, bill)


def compute_expected_totals(contract: HuntContract, *, items=None) -> ExpectedTotals | None:
    """Replay the contract's bill against its snapshot and the catalog.

    Pinned prices win; otherwise the snapshot's selected entry is priced at
    the current catalog price, falling back to the hunt's selection and then
    to matching.

    Args:
        contract: Contract whose completion_data is replayed
        items: Catalog to use (defaults to the outfitter's current catalog)

    Returns:
        ExpectedTotals, or None if the bill comes to zero
    """
    snapshot = CompletionSnapshot.from_dict(contract.completion_data)
    if items is None:
        items = catalog_for(contract.outfitter_id)
    bill = compose_hunt_bill(contract.hunt, items=items, snapshot=snapshot)
    return totals_for_bill(bill)


def create_guide_fee_payment_item_if_needed(contract: HuntContract) -> PaymentItem | None:
    """Create the guide-fee payment item for a fully executed contract.

    Idempotent: an existing guide_fee or guide_fee_installment item for the
    contract is returned unchanged. The contract row is locked so concurrent
    callers cannot both insert.

    Returns:
        The existing or new PaymentItem, or None when the contract is not
        fully executed or its bill comes to zero
    """
    with transaction.atomic():
        contract = HuntContract.objects.select_for_update().get(pk=contract.pk)
        if not contract.is_fully_executed:
            logger.info(f"Contract {contract.pk} is {contract.status}; no guide fee item")
            return None

        existing = guide_fee_items_for(contract)
        if existing:
            return existing[0]

        totals = compute_expected_totals(contract)
        if totals is None:
            logger.info(f"Contract {contract.pk} bill is zero; no guide fee item")
            return None

        item = PaymentItem.objects.create(
            outfitter_id=contract.outfitter_id,
            client_id=contract.client_id,
            contract=contract,
            hunt_id=contract.hunt_id,
            item_type=PaymentItem.ItemType.GUIDE_FEE,
            description=f"{totals.description}{GUIDE_FEE_SUFFIX}",
            subtotal_cents=totals.subtotal_cents,
            platform_fee_cents=totals.platform_fee_cents,
            total_cents=totals.total_cents,
            status=PaymentItem.Status.PENDING,
        )
    logger.info(
        f"Created guide fee item {item.pk} for contract {contract.pk}: "
        f"{totals.total_cents}c ({totals.subtotal_cents}c + {totals.platform_fee_cents}c fee)"
    )
    return item


def reconcile_payment_item(item: PaymentItem, *, items=None) -> ReconciliationResult:
    """Bring a guide-fee item's totals in line with its contract.

    Reads the item, replays the bill, and writes only if the totals drifted.
    The write is a compare-and-swap on PaymentItem.version, so a payment
    recorded between the read and the write forces a fresh read instead of
    being overwritten. amount_paid_cents is never written here; status is
    re-derived from the amount paid that the version guard protects.

    Args:
        item: Payment item to reconcile
        items: Catalog to use (defaults to the outfitter's current catalog)

    Returns:
        ReconciliationResult with the expected breakdown

    Raises:
        ReconciliationConflictError: Version raced on every attempt
    """
    if item.item_type != PaymentItem.ItemType.GUIDE_FEE or not item.contract_id:
        return ReconciliationResult(item, None, False, 0, item.total_cents)

    max_attempts = conf.reconcile_max_retries()
    for attempt in range(1, max_attempts + 1):
        current = PaymentItem.objects.get(pk=item.pk)
        contract = HuntContract.objects.select_related('hunt').get(pk=current.contract_id)
        totals = compute_expected_totals(contract, items=items)
        if totals is None:
            return ReconciliationResult(current, None, False, attempt, current.total_cents)
        if totals.matches(current):
            return ReconciliationResult(current, totals, False, attempt, current.total_cents)

        updated = PaymentItem.objects.filter(pk=current.pk, version=current.version).update(
            subtotal_cents=totals.subtotal_cents,
            platform_fee_cents=totals.platform_fee_cents,
            total_cents=totals.total_cents,
            status=payment_status_for(totals.total_cents, current.amount_paid_cents),
            version=F('version') + 1,
            updated_at=timezone.now(),
        )
        if updated:
            logger.warning(
                f"Reconciled payment item {current.pk}: total {current.total_cents}c -> "
                f"{totals.total_cents}c (contract {contract.pk})"
            )
            previous_total = current.total_cents
            current.refresh_from_db()
            return ReconciliationResult(current, totals, True, attempt, previous_total)

        logger.info(f"Payment item {current.pk} changed during reconcile; retrying ({attempt}/{max_attempts})")

    raise ReconciliationConflictError(item.pk, max_attempts)


def reconcile_payment_item_safely(item: PaymentItem, *, items=None) -> ReconciliationResult:
    """Reconcile without raising; on failure the stored totals stand.

    For page loads and dashboards that must not break on reconcile errors.
    """
    try:
        with transaction.atomic():
            return reconcile_payment_item(item, items=items)
    except HuntContractError as e:
        logger.warning(f"Reconcile of payment item {item.pk} failed, using stored totals: {e}")
        error = str(e)
    except DatabaseError as e:
        logger.exception(f"Reconcile of payment item {item.pk} hit a database error: {e}")
        error = str(e)
    stored = PaymentItem.objects.filter(pk=item.pk).first() or item
    return ReconciliationResult(stored, ExpectedTotals.from_item(stored), False, 0, stored.total_cents, error)


def record_payment(item: PaymentItem, amount_cents: int) -> PaymentItem:
    """Apply a received payment to a payment item.

    Args:
        item: Payment item being paid
        amount_cents: Amount received, in cents

    Returns:
        The updated PaymentItem

    Raises:
        InvalidPaymentAmountError: amount_cents is not a positive integer
    """
    if isinstance(amount_cents, bool) or not isinstance(amount_cents, int) or amount_cents <= 0:
        raise InvalidPaymentAmountError(amount_cents)

    with transaction.atomic():
        item = PaymentItem.objects.select_for_update().get(pk=item.pk)
        item.amount_paid_cents += amount_cents
        item.status = payment_status_for(item.total_cents, item.amount_paid_cents)
        item.version += 1
        item.save(update_fields=['amount_paid_cents', 'status', 'version', 'updated_at'])

    logger.info(
        f"Recorded {amount_cents}c on payment item {item.pk}: "
        f"{item.amount_paid_cents}/{item.total_cents}c ({item.status})"
    )
    return item
