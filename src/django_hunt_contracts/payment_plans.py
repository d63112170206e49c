"""Payment plans and contract payment totals.

A payment plan replaces a contract's single guide-fee item with dated
guide_fee_installment items. The installments' subtotals, platform fees
and totals each add up to the reconciled guide fee they replace.

Functions:
- allocate_cents(): Split an amount in proportion to weights, exactly
- split_evenly(): Equal installments for a total, one per due date
- create_payment_plan(): Replace the guide-fee item with installments
- installments_for(): A contract's plan in payment order
- contract_payment_summary(): Contract total, paid, balance and status
"""

import logging
from datetime import date
from typing import NamedTuple

from django.db import transaction

from .exceptions import InvalidPaymentPlanError
from .models import HuntContract, PaymentItem
from .money import from_cents
from .reconciliation import (
    create_guide_fee_payment_item_if_needed,
    payment_status_for,
    reconcile_payment_item,
)

logger = logging.getLogger(__name__)


class Installment(NamedTuple):
    """One scheduled payment in a plan."""

    payment_number: int
    amount_cents: int
    due_date: date

    @classmethod
    def from_mapping(cls, data, position: int) -> "Installment":
        """Build from a submitted dict; every field is required."""
        if isinstance(data, Installment):
            return data
        if not isinstance(data, dict):
            raise InvalidPaymentPlanError(f"Payment {position} must be a mapping")
        number = data.get("payment_number")
        amount = data.get("amount_cents")
        due = data.get("due_date")
        if not number or not amount or not due:
            raise InvalidPaymentPlanError(
                f"Payment {position} is missing required fields (payment_number, amount_cents, due_date)"
            )
        if isinstance(due, str):
            try:
                due = date.fromisoformat(due[:10])
            except ValueError:
                raise InvalidPaymentPlanError(f"Payment {position} has an invalid due_date: {due}") from None
        return cls(number, amount, due)


class ContractPaymentSummary(NamedTuple):
    """Payment totals across a contract's active payment items."""

    contract_total_cents: int
    amount_paid_cents: int
    remaining_balance_cents: int
    payment_status: str
    payment_percentage: float
    installments: tuple[PaymentItem, ...] = ()

    @property
    def has_plan(self) -> bool:
        return bool(self.installments)

    @property
    def overdue_installments(self) -> list[PaymentItem]:
        return [item for item in self.installments if item.is_overdue]

    @property
    def next_installment(self) -> PaymentItem | None:
        """Earliest installment still owing, or None."""
        for item in self.installments:
            if item.status != PaymentItem.Status.PAID:
                return item
        return None

    def to_dict(self) -> dict:
        return {
            "contract_total_cents": self.contract_total_cents,
            "amount_paid_cents": self.amount_paid_cents,
            "remaining_balance_cents": self.remaining_balance_cents,
            "contract_total_usd": str(from_cents(self.contract_total_cents)),
            "amount_paid_usd": str(from_cents(self.amount_paid_cents)),
            "remaining_balance_usd": str(from_cents(self.remaining_balance_cents)),
            "payment_status": self.payment_status,
            "payment_percentage": self.payment_percentage,
            "scheduled_payments": [
                {
                    "payment_number": item.installment_number,
                    "due_date": item.due_date.isoformat() if item.due_date else None,
                    "amount_cents": item.total_cents,
                    "amount_paid_cents": item.amount_paid_cents,
                    "status": item.status,
                    "is_overdue": item.is_overdue,
                }
                for item in self.installments
            ],
        }


def allocate_cents(amount_cents: int, weights: list[int]) -> list[int]:
    """Split amount_cents in proportion to weights.

    Largest-remainder rounding: the shares sum to amount_cents exactly and
    no share is more than one cent above its exact proportion.
    """
    whole = sum(weights)
    if whole <= 0:
        return [0] * len(weights)
    shares = [amount_cents * weight // whole for weight in weights]
    remainders = [amount_cents * weight % whole for weight in weights]
    leftover = amount_cents - sum(shares)
    by_remainder = sorted(range(len(weights)), key=lambda i: (-remainders[i], i))
    for index in by_remainder[:leftover]:
        shares[index] += 1
    return shares


def split_evenly(total_cents: int, due_dates: list[date]) -> list[Installment]:
    """Equal installments, one per due date; leftover cents go to the earliest."""
    if not due_dates:
        raise InvalidPaymentPlanError("A payment plan needs at least one due date")
    amounts = allocate_cents(total_cents, [1] * len(due_dates))
    return [
        Installment(number, amount, due)
        for number, (amount, due) in enumerate(zip(amounts, sorted(due_dates)), start=1)
    ]


def _validated(installments) -> list[Installment]:
    if not installments:
        raise InvalidPaymentPlanError("A payment plan needs at least one payment")
    plan = [Installment.from_mapping(data, position) for position, data in enumerate(installments, start=1)]

    for entry in plan:
        if isinstance(entry.amount_cents, bool) or not isinstance(entry.amount_cents, int) or entry.amount_cents <= 0:
            raise InvalidPaymentPlanError(
                f"Payment {entry.payment_number} amount must be positive cents, got {entry.amount_cents}"
            )
        if not isinstance(entry.due_date, date):
            raise InvalidPaymentPlanError(f"Payment {entry.payment_number} has no due date")

    plan.sort(key=lambda entry: entry.payment_number)
    numbers = [entry.payment_number for entry in plan]
    if numbers != list(range(1, len(plan) + 1)):
        raise InvalidPaymentPlanError(f"Payment numbers must run 1 to {len(plan)}, got {numbers}")
    due_dates = [entry.due_date for entry in plan]
    if due_dates != sorted(due_dates):
        raise InvalidPaymentPlanError("Due dates must not go backwards as payment numbers increase")
    return plan


def create_payment_plan(
    contract: HuntContract,
    installments,
    *,
    plan_name: str | None = None,
    total_amount_cents: int | None = None,
) -> list[PaymentItem]:
    """Split a contract's guide fee into dated installment items.

    The guide-fee item is reconciled first; the installments must add up
    to its reconciled total. The guide-fee item is then soft-deleted and
    replaced by one guide_fee_installment item per scheduled payment, with
    its subtotal and platform fee apportioned across them.

    Args:
        contract: Fully executed contract
        installments: Installment tuples or dicts with payment_number,
            amount_cents and due_date
        plan_name: Label for the installment descriptions
        total_amount_cents: Total the caller expects; rejected if it differs
            from the reconciled guide fee

    Returns:
        The installment PaymentItems in payment order

    Raises:
        InvalidPaymentPlanError: Contract not executed, plan already exists,
            guide fee already paid against, or amounts that do not add up
    """
    plan = _validated(installments)
    planned_total = sum(entry.amount_cents for entry in plan)

    with transaction.atomic():
        contract = HuntContract.objects.select_for_update().get(pk=contract.pk)
        if not contract.is_fully_executed:
            raise InvalidPaymentPlanError(
                "Payment plans are only available for fully executed contracts", contract.pk,
            )
        if installments_for(contract):
            raise InvalidPaymentPlanError("This contract already has a payment plan", contract.pk)

        guide_fee = create_guide_fee_payment_item_if_needed(contract)
        if guide_fee is None:
            raise InvalidPaymentPlanError("This contract has no guide fee to schedule", contract.pk)
        reconcile_payment_item(guide_fee)
        guide_fee = PaymentItem.objects.select_for_update().get(pk=guide_fee.pk)

        if guide_fee.amount_paid_cents > 0:
            raise InvalidPaymentPlanError(
                "A payment has already been made against the guide fee", contract.pk,
            )
        if total_amount_cents is not None and total_amount_cents != guide_fee.total_cents:
            raise InvalidPaymentPlanError(
                f"Plan total {total_amount_cents} does not match the guide fee {guide_fee.total_cents}",
                contract.pk,
            )
        if planned_total != guide_fee.total_cents:
            raise InvalidPaymentPlanError(
                f"Payments add up to {planned_total} but the guide fee is {guide_fee.total_cents}",
                contract.pk,
            )

        amounts = [entry.amount_cents for entry in plan]
        fees = allocate_cents(guide_fee.platform_fee_cents, amounts)
        label = (plan_name or "").strip() or guide_fee.description
        guide_fee.delete()

        items = [
            PaymentItem.objects.create(
                outfitter_id=guide_fee.outfitter_id,
                client_id=guide_fee.client_id,
                contract=contract,
                hunt_id=guide_fee.hunt_id,
                item_type=PaymentItem.ItemType.GUIDE_FEE_INSTALLMENT,
                description=f"{label} (payment {entry.payment_number} of {len(plan)})",
                subtotal_cents=entry.amount_cents - fee,
                platform_fee_cents=fee,
                total_cents=entry.amount_cents,
                installment_number=entry.payment_number,
                due_date=entry.due_date,
            )
            for entry, fee in zip(plan, fees)
        ]

    logger.info(
        f"Created {len(items)}-payment plan for contract {contract.pk}: "
        f"{planned_total}c replacing guide fee item {guide_fee.pk}"
    )
    return items


def installments_for(contract: HuntContract) -> list[PaymentItem]:
    """Active installment items for a contract, by payment number."""
    return list(
        PaymentItem.objects.filter(
            contract_id=contract.pk,
            item_type=PaymentItem.ItemType.GUIDE_FEE_INSTALLMENT,
        ).order_by('installment_number', 'created_at')
    )


def contract_payment_summary(contract: HuntContract) -> ContractPaymentSummary:
    """Totals across every active payment item on the contract.

    payment_percentage is amount paid over contract total, rounded to one
    decimal place; a contract with nothing billed is at 0.0.
    """
    items = list(PaymentItem.objects.filter(contract_id=contract.pk))
    total = sum(item.total_cents for item in items)
    paid = sum(item.amount_paid_cents for item in items)
    percentage = round(paid / total * 100, 1) if total else 0.0
    installments = sorted(
        (item for item in items if item.item_type == PaymentItem.ItemType.GUIDE_FEE_INSTALLMENT),
        key=lambda item: item.installment_number or 0,
    )
    return ContractPaymentSummary(
        contract_total_cents=total,
        amount_paid_cents=paid,
        remaining_balance_cents=max(0, total - paid),
        payment_status=payment_status_for(total, paid),
        payment_percentage=percentage,
        installments=tuple(installments),
    )
