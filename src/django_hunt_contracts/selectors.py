"""Read-only queries for hunt contracts.

Catalog reads are never locked; drift is corrected later by reconciliation.
"""

from .models import HuntContract, PaymentItem, PricingItem


def catalog_for(outfitter_id) -> list[PricingItem]:
    """The outfitter's pricing catalog in catalog order."""
    return list(
        PricingItem.objects.filter(outfitter_id=outfitter_id)
        .order_by('sort_order', 'created_at', 'id')
    )


def contract_for_hunt(hunt, *, for_update: bool = False) -> HuntContract | None:
    """The hunt's contract, or None. Lock with for_update inside a transaction."""
    if hunt is None or hunt.pk is None:
        return None
    qs = HuntContract.objects.filter(hunt_id=hunt.pk)
    if for_update:
        qs = qs.select_for_update()
    return qs.first()


def guide_fee_items_for(contract) -> list[PaymentItem]:
    """Guide-fee payment items (including installments) for a contract."""
    return list(
        PaymentItem.objects.filter(
            contract_id=contract.pk,
            item_type__in=PaymentItem.GUIDE_FEE_TYPES,
        ).order_by('created_at')
    )
