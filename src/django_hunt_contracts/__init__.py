"""Django Hunt Contracts - contracts and guide-fee billing for hunting outfitters.

Models:
    PricingItem: Catalog entry (base package or per-unit add-on)
    Hunt: Calendar engagement with tag status and client selection
    HuntContract: Contract with rendered BILL and completion snapshot
    ContractRevision: Immutable history of contract writes
    PaymentItem: Guide-fee obligation (or one installment of it) from an executed contract
    ScheduleEntry: Calendar entry for an executed contract

Services (the only supported write path):
    generate_contract, set_tag_status, complete_booking,
    submit_client_completion, review_contract, record_signature,
    apply_provider_event, cancel_contract, assign_contract_to_hunt
    create_guide_fee_payment_item_if_needed, reconcile_payment_item,
    record_payment,
    create_payment_plan, contract_payment_summary

Pure helpers:
    match_pricing_for_hunt, calculate_addon_amount, compose_bill
"""

__version__ = "0.1.0"

__all__ = [
    # Models
    "Outfitter",
    "Client",
    "PricingItem",
    "ContractTemplate",
    "Hunt",
    "HuntContract",
    "ContractRevision",
    "PaymentItem",
    "ScheduleEntry",
    # Workflow
    "get_workflow_state",
    "hunt_workflow_state",
    "assign_client",
    "set_tag_status",
    "generate_contract",
    "complete_booking",
    "submit_client_completion",
    "review_contract",
    "send_for_signature",
    "record_signature",
    "apply_provider_event",
    "cancel_contract",
    "assign_contract_to_hunt",
    # Payments
    "create_guide_fee_payment_item_if_needed",
    "reconcile_payment_item",
    "reconcile_payment_item_safely",
    "record_payment",
    "create_payment_plan",
    "contract_payment_summary",
    # Pricing
    "match_pricing_for_hunt",
    "calculate_addon_amount",
    "compose_bill",
    # Exceptions
    "HuntContractError",
    "WorkflowRejection",
    "ContractLockedError",
    "PaymentError",
]

_MODELS = {
    "Outfitter", "Client", "PricingItem", "ContractTemplate", "Hunt",
    "HuntContract", "ContractRevision", "PaymentItem", "ScheduleEntry",
}
_WORKFLOW = {
    "get_workflow_state", "hunt_workflow_state", "assign_client", "set_tag_status", "generate_contract",
    "complete_booking", "submit_client_completion", "review_contract",
    "send_for_signature", "record_signature", "apply_provider_event",
    "cancel_contract", "assign_contract_to_hunt",
}
_RECONCILIATION = {
    "create_guide_fee_payment_item_if_needed", "reconcile_payment_item",
    "reconcile_payment_item_safely", "record_payment",
}
_PAYMENT_PLANS = {
    "create_payment_plan", "contract_payment_summary",
}


def __getattr__(name):
    """Lazy import to avoid AppRegistryNotReady errors."""
    if name in _MODELS:
        from . import models
        return getattr(models, name)

    if name in _WORKFLOW:
        from . import workflow
        return getattr(workflow, name)

    if name in _PAYMENT_PLANS:
        from . import payment_plans
        return getattr(payment_plans, name)

    if name in _RECONCILIATION:
        from . import reconciliation
        return getattr(reconciliation, name)

    if name == "match_pricing_for_hunt":
        from .matching import match_pricing_for_hunt
        return match_pricing_for_hunt

    if name == "calculate_addon_amount":
        from .addons import calculate_addon_amount
        return calculate_addon_amount

    if name == "compose_bill":
        from .billing import compose_bill
        return compose_bill

    if name in ("HuntContractError", "WorkflowRejection", "ContractLockedError", "PaymentError"):
        from . import exceptions
        return getattr(exceptions, name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
