"""Hunt contract workflow.

Moves a hunt from client assignment through tag acquisition, contract
generation, client completion and signatures to a fully executed contract.

Functions:
- get_workflow_state(): Combined hunt + contract progress
- hunt_workflow_state(): Same, looking up the hunt's contract
- assign_client(): Put a client on a hunt
- set_tag_status(): Record tag acquisition; drawn/confirmed generates the contract
- generate_contract(): Create or refresh a private-land hunt's contract
- complete_booking(): Client picks plan, dates and add-ons
- submit_client_completion(): Client submits the contract for review
- review_contract(): Admin approves or returns a submitted contract
- send_for_signature(): Hand the contract to the signing provider
- record_signature(): Client or admin signature landed
- apply_provider_event(): Map signing-provider events to signatures
- cancel_contract(): Cancel an unexecuted contract
- assign_contract_to_hunt(): Attach a contract bought before its hunt existed
- on_fully_executed(): Schedule entry and guide-fee item side effects

Every mutation locks its hunt and contract rows and validates before
writing, so a rejected call leaves no partial writes. Side effects of
reaching fully executed run after the transition commits; their failures
are logged and returned, never rolled back into the transition.
"""

import logging
import uuid
from datetime import date
from typing import NamedTuple

from django.db import transaction
from django.utils import timezone

from .addons import AddonQuantities
from .billing import attach_bill, compose_contract, compose_hunt_bill, record_quoted_prices
from .exceptions import (
    BookingValidationError,
    ContractLockedError,
    InvalidHuntTypeError,
    InvalidTransitionError,
    MissingClientError,
    MissingTemplateError,
    WorkflowRejection,
)
from .hunt_codes import weapon_from_hunt_code
from .matching import as_utc_date, hunt_days_from_range
from .models import ContractRevision, ContractTemplate, Hunt, HuntContract, PricingItem
from .reconciliation import create_guide_fee_payment_item_if_needed
from .schedule import day_end, day_start, upsert_schedule_entry_from_contract
from .selectors import catalog_for, contract_for_hunt
from .snapshots import CompletionSnapshot

logger = logging.getLogger(__name__)

Status = HuntContract.Status
TagStatus = Hunt.TagStatus

CONTRACT_TRIGGER_TAG_STATUSES = (TagStatus.DRAWN, TagStatus.CONFIRMED)

TRANSITIONS = {
    Status.DRAFT: {Status.PENDING_CLIENT_COMPLETION, Status.CANCELLED},
    Status.PENDING_CLIENT_COMPLETION: {Status.PENDING_ADMIN_REVIEW, Status.CANCELLED},
    Status.PENDING_ADMIN_REVIEW: {
        Status.READY_FOR_SIGNATURE,
        Status.PENDING_CLIENT_COMPLETION,
        Status.CANCELLED,
    },
    Status.READY_FOR_SIGNATURE: {Status.SENT_FOR_SIGNATURE, Status.CLIENT_SIGNED, Status.CANCELLED},
    Status.SENT_FOR_SIGNATURE: {Status.CLIENT_SIGNED, Status.CANCELLED},
    Status.CLIENT_SIGNED: {Status.FULLY_EXECUTED, Status.CANCELLED},
    Status.FULLY_EXECUTED: set(),
    Status.CANCELLED: set(),
}

SIGNATURE_PARTIES = ("client", "admin")

# Signing-provider event -> action
PROVIDER_EVENTS = {
    "sent": None,
    "delivered": None,
    "signed": "client_signed",
    "completed": "completed",
    "declined": "cancelled",
    "voided": "cancelled",
}


class WorkflowState(NamedTuple):
    """Where a hunt stands and what should happen next."""

    step: int | None
    key: str
    label: str
    description: str
    next_action: str | None

    def to_dict(self) -> dict:
        return self._asdict()


class TransitionResult(NamedTuple):
    """Outcome of a workflow operation."""

    hunt: Hunt | None
    contract: HuntContract | None
    state: WorkflowState | None
    created: bool = False
    side_effect_errors: tuple[str, ...] = ()
    hint: str | None = None

    @property
    def side_effects_ok(self) -> bool:
        return not self.side_effect_errors


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, set())


def _require_transition(contract: HuntContract, target: str, hint: str | None = None) -> None:
    if not can_transition(contract.status, target):
        raise InvalidTransitionError(contract.status, target, hint=hint)


def get_workflow_state(hunt: Hunt, contract: HuntContract | None = None) -> WorkflowState:
    """Combined hunt/contract state, in workflow order."""
    if not hunt.client_id:
        return WorkflowState(0, "no_client", "No Client", "Assign a client to this hunt to proceed", "assign_client")

    is_draw = hunt.hunt_type == Hunt.HuntType.DRAW
    if hunt.tag_status in (TagStatus.PENDING, TagStatus.APPLIED):
        return WorkflowState(
            1,
            "awaiting_tag",
            "Awaiting Tag",
            "Waiting for draw results" if is_draw else "Waiting for private land tag confirmation",
            "mark_drawn" if is_draw else "mark_confirmed",
        )

    if hunt.tag_status == TagStatus.UNSUCCESSFUL:
        return WorkflowState(-1, "unsuccessful", "Unsuccessful Draw", "Client did not draw a tag", None)

    if contract is None:
        if hunt.hunt_type == Hunt.HuntType.PRIVATE_LAND:
            return WorkflowState(
                2,
                "contract_pending",
                "Generate contract",
                "Client purchased tag. Set hunt code and dates, then generate the hunt contract.",
                "generate_contract",
            )
        return WorkflowState(
            2,
            "contract_pending",
            "Contract Pending",
            "Tag confirmed but contract not generated. Check template.",
            "create_template",
        )

    if contract.status in (Status.DRAFT, Status.PENDING_CLIENT_COMPLETION):
        return WorkflowState(3, "awaiting_client", "Awaiting Client", "Contract sent to client for completion", "wait_for_client")

    if contract.status == Status.PENDING_ADMIN_REVIEW:
        return WorkflowState(3, "awaiting_review", "Awaiting Review", "Client completed contract, review it", "review_contract")

    if contract.status == Status.READY_FOR_SIGNATURE:
        return WorkflowState(
            4,
            "ready_for_signature",
            "Ready for signature",
            "Client completed contract, ready to send for signatures",
            "send_for_signature",
        )

    if contract.status in (Status.SENT_FOR_SIGNATURE, Status.CLIENT_SIGNED):
        waiting = "admin" if contract.client_signed_at else "client and admin"
        return WorkflowState(
            5,
            "awaiting_signatures",
            "Awaiting Signatures",
            f"Waiting for {waiting} signature",
            "wait_for_signatures",
        )

    if contract.status == Status.FULLY_EXECUTED:
        return WorkflowState(6, "fully_executed", "Complete", "Contract fully executed", None)

    return WorkflowState(None, "cancelled", "Cancelled", "Contract was cancelled", None)


def hunt_workflow_state(hunt: Hunt) -> WorkflowState:
    """Workflow state with the hunt's contract looked up."""
    return get_workflow_state(hunt, contract_for_hunt(hunt))


def _lock_hunt(hunt: Hunt) -> Hunt:
    return Hunt.objects.select_for_update().get(pk=hunt.pk)


def _lock_contract(contract: HuntContract) -> HuntContract:
    return HuntContract.objects.select_for_update().get(pk=contract.pk)


def _write_contract(contract: HuntContract, *, reason: str, actor=None, fields=()) -> HuntContract:
    """Save a locked contract, bump its version and append a revision."""
    contract.version += 1
    contract.save(update_fields=[*fields, 'version', 'updated_at'])
    ContractRevision.objects.create(
        contract=contract,
        version=contract.version,
        status=contract.status,
        content=contract.content,
        completion_data=contract.completion_data,
        reason=reason,
        created_by=actor,
    )
    return contract


def _snapshot_from_hunt(hunt: Hunt) -> dict:
    data = dict(hunt.addon_data or {})
    if hunt.selected_pricing_item_id:
        data["selected_pricing_item_id"] = str(hunt.selected_pricing_item_id)
    return data


def _upsert_contract(hunt: Hunt, *, actor=None, reason: str, snapshot_updates: dict | None = None):
    """Create the hunt's contract or refresh its content and snapshot.

    Must run inside a transaction with the hunt locked.

    Returns:
        (contract, created)

    Raises:
        ContractLockedError: The existing contract is signed or paid against
    """
    contract = contract_for_hunt(hunt, for_update=True)
    if contract is not None and contract.is_locked():
        raise ContractLockedError(contract.pk, contract.status)

    snapshot = CompletionSnapshot.from_dict(contract.completion_data if contract else {})
    snapshot.merge(_snapshot_from_hunt(hunt))
    if snapshot_updates:
        snapshot.merge(snapshot_updates)

    template = ContractTemplate.active_for(hunt.outfitter)
    composed = compose_contract(
        hunt,
        items=catalog_for(hunt.outfitter_id),
        snapshot=snapshot,
        template=template,
        client=hunt.client,
        outfitter=hunt.outfitter,
    )

    created = contract is None
    if created:
        contract = HuntContract(
            outfitter_id=hunt.outfitter_id,
            hunt=hunt,
            status=Status.PENDING_CLIENT_COMPLETION,
            version=0,
        )
    contract.client = hunt.client
    contract.client_name = hunt.client.full_name
    contract.client_email = hunt.client.email
    contract.template = template
    contract.content = composed.content
    contract.completion_data = composed.snapshot.to_dict()

    if created:
        contract.save()
        _write_contract(contract, reason=reason, actor=actor)
        hunt.contract_generated_at = timezone.now()
        hunt.save(update_fields=['contract_generated_at', 'updated_at'])
        logger.info(f"Generated contract {contract.pk} for hunt {hunt.pk}: total {composed.bill.total}")
    else:
        _write_contract(
            contract,
            reason=reason,
            actor=actor,
            fields=['client', 'client_name', 'client_email', 'template', 'content', 'completion_data'],
        )
        logger.info(f"Refreshed contract {contract.pk} for hunt {hunt.pk}: total {composed.bill.total}")
    return contract, created


def assign_client(hunt: Hunt, client, *, actor=None) -> TransitionResult:
    """Assign a client to a hunt.

    Raises:
        WorkflowRejection: Client belongs to another outfitter
        ContractLockedError: Hunt's contract is signed for another client
    """
    if client.outfitter_id != hunt.outfitter_id:
        raise WorkflowRejection("Client belongs to a different outfitter", code="client_outfitter_mismatch")

    with transaction.atomic():
        hunt = _lock_hunt(hunt)
        contract = contract_for_hunt(hunt, for_update=True)
        reassigned = contract is not None and contract.client_id != client.pk
        if reassigned and contract.is_locked():
            raise ContractLockedError(contract.pk, contract.status)

        hunt.client = client
        hunt.save(update_fields=['client', 'updated_at'])
        if reassigned:
            # Re-render so the content names the new client.
            contract, _ = _upsert_contract(hunt, actor=actor, reason="Client reassigned")

    logger.info(f"Assigned client {client.pk} to hunt {hunt.pk}")
    return TransitionResult(hunt, contract, get_workflow_state(hunt, contract))


def set_tag_status(hunt: Hunt, tag_status: str, *, actor=None) -> TransitionResult:
    """Update a hunt's tag status.

    Marking the tag drawn or confirmed generates the contract when the
    outfitter has an active template (or the hunt is private-land, which
    has a fallback layout). An existing contract is left alone.

    Raises:
        WorkflowRejection: Unknown tag status
        MissingClientError: drawn/confirmed on a hunt with no client
    """
    if tag_status not in TagStatus.values:
        raise WorkflowRejection(
            f"Invalid tag_status. Must be one of: {', '.join(TagStatus.values)}",
            code="invalid_tag_status",
        )

    hint = None
    created = False
    with transaction.atomic():
        hunt = _lock_hunt(hunt)
        if tag_status in CONTRACT_TRIGGER_TAG_STATUSES and not hunt.client_id:
            raise MissingClientError(
                "Cannot mark tag as drawn/confirmed without a client assigned to the hunt",
                hint="Assign a client to this hunt first",
            )

        hunt.tag_status = tag_status
        hunt.save(update_fields=['tag_status', 'updated_at'])

        contract = contract_for_hunt(hunt, for_update=True)
        if tag_status in CONTRACT_TRIGGER_TAG_STATUSES and contract is None:
            has_template = ContractTemplate.active_for(hunt.outfitter) is not None
            if has_template or hunt.hunt_type == Hunt.HuntType.PRIVATE_LAND:
                contract, created = _upsert_contract(
                    hunt, actor=actor, reason=f"Tag marked {tag_status}",
                )
            else:
                hint = "Contract was not generated. Ensure a contract template exists for this outfitter."

    logger.info(f"Hunt {hunt.pk} tag status -> {tag_status}")
    return TransitionResult(hunt, contract, get_workflow_state(hunt, contract), created=created, hint=hint)


def generate_contract(
    hunt: Hunt,
    *,
    hunt_code: str | None = None,
    start=None,
    end=None,
    require_template: bool = False,
    actor=None,
) -> TransitionResult:
    """Generate or refresh the contract for a private-land hunt.

    Idempotent per hunt: an existing contract is refreshed in place with
    content and snapshot recomputed from current hunt and catalog data.

    Args:
        hunt: Private-land hunt
        hunt_code: Optional hunt code to set; its weapon digit sets the weapon
        start: Optional new start (datetime)
        end: Optional new end (datetime)
        require_template: Reject instead of using the fallback layout
            when the outfitter has no active template
        actor: User performing the action

    Raises:
        InvalidHuntTypeError: Hunt is not private-land
        MissingClientError: Hunt has no client
        MissingTemplateError: require_template and no active template
        BookingValidationError: end before start
        ContractLockedError: Existing contract is signed or paid against
    """
    if start is not None and end is not None and end < start:
        raise BookingValidationError("End time must be on or after start time.")

    with transaction.atomic():
        hunt = _lock_hunt(hunt)
        if hunt.hunt_type != Hunt.HuntType.PRIVATE_LAND:
            raise InvalidHuntTypeError(
                "Generate contract is only for private land hunts. "
                "Draw hunts get a contract when the tag is marked drawn.",
            )
        if not hunt.client_id:
            raise MissingClientError(
                "Assign a client to this hunt before generating the contract.",
                hint="Assign a client to this hunt first",
            )
        if require_template and ContractTemplate.active_for(hunt.outfitter) is None:
            raise MissingTemplateError(
                "No active contract template for this outfitter.",
                hint="Create a hunt contract template first",
            )

        if hunt_code:
            hunt.hunt_code = hunt_code.strip()
            hunt.weapon = weapon_from_hunt_code(hunt.hunt_code) or hunt.weapon
        if start is not None:
            hunt.start_time = start
        if end is not None:
            hunt.end_time = end
        if hunt.start_time and hunt.end_time and hunt.end_time < hunt.start_time:
            raise BookingValidationError("End time must be on or after start time.")
        hunt.save()

        # The hunt's dates are authoritative here; the snapshot follows them.
        date_updates = {}
        if hunt.start_time:
            date_updates["client_start_date"] = as_utc_date(hunt.start_time).isoformat()
        if hunt.end_time:
            date_updates["client_end_date"] = as_utc_date(hunt.end_time).isoformat()

        contract, created = _upsert_contract(
            hunt,
            actor=actor,
            reason="Contract generated" if contract_for_hunt(hunt) is None else "Contract refreshed",
            snapshot_updates=date_updates,
        )

    return TransitionResult(hunt, contract, get_workflow_state(hunt, contract), created=created)


def _validate_window(hunt: Hunt | None, start: date, end: date) -> None:
    if hunt is None or not (hunt.hunt_window_start and hunt.hunt_window_end):
        return
    if start < hunt.hunt_window_start or end > hunt.hunt_window_end:
        raise BookingValidationError(
            "Hunt dates must be within your hunt code season "
            f"({hunt.hunt_window_start.isoformat()} – {hunt.hunt_window_end.isoformat()}).",
        )


def _plan_for(outfitter_id, pricing_item_id) -> PricingItem | None:
    try:
        pk = uuid.UUID(str(pricing_item_id))
    except ValueError:
        return None
    return PricingItem.objects.filter(pk=pk, outfitter_id=outfitter_id).first()


def _as_quantities(quantities) -> AddonQuantities:
    if isinstance(quantities, AddonQuantities):
        return quantities
    return AddonQuantities.from_mapping(quantities or {})


def complete_booking(
    hunt: Hunt,
    *,
    client,
    start_date: date | None,
    end_date: date | None,
    selected_pricing_item_id=None,
    quantities=None,
    actor=None,
) -> TransitionResult:
    """Client completes a booking: plan, hunt dates and add-ons.

    Creates the contract if the hunt has none yet, otherwise refreshes it.
    The selection, add-ons and dates become the contract's completion
    snapshot.

    Raises:
        WorkflowRejection: Hunt is not booked for this client
        BookingValidationError: Missing/invalid dates, unknown plan, or a day
            count that does not match the plan
        ContractLockedError: Contract is signed or paid against
    """
    if not start_date or not end_date:
        raise BookingValidationError("client_start_date and client_end_date are required.")
    if end_date < start_date:
        raise BookingValidationError("End date must be on or after start date.")
    quantities = _as_quantities(quantities)
    days = hunt_days_from_range(start_date, end_date)
    if not days:
        raise BookingValidationError("Hunt must be at least one day.")

    plan = None
    if selected_pricing_item_id:
        plan = _plan_for(hunt.outfitter_id, selected_pricing_item_id)
        if plan is None:
            raise BookingValidationError("Selected pricing plan was not found.")
        if plan.included_days:
            expected = plan.included_days + quantities.extra_days
            if days != expected:
                raise BookingValidationError(
                    f"Your plan includes {plan.included_days} days plus {quantities.extra_days} "
                    f"extra day(s), for a total of {expected} days. "
                    f"Please select exactly {expected} days.",
                )

    with transaction.atomic():
        hunt = _lock_hunt(hunt)
        if hunt.client_id != client.pk:
            raise WorkflowRejection("This hunt is not booked for this client.", code="client_mismatch")
        _validate_window(hunt, start_date, end_date)

        if plan is not None:
            hunt.selected_pricing_item = plan
        hunt.addon_data = quantities.to_dict()
        hunt.start_time = day_start(start_date)
        hunt.end_time = day_end(end_date)
        hunt.save()

        updates = {
            **quantities.to_dict(),
            "client_start_date": start_date.isoformat(),
            "client_end_date": end_date.isoformat(),
        }
        if plan is not None:
            updates["selected_pricing_item_id"] = str(plan.pk)
        contract, created = _upsert_contract(
            hunt, actor=actor, reason="Client completed booking", snapshot_updates=updates,
        )

    return TransitionResult(hunt, contract, get_workflow_state(hunt, contract), created=created)


def submit_client_completion(contract: HuntContract, completion_data: dict | None = None, *, actor=None) -> TransitionResult:
    """Client submits the completed contract for admin review.

    Merges the submitted completion data into the snapshot, falls back to
    the hunt's dates, moves the hunt to the client's dates and rewrites the
    BILL block.

    Raises:
        InvalidTransitionError: Contract is not awaiting client completion
        ContractLockedError: Contract is signed or paid against
        BookingValidationError: Dates missing or outside the hunt window
    """
    with transaction.atomic():
        # Hunt before contract, the same order as complete_booking.
        hunt = Hunt.objects.select_for_update().get(pk=contract.hunt_id) if contract.hunt_id else None
        contract = _lock_contract(contract)
        _require_transition(contract, Status.PENDING_ADMIN_REVIEW)
        if contract.is_locked():
            raise ContractLockedError(contract.pk, contract.status)

        snapshot = CompletionSnapshot.from_dict(contract.completion_data).merge(completion_data or {})
        if hunt is not None and hunt.start_time and hunt.end_time:
            if not snapshot.client_start_date:
                snapshot.client_start_date = as_utc_date(hunt.start_time)
            if not snapshot.client_end_date:
                snapshot.client_end_date = as_utc_date(hunt.end_time)
        if not snapshot.client_start_date or not snapshot.client_end_date:
            raise BookingValidationError(
                "Hunt dates are required. Your hunt details should show dates at the top; "
                "if not, contact your outfitter.",
            )
        if snapshot.client_end_date < snapshot.client_start_date:
            raise BookingValidationError("End date must be on or after start date.")
        _validate_window(hunt, snapshot.client_start_date, snapshot.client_end_date)
        if snapshot.selected_pricing_item_id and _plan_for(contract.outfitter_id, snapshot.selected_pricing_item_id) is None:
            raise BookingValidationError("Selected pricing plan was not found.")

        if hunt is not None:
            hunt.start_time = day_start(snapshot.client_start_date)
            hunt.end_time = day_end(snapshot.client_end_date)
            if snapshot.selected_pricing_item_id:
                hunt.selected_pricing_item_id = snapshot.selected_pricing_item_id
            hunt.addon_data = snapshot.quantities().to_dict()
            hunt.save()

        bill = compose_hunt_bill(hunt, items=catalog_for(contract.outfitter_id), snapshot=snapshot)
        record_quoted_prices(snapshot, bill)
        contract.content = attach_bill(contract.content, bill)
        contract.completion_data = snapshot.to_dict()
        contract.status = Status.PENDING_ADMIN_REVIEW
        contract.client_completed_at = timezone.now()
        _write_contract(
            contract,
            reason="Client submitted completion",
            actor=actor,
            fields=['content', 'completion_data', 'status', 'client_completed_at'],
        )

    logger.info(f"Contract {contract.pk} submitted for review: total {bill.total}")
    return TransitionResult(hunt, contract, get_workflow_state(hunt, contract) if hunt else None)


def review_contract(contract: HuntContract, *, approve: bool, reason: str = "", actor=None) -> TransitionResult:
    """Admin approves a submitted contract or returns it to the client.

    Raises:
        InvalidTransitionError: Contract is not awaiting review
    """
    target = Status.READY_FOR_SIGNATURE if approve else Status.PENDING_CLIENT_COMPLETION
    with transaction.atomic():
        contract = _lock_contract(contract)
        if contract.status != Status.PENDING_ADMIN_REVIEW:
            raise InvalidTransitionError(contract.status, target, hint="Only submitted contracts can be reviewed")
        contract.status = target
        fields = ['status']
        if not approve:
            contract.client_completed_at = None
            fields.append('client_completed_at')
        _write_contract(
            contract,
            reason=("Approved" if approve else "Returned to client") + (f": {reason}" if reason else ""),
            actor=actor,
            fields=fields,
        )

    logger.info(f"Contract {contract.pk} {'approved' if approve else 'returned to client'}")
    return _result_for(contract)


def send_for_signature(contract: HuntContract, *, actor=None) -> TransitionResult:
    """Mark a ready contract as sent to the signing provider.

    Raises:
        InvalidTransitionError: Contract is not ready for signature
    """
    with transaction.atomic():
        contract = _lock_contract(contract)
        if contract.status != Status.READY_FOR_SIGNATURE:
            raise InvalidTransitionError(
                contract.status,
                Status.SENT_FOR_SIGNATURE,
                hint="Contract must be ready for signature",
            )
        contract.status = Status.SENT_FOR_SIGNATURE
        _write_contract(contract, reason="Sent for signature", actor=actor, fields=['status'])

    logger.info(f"Contract {contract.pk} sent for signature")
    return _result_for(contract)


def _result_for(contract: HuntContract, *, side_effect_errors=None) -> TransitionResult:
    hunt = Hunt.objects.filter(pk=contract.hunt_id).first() if contract.hunt_id else None
    state = get_workflow_state(hunt, contract) if hunt is not None else None
    return TransitionResult(hunt, contract, state, side_effect_errors=tuple(side_effect_errors or ()))


def _pin_prices(contract: HuntContract, signed_at) -> None:
    """Freeze the billed prices into the snapshot at the first signature."""
    snapshot = CompletionSnapshot.from_dict(contract.completion_data)
    if snapshot.is_pinned:
        return
    if not snapshot.has_quoted_prices:
        hunt = Hunt.objects.filter(pk=contract.hunt_id).first() if contract.hunt_id else None
        bill = compose_hunt_bill(hunt, items=catalog_for(contract.outfitter_id), snapshot=snapshot)
        record_quoted_prices(snapshot, bill)
    snapshot.pinned_at = signed_at.isoformat()
    contract.completion_data = snapshot.to_dict()


def record_signature(contract: HuntContract, *, party: str, signed_at=None, actor=None) -> TransitionResult:
    """Record a client or admin signature.

    The first signature pins the billed prices into the snapshot. When both
    signatures are present the contract becomes fully executed and the
    schedule entry and guide-fee item are created (best effort).

    Args:
        contract: Contract being signed
        party: "client" or "admin"
        signed_at: Signature time (defaults to now)
        actor: User performing the action

    Raises:
        WorkflowRejection: Unknown party
        InvalidTransitionError: Contract cannot be signed in its status, or
            the admin signs before the client
    """
    if party not in SIGNATURE_PARTIES:
        raise WorkflowRejection(f"Unknown signing party '{party}'", code="invalid_party")
    signed_at = signed_at or timezone.now()

    with transaction.atomic():
        contract = _lock_contract(contract)
        already = contract.client_signed_at if party == "client" else contract.admin_signed_at
        if already is not None:
            return _result_for(contract)

        if party == "client":
            if contract.status not in (Status.READY_FOR_SIGNATURE, Status.SENT_FOR_SIGNATURE):
                raise InvalidTransitionError(
                    contract.status,
                    Status.CLIENT_SIGNED,
                    hint="Contract must be ready for signature",
                )
            contract.client_signed_at = signed_at
            target = Status.CLIENT_SIGNED
        else:
            if contract.client_signed_at is None:
                raise InvalidTransitionError(
                    contract.status,
                    Status.FULLY_EXECUTED,
                    hint="The client must sign first",
                )
            contract.admin_signed_at = signed_at
            target = Status.FULLY_EXECUTED

        _require_transition(contract, target)
        _pin_prices(contract, signed_at)
        contract.status = target
        _write_contract(
            contract,
            reason=f"{party.capitalize()} signed",
            actor=actor,
            fields=['client_signed_at', 'admin_signed_at', 'status', 'completion_data'],
        )

    logger.info(f"Contract {contract.pk} signed by {party} -> {contract.status}")
    errors = on_fully_executed(contract) if contract.status == Status.FULLY_EXECUTED else []
    return _result_for(contract, side_effect_errors=errors)


def cancel_contract(contract: HuntContract, *, reason: str = "", actor=None) -> TransitionResult:
    """Cancel a contract that has not been fully executed.

    Raises:
        InvalidTransitionError: Contract is already executed or cancelled
    """
    with transaction.atomic():
        contract = _lock_contract(contract)
        _require_transition(contract, Status.CANCELLED)
        contract.status = Status.CANCELLED
        _write_contract(
            contract,
            reason="Cancelled" + (f": {reason}" if reason else ""),
            actor=actor,
            fields=['status'],
        )

    logger.info(f"Contract {contract.pk} cancelled")
    return _result_for(contract)


def apply_provider_event(contract: HuntContract, event: str, *, occurred_at=None, actor=None) -> TransitionResult:
    """Apply a signing-provider status event.

    sent/delivered change nothing; signed records the client signature;
    completed records any missing signatures (fully executing the contract);
    declined/voided cancel it.

    Raises:
        WorkflowRejection: Unknown event
    """
    key = (event or "").strip().lower()
    if key not in PROVIDER_EVENTS:
        raise WorkflowRejection(f"Unknown signing event '{event}'", code="unknown_event")

    action = PROVIDER_EVENTS[key]
    if action is None:
        return _result_for(contract)
    if action == "client_signed":
        return record_signature(contract, party="client", signed_at=occurred_at, actor=actor)
    if action == "completed":
        record_signature(contract, party="client", signed_at=occurred_at, actor=actor)
        return record_signature(contract, party="admin", signed_at=occurred_at, actor=actor)
    return cancel_contract(contract, reason=f"Signing {key}", actor=actor)


def on_fully_executed(contract: HuntContract) -> list[str]:
    """Run the fully-executed side effects; returns their error messages.

    Each step runs in its own savepoint and a failure in one does not stop
    the other or undo the transition.
    """
    errors = []
    steps = (
        ("schedule_entry", upsert_schedule_entry_from_contract),
        ("guide_fee_payment_item", create_guide_fee_payment_item_if_needed),
    )
    for name, step in steps:
        try:
            with transaction.atomic():
                step(contract)
        except Exception as e:
            logger.exception(f"Contract {contract.pk}: {name} side effect failed: {e}")
            errors.append(f"{name}: {e}")
    return errors


def assign_contract_to_hunt(contract: HuntContract, hunt: Hunt | None = None, *, actor=None, **hunt_fields) -> TransitionResult:
    """Attach a contract to a hunt, creating the hunt if none is given.

    For contracts bought before a calendar slot existed.

    Args:
        contract: Contract with no hunt
        hunt: Existing hunt to link, or None to create one
        actor: User performing the action
        **hunt_fields: Fields for the new hunt (title, species, unit, weapon,
            camp_name, hunt_code, hunt_type, start_time, end_time)

    Raises:
        WorkflowRejection: Contract already has a hunt, the hunt already has
            a contract, or the hunt belongs to another outfitter
    """
    allowed = {
        "title", "species", "unit", "weapon", "camp_name", "hunt_code",
        "hunt_type", "start_time", "end_time", "hunt_window_start", "hunt_window_end",
    }
    unknown = set(hunt_fields) - allowed
    if unknown:
        raise WorkflowRejection(f"Unknown hunt fields: {', '.join(sorted(unknown))}", code="invalid_fields")

    with transaction.atomic():
        if hunt is not None:
            hunt = _lock_hunt(hunt)
        contract = _lock_contract(contract)
        if contract.hunt_id:
            raise WorkflowRejection("Contract is already assigned to a hunt.", code="already_assigned")

        if hunt is None:
            hunt_fields.setdefault("hunt_type", Hunt.HuntType.PRIVATE_LAND)
            if hunt_fields.get("hunt_code") and not hunt_fields.get("weapon"):
                hunt_fields["weapon"] = weapon_from_hunt_code(hunt_fields["hunt_code"]) or ""
            hunt = Hunt.objects.create(
                outfitter_id=contract.outfitter_id,
                client_id=contract.client_id,
                tag_status=TagStatus.CONFIRMED,
                contract_generated_at=contract.created_at,
                **hunt_fields,
            )
        else:
            if hunt.outfitter_id != contract.outfitter_id:
                raise WorkflowRejection("Hunt belongs to a different outfitter.", code="hunt_outfitter_mismatch")
            if contract_for_hunt(hunt) is not None:
                raise WorkflowRejection("Hunt already has a contract.", code="hunt_has_contract")
            if not hunt.client_id:
                hunt.client_id = contract.client_id
            hunt.contract_generated_at = hunt.contract_generated_at or contract.created_at
            hunt.save()

        contract.hunt = hunt
        _write_contract(contract, reason="Assigned to hunt", actor=actor, fields=['hunt'])

    logger.info(f"Assigned contract {contract.pk} to hunt {hunt.pk}")
    return TransitionResult(hunt, contract, get_workflow_state(hunt, contract))
