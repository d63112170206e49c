"""Custom exceptions for django-hunt-contracts."""


class HuntContractError(Exception):
    """Base exception for hunt contract errors."""

    pass


class WorkflowRejection(HuntContractError):
    """Raised when a workflow precondition fails.

    Raised before any write, so the hunt and contract are unchanged.
    """

    code = "rejected"

    def __init__(self, message: str, hint: str | None = None, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.hint = hint
        if code:
            self.code = code


class MissingClientError(WorkflowRejection):
    """Raised when a transition requires an assigned client."""

    code = "missing_client"


class InvalidHuntTypeError(WorkflowRejection):
    """Raised when an operation does not apply to the hunt's type."""

    code = "invalid_hunt_type"


class MissingTemplateError(WorkflowRejection):
    """Raised when a contract template is required but none is active."""

    code = "missing_template"


class BookingValidationError(WorkflowRejection):
    """Raised when client booking input is invalid."""

    code = "invalid_booking"


class InvalidTransitionError(WorkflowRejection):
    """Raised when a contract status change is not allowed."""

    code = "invalid_transition"

    def __init__(self, current: str, target: str, hint: str | None = None):
        super().__init__(
            f"Cannot move contract from '{current}' to '{target}'",
            hint=hint,
        )
        self.current = current
        self.target = target


class ContractLockedError(WorkflowRejection):
    """Raised when a signed contract's content or snapshot would be rewritten."""

    code = "contract_locked"

    def __init__(self, contract_id, status: str):
        super().__init__(
            "This contract is locked and cannot be modified. "
            "It has been signed or a payment has been made.",
            hint="Contact your outfitter to make changes after signing.",
        )
        self.contract_id = contract_id
        self.status = status


class ImmutableRevisionError(HuntContractError):
    """Raised when attempting to modify a contract revision record."""

    def __init__(self, revision_id):
        self.revision_id = revision_id
        super().__init__(
            f"Cannot modify revision {revision_id} - revision records are immutable."
        )


class PaymentError(HuntContractError):
    """Base exception for payment item errors."""

    pass


class InvalidPaymentAmountError(PaymentError):
    """Raised when a recorded payment amount is not positive."""

    def __init__(self, amount_cents):
        super().__init__(f"Payment amount must be positive, got {amount_cents} cents")
        self.amount_cents = amount_cents


class ReconciliationConflictError(PaymentError):
    """Raised when concurrent writers keep winning the payment item version race."""

    def __init__(self, payment_item_id, attempts: int):
        super().__init__(
            f"Payment item {payment_item_id} changed during reconciliation "
            f"{attempts} times; retry later"
        )
        self.payment_item_id = payment_item_id
        self.attempts = attempts


class InvalidPaymentPlanError(PaymentError):
    """Raised when a payment plan cannot be created for a contract."""

    def __init__(self, message: str, contract_id=None):
        super().__init__(message)
        self.message = message
        self.contract_id = contract_id
