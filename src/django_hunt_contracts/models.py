"""Hunt contract models.

Catalog, hunts, contracts and payment obligations for guided-hunt outfitters.
Every record is scoped to an Outfitter; tenant resolution happens upstream.

Write through services only:
- workflow: generate_contract(), complete_booking(), record_signature(), ...
- reconciliation: create_guide_fee_payment_item_if_needed(), reconcile_payment_item(),
  record_payment()
- schedule: upsert_schedule_entry()
"""

import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from .exceptions import ImmutableRevisionError


class SoftDeleteManager(models.Manager):
    """Manager that excludes soft-deleted objects by default."""

    def get_queryset(self):
        return super().get_queryset().filter(deleted_at__isnull=True)

    def with_deleted(self):
        return super().get_queryset()


class BaseModel(models.Model):
    """UUID primary key, timestamps and soft delete."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    objects = SoftDeleteManager()
    all_objects = models.Manager()

    class Meta:
        abstract = True

    def delete(self, using=None, keep_parents=False):
        """Soft delete the object by setting deleted_at timestamp."""
        self.deleted_at = timezone.now()
        self.save(update_fields=['deleted_at'])

    def hard_delete(self, using=None, keep_parents=False):
        """Permanently delete the object from the database."""
        super().delete(using=using, keep_parents=keep_parents)

    @property
    def is_deleted(self):
        return self.deleted_at is not None


class Outfitter(BaseModel):
    """Tenant that owns hunts, catalog entries and contracts."""

    name = models.CharField(max_length=200, help_text="Business name shown on contracts")
    phone = models.CharField(max_length=50, blank=True, default='', help_text="Contact phone")
    email = models.EmailField(blank=True, default='', help_text="Contact email")

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name


class Client(BaseModel):
    """Hunter booking with an outfitter."""

    outfitter = models.ForeignKey(
        Outfitter,
        on_delete=models.PROTECT,
        related_name='clients',
        help_text="Outfitter this client books with",
    )
    first_name = models.CharField(max_length=100, blank=True, default='', help_text="Given name")
    last_name = models.CharField(max_length=100, blank=True, default='', help_text="Family name")
    email = models.EmailField(help_text="Client email (used on contracts)")

    class Meta:
        ordering = ['last_name', 'first_name']
        constraints = [
            models.UniqueConstraint(
                fields=['outfitter', 'email'],
                condition=Q(deleted_at__isnull=True),
                name='hunt_contracts_client_unique_email',
            ),
        ]

    def __str__(self):
        return self.full_name

    @property
    def full_name(self) -> str:
        """First and last name, or the email when neither is set."""
        name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return name or self.email


class PricingItem(BaseModel):
    """Outfitter catalog entry: a base hunt package or a per-unit add-on.

    Species and weapons are comma-separated lists; an empty list applies
    to every hunt.
    """

    class AddonType(models.TextChoices):
        NONE = '', 'None'
        EXTRA_DAYS = 'extra_days', 'Extra day'
        NON_HUNTER = 'non_hunter', 'Non-hunter'
        SPOTTER = 'spotter', 'Spotter'

    outfitter = models.ForeignKey(
        Outfitter,
        on_delete=models.PROTECT,
        related_name='pricing_items',
        help_text="Outfitter that sells this item",
    )
    title = models.CharField(max_length=200, help_text="Line title used on the bill")
    description = models.TextField(blank=True, default='', help_text="Marketing description")
    category = models.CharField(
        max_length=100,
        blank=True,
        default='',
        help_text="Catalog category ('Add-ons' marks per-unit add-ons)",
    )
    addon_type = models.CharField(
        max_length=20,
        choices=AddonType.choices,
        blank=True,
        default=AddonType.NONE,
        help_text="Explicit add-on kind; takes priority over title heuristics",
    )
    species = models.CharField(
        max_length=255,
        blank=True,
        default='',
        help_text="Comma-separated species this applies to (empty = all)",
    )
    weapons = models.CharField(
        max_length=255,
        blank=True,
        default='',
        help_text="Comma-separated weapons this applies to (empty = all)",
    )
    included_days = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Hunt days included in the package (null = any duration)",
    )
    amount_usd = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text="Unit price in USD",
    )
    sort_order = models.PositiveIntegerField(
        default=0,
        help_text="Manual ordering within the catalog",
    )

    class Meta:
        ordering = ['category', 'sort_order', 'created_at']
        indexes = [
            models.Index(fields=['outfitter', 'category'], name='hc_pricing_outfitter_cat_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount_usd__gte=0),
                name='hunt_contracts_pricing_amount_non_negative',
            ),
        ]

    def __str__(self):
        return f"{self.title} (${self.amount_usd})"


class ContractTemplate(BaseModel):
    """Contract text with {{placeholder}} tokens."""

    HUNT_CONTRACT = 'hunt_contract'

    outfitter = models.ForeignKey(
        Outfitter,
        on_delete=models.PROTECT,
        related_name='contract_templates',
        help_text="Outfitter that owns this template",
    )
    name = models.CharField(max_length=200, help_text="Template name")
    template_type = models.CharField(
        max_length=50,
        default=HUNT_CONTRACT,
        help_text="Kind of document this template renders",
    )
    content = models.TextField(help_text="Template body with {{placeholder}} tokens")
    is_active = models.BooleanField(default=True, help_text="Only active templates are used")

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return self.name

    @classmethod
    def active_for(cls, outfitter, template_type: str = HUNT_CONTRACT):
        """Most recently created active template, or None."""
        return (
            cls.objects.filter(
                outfitter=outfitter,
                template_type=template_type,
                is_active=True,
            )
            .order_by('-created_at')
            .first()
        )


class Hunt(BaseModel):
    """One guided-hunting engagement on the outfitter calendar."""

    class HuntType(models.TextChoices):
        DRAW = 'draw', 'Draw tag'
        PRIVATE_LAND = 'private_land', 'Private land tag'
        UNIT_WIDE = 'unit_wide', 'Unit-wide tag'

    class TagStatus(models.TextChoices):
        PENDING = 'pending', 'Pending'
        APPLIED = 'applied', 'Applied'
        DRAWN = 'drawn', 'Drawn'
        UNSUCCESSFUL = 'unsuccessful', 'Unsuccessful'
        CONFIRMED = 'confirmed', 'Confirmed'

    outfitter = models.ForeignKey(
        Outfitter,
        on_delete=models.PROTECT,
        related_name='hunts',
        help_text="Outfitter running the hunt",
    )
    client = models.ForeignKey(
        Client,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='hunts',
        help_text="Client booked on this hunt",
    )
    title = models.CharField(max_length=200, blank=True, default='', help_text="Calendar title")
    species = models.CharField(max_length=100, blank=True, default='', help_text="Target species")
    unit = models.CharField(max_length=50, blank=True, default='', help_text="Game management unit")
    weapon = models.CharField(max_length=50, blank=True, default='', help_text="Weapon (Rifle, Bow, ...)")
    camp_name = models.CharField(max_length=200, blank=True, default='', help_text="Camp or lodge")
    hunt_type = models.CharField(
        max_length=20,
        choices=HuntType.choices,
        default=HuntType.DRAW,
        help_text="How the tag is acquired",
    )
    hunt_code = models.CharField(max_length=50, blank=True, default='', help_text="Hunt code, e.g. ELK-1-294")
    start_time = models.DateTimeField(null=True, blank=True, help_text="Scheduled start")
    end_time = models.DateTimeField(null=True, blank=True, help_text="Scheduled end")
    hunt_window_start = models.DateField(null=True, blank=True, help_text="Season window start")
    hunt_window_end = models.DateField(null=True, blank=True, help_text="Season window end")
    tag_status = models.CharField(
        max_length=20,
        choices=TagStatus.choices,
        default=TagStatus.PENDING,
        help_text="Tag acquisition status",
    )
    selected_pricing_item = models.ForeignKey(
        PricingItem,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        help_text="Plan explicitly chosen by the client",
    )
    addon_data = models.JSONField(
        default=dict,
        blank=True,
        help_text="Add-on quantities chosen by the client",
    )
    contract_generated_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When a contract was first generated",
    )

    class Meta:
        ordering = ['-start_time', '-created_at']
        indexes = [
            models.Index(fields=['outfitter', 'tag_status'], name='hc_hunt_outfitter_tag_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(end_time__isnull=True) | Q(start_time__isnull=True) | Q(end_time__gte=models.F('start_time')),
                name='hunt_contracts_hunt_end_after_start',
            ),
        ]

    def __str__(self):
        return self.title or f"{self.species or 'Hunt'} Hunt"


class HuntContract(BaseModel):
    """Contract for a hunt, ending in a rendered BILL block.

    completion_data holds the completion snapshot the bill was built from.
    """

    class Status(models.TextChoices):
        DRAFT = 'draft', 'Draft'
        PENDING_CLIENT_COMPLETION = 'pending_client_completion', 'Pending client completion'
        PENDING_ADMIN_REVIEW = 'pending_admin_review', 'Pending admin review'
        READY_FOR_SIGNATURE = 'ready_for_signature', 'Ready for signature'
        SENT_FOR_SIGNATURE = 'sent_for_signature', 'Sent for signature'
        CLIENT_SIGNED = 'client_signed', 'Client signed'
        FULLY_EXECUTED = 'fully_executed', 'Fully executed'
        CANCELLED = 'cancelled', 'Cancelled'

    LOCKED_STATUSES = (
        Status.SENT_FOR_SIGNATURE,
        Status.CLIENT_SIGNED,
        Status.FULLY_EXECUTED,
        Status.CANCELLED,
    )

    outfitter = models.ForeignKey(
        Outfitter,
        on_delete=models.PROTECT,
        related_name='hunt_contracts',
        help_text="Outfitter party to the contract",
    )
    hunt = models.OneToOneField(
        Hunt,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='contract',
        help_text="Hunt this contract covers (null until assigned to a calendar slot)",
    )
    client = models.ForeignKey(
        Client,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='hunt_contracts',
        help_text="Client party to the contract",
    )
    client_name = models.CharField(max_length=200, blank=True, default='', help_text="Client name at generation")
    client_email = models.EmailField(blank=True, default='', help_text="Client email at generation")
    template = models.ForeignKey(
        ContractTemplate,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        help_text="Template the content was rendered from",
    )
    status = models.CharField(
        max_length=30,
        choices=Status.choices,
        default=Status.DRAFT,
        help_text="Workflow status",
    )
    content = models.TextField(blank=True, default='', help_text="Rendered contract text including BILL")
    completion_data = models.JSONField(
        default=dict,
        blank=True,
        help_text="Completion snapshot the bill was computed from",
    )
    client_completed_at = models.DateTimeField(null=True, blank=True, help_text="Client submitted completion")
    client_signed_at = models.DateTimeField(null=True, blank=True, help_text="Client signature time")
    admin_signed_at = models.DateTimeField(null=True, blank=True, help_text="Outfitter signature time")
    version = models.PositiveIntegerField(default=1, help_text="Bumped on every content or status write")

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['outfitter', 'status'], name='hc_contract_outfitter_st_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~Q(status='fully_executed') | (
                    Q(client_signed_at__isnull=False) & Q(admin_signed_at__isnull=False)
                ),
                name='hunt_contracts_executed_requires_signatures',
            ),
        ]

    def __str__(self):
        return f"Contract {self.id} ({self.status})"

    @property
    def is_signed(self) -> bool:
        return self.client_signed_at is not None or self.admin_signed_at is not None

    @property
    def is_fully_executed(self) -> bool:
        return (
            self.status == self.Status.FULLY_EXECUTED
            and self.client_signed_at is not None
            and self.admin_signed_at is not None
        )

    def is_locked(self) -> bool:
        """True once signed, sent out for signature, or paid against."""
        if self.is_signed or self.status in self.LOCKED_STATUSES:
            return True
        return self.payment_items.filter(amount_paid_cents__gt=0).exists()


class ContractRevision(BaseModel):
    """Immutable record of each content/snapshot write to a contract."""

    contract = models.ForeignKey(
        HuntContract,
        on_delete=models.CASCADE,
        related_name='revisions',
        help_text="Contract this revision belongs to",
    )
    version = models.PositiveIntegerField(help_text="Contract version after this write")
    status = models.CharField(max_length=30, help_text="Contract status after this write")
    content = models.TextField(blank=True, default='', help_text="Content at this version")
    completion_data = models.JSONField(default=dict, blank=True, help_text="Snapshot at this version")
    reason = models.CharField(max_length=200, help_text="Why the contract changed")
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='hunt_contract_revisions',
        help_text="User who made the change (null for system writes)",
    )

    class Meta:
        ordering = ['contract', 'version']
        constraints = [
            models.UniqueConstraint(
                fields=['contract', 'version'],
                name='hunt_contracts_unique_revision_version',
            ),
        ]

    def __str__(self):
        return f"{self.contract_id} v{self.version}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableRevisionError(self.pk)
        super().save(*args, **kwargs)


class PaymentItem(BaseModel):
    """Billable obligation; guide-fee items derive from fully executed contracts."""

    class ItemType(models.TextChoices):
        GUIDE_FEE = 'guide_fee', 'Guide fee'
        GUIDE_FEE_INSTALLMENT = 'guide_fee_installment', 'Guide fee installment'
        TAG_PURCHASE = 'tag_purchase', 'Tag purchase'
        OTHER = 'other', 'Other'

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        PARTIALLY_PAID = 'partially_paid', 'Partially paid'
        PAID = 'paid', 'Paid'

    GUIDE_FEE_TYPES = (ItemType.GUIDE_FEE, ItemType.GUIDE_FEE_INSTALLMENT)

    outfitter = models.ForeignKey(
        Outfitter,
        on_delete=models.PROTECT,
        related_name='payment_items',
        help_text="Outfitter being paid",
    )
    client = models.ForeignKey(
        Client,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='payment_items',
        help_text="Client who owes the amount",
    )
    contract = models.ForeignKey(
        HuntContract,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='payment_items',
        help_text="Contract this obligation derives from",
    )
    hunt = models.ForeignKey(
        Hunt,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payment_items',
        help_text="Hunt this obligation relates to",
    )
    item_type = models.CharField(
        max_length=30,
        choices=ItemType.choices,
        default=ItemType.GUIDE_FEE,
        help_text="Kind of obligation",
    )
    description = models.CharField(max_length=255, help_text="Line shown to the client")
    subtotal_cents = models.PositiveIntegerField(default=0, help_text="Amount before platform fee")
    platform_fee_cents = models.PositiveIntegerField(default=0, help_text="Platform fee")
    total_cents = models.PositiveIntegerField(default=0, help_text="Subtotal plus platform fee")
    amount_paid_cents = models.PositiveIntegerField(default=0, help_text="Amount received so far")
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        help_text="Payment status",
    )
    version = models.PositiveIntegerField(default=1, help_text="Compare-and-swap version")
    installment_number = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        help_text="Position in the payment plan, starting at 1",
    )
    due_date = models.DateField(null=True, blank=True, help_text="When a planned installment falls due")

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['contract', 'item_type'], name='hc_payment_contract_type_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(total_cents=models.F('subtotal_cents') + models.F('platform_fee_cents')),
                name='hunt_contracts_payment_total_is_sum',
            ),
            models.UniqueConstraint(
                fields=['contract'],
                condition=Q(deleted_at__isnull=True, item_type='guide_fee'),
                name='hunt_contracts_one_guide_fee_per_contract',
            ),
            models.UniqueConstraint(
                fields=['contract', 'installment_number'],
                condition=Q(deleted_at__isnull=True, installment_number__isnull=False),
                name='hunt_contracts_unique_installment_number',
            ),
        ]

    def __str__(self):
        return f"{self.description} ({self.total_cents}c, {self.status})"

    @property
    def balance_cents(self) -> int:
        return max(0, self.total_cents - self.amount_paid_cents)

    @property
    def is_overdue(self) -> bool:
        """Past its due date and not yet paid in full."""
        if self.due_date is None or self.status == self.Status.PAID:
            return False
        return self.due_date < timezone.localdate()


class ScheduleEntry(BaseModel):
    """Calendar entry written when a contract is fully executed."""

    outfitter = models.ForeignKey(
        Outfitter,
        on_delete=models.PROTECT,
        related_name='schedule_entries',
        help_text="Outfitter calendar",
    )
    hunt = models.OneToOneField(
        Hunt,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='schedule_entry',
        help_text="Hunt this entry schedules",
    )
    contract = models.OneToOneField(
        HuntContract,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='schedule_entry',
        help_text="Contract that produced this entry",
    )
    title = models.CharField(max_length=200, help_text="Calendar title")
    start_time = models.DateTimeField(help_text="Entry start")
    end_time = models.DateTimeField(help_text="Entry end")
    participants = models.JSONField(default=list, blank=True, help_text="Participant emails")
    species = models.CharField(max_length=100, blank=True, default='', help_text="Species")
    unit = models.CharField(max_length=50, blank=True, default='', help_text="Unit")
    weapon = models.CharField(max_length=50, blank=True, default='', help_text="Weapon")
    hunt_code = models.CharField(max_length=50, blank=True, default='', help_text="Hunt code")
    camp_name = models.CharField(max_length=200, blank=True, default='', help_text="Camp")

    class Meta:
        ordering = ['start_time']
        verbose_name_plural = 'schedule entries'

    def __str__(self):
        return f"{self.title} ({self.start_time:%Y-%m-%d})"
