# Generated manually for standalone django-hunt-contracts package

import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


def base_fields():
    return [
        ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
        ("deleted_at", models.DateTimeField(blank=True, null=True)),
    ]


def outfitter_fk(related_name, help_text):
    return models.ForeignKey(
        help_text=help_text,
        on_delete=django.db.models.deletion.PROTECT,
        related_name=related_name,
        to="django_hunt_contracts.outfitter",
    )


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Outfitter",
            fields=base_fields() + [
                ("name", models.CharField(help_text="Business name shown on contracts", max_length=200)),
                ("phone", models.CharField(blank=True, default="", help_text="Contact phone", max_length=50)),
                ("email", models.EmailField(blank=True, default="", help_text="Contact email", max_length=254)),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="Client",
            fields=base_fields() + [
                ("outfitter", outfitter_fk("clients", "Outfitter this client books with")),
                ("first_name", models.CharField(blank=True, default="", help_text="Given name", max_length=100)),
                ("last_name", models.CharField(blank=True, default="", help_text="Family name", max_length=100)),
                ("email", models.EmailField(help_text="Client email (used on contracts)", max_length=254)),
            ],
            options={
                "ordering": ["last_name", "first_name"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("deleted_at__isnull", True)),
                        fields=("outfitter", "email"),
                        name="hunt_contracts_client_unique_email",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PricingItem",
            fields=base_fields() + [
                ("outfitter", outfitter_fk("pricing_items", "Outfitter that sells this item")),
                ("title", models.CharField(help_text="Line title used on the bill", max_length=200)),
                ("description", models.TextField(blank=True, default="", help_text="Marketing description")),
                (
                    "category",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Catalog category ('Add-ons' marks per-unit add-ons)",
                        max_length=100,
                    ),
                ),
                (
                    "addon_type",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("", "None"),
                            ("extra_days", "Extra day"),
                            ("non_hunter", "Non-hunter"),
                            ("spotter", "Spotter"),
                        ],
                        default="",
                        help_text="Explicit add-on kind; takes priority over title heuristics",
                        max_length=20,
                    ),
                ),
                (
                    "species",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Comma-separated species this applies to (empty = all)",
                        max_length=255,
                    ),
                ),
                (
                    "weapons",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Comma-separated weapons this applies to (empty = all)",
                        max_length=255,
                    ),
                ),
                (
                    "included_days",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Hunt days included in the package (null = any duration)",
                        null=True,
                    ),
                ),
                ("amount_usd", models.DecimalField(decimal_places=2, help_text="Unit price in USD", max_digits=10)),
                ("sort_order", models.PositiveIntegerField(default=0, help_text="Manual ordering within the catalog")),
            ],
            options={
                "ordering": ["category", "sort_order", "created_at"],
                "indexes": [
                    models.Index(fields=["outfitter", "category"], name="hc_pricing_outfitter_cat_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount_usd__gte", 0)),
                        name="hunt_contracts_pricing_amount_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ContractTemplate",
            fields=base_fields() + [
                ("outfitter", outfitter_fk("contract_templates", "Outfitter that owns this template")),
                ("name", models.CharField(help_text="Template name", max_length=200)),
                (
                    "template_type",
                    models.CharField(
                        default="hunt_contract",
                        help_text="Kind of document this template renders",
                        max_length=50,
                    ),
                ),
                ("content", models.TextField(help_text="Template body with {{placeholder}} tokens")),
                ("is_active", models.BooleanField(default=True, help_text="Only active templates are used")),
            ],
            options={"ordering": ["-created_at"]},
        ),
        migrations.CreateModel(
            name="Hunt",
            fields=base_fields() + [
                ("outfitter", outfitter_fk("hunts", "Outfitter running the hunt")),
                (
                    "client",
                    models.ForeignKey(
                        blank=True,
                        help_text="Client booked on this hunt",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="hunts",
                        to="django_hunt_contracts.client",
                    ),
                ),
                ("title", models.CharField(blank=True, default="", help_text="Calendar title", max_length=200)),
                ("species", models.CharField(blank=True, default="", help_text="Target species", max_length=100)),
                ("unit", models.CharField(blank=True, default="", help_text="Game management unit", max_length=50)),
                ("weapon", models.CharField(blank=True, default="", help_text="Weapon (Rifle, Bow, ...)", max_length=50)),
                ("camp_name", models.CharField(blank=True, default="", help_text="Camp or lodge", max_length=200)),
                (
                    "hunt_type",
                    models.CharField(
                        choices=[
                            ("draw", "Draw tag"),
                            ("private_land", "Private land tag"),
                            ("unit_wide", "Unit-wide tag"),
                        ],
                        default="draw",
                        help_text="How the tag is acquired",
                        max_length=20,
                    ),
                ),
                ("hunt_code", models.CharField(blank=True, default="", help_text="Hunt code, e.g. ELK-1-294", max_length=50)),
                ("start_time", models.DateTimeField(blank=True, help_text="Scheduled start", null=True)),
                ("end_time", models.DateTimeField(blank=True, help_text="Scheduled end", null=True)),
                ("hunt_window_start", models.DateField(blank=True, help_text="Season window start", null=True)),
                ("hunt_window_end", models.DateField(blank=True, help_text="Season window end", null=True)),
                (
                    "tag_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("applied", "Applied"),
                            ("drawn", "Drawn"),
                            ("unsuccessful", "Unsuccessful"),
                            ("confirmed", "Confirmed"),
                        ],
                        default="pending",
                        help_text="Tag acquisition status",
                        max_length=20,
                    ),
                ),
                (
                    "selected_pricing_item",
                    models.ForeignKey(
                        blank=True,
                        help_text="Plan explicitly chosen by the client",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to="django_hunt_contracts.pricingitem",
                    ),
                ),
                ("addon_data", models.JSONField(blank=True, default=dict, help_text="Add-on quantities chosen by the client")),
                (
                    "contract_generated_at",
                    models.DateTimeField(blank=True, help_text="When a contract was first generated", null=True),
                ),
            ],
            options={
                "ordering": ["-start_time", "-created_at"],
                "indexes": [
                    models.Index(fields=["outfitter", "tag_status"], name="hc_hunt_outfitter_tag_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            ("end_time__isnull", True),
                            ("start_time__isnull", True),
                            ("end_time__gte", models.F("start_time")),
                            _connector="OR",
                        ),
                        name="hunt_contracts_hunt_end_after_start",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="HuntContract",
            fields=base_fields() + [
                ("outfitter", outfitter_fk("hunt_contracts", "Outfitter party to the contract")),
                (
                    "hunt",
                    models.OneToOneField(
                        blank=True,
                        help_text="Hunt this contract covers (null until assigned to a calendar slot)",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="contract",
                        to="django_hunt_contracts.hunt",
                    ),
                ),
                (
                    "client",
                    models.ForeignKey(
                        blank=True,
                        help_text="Client party to the contract",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="hunt_contracts",
                        to="django_hunt_contracts.client",
                    ),
                ),
                ("client_name", models.CharField(blank=True, default="", help_text="Client name at generation", max_length=200)),
                ("client_email", models.EmailField(blank=True, default="", help_text="Client email at generation", max_length=254)),
                (
                    "template",
                    models.ForeignKey(
                        blank=True,
                        help_text="Template the content was rendered from",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to="django_hunt_contracts.contracttemplate",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("pending_client_completion", "Pending client completion"),
                            ("pending_admin_review", "Pending admin review"),
                            ("ready_for_signature", "Ready for signature"),
                            ("sent_for_signature", "Sent for signature"),
                            ("client_signed", "Client signed"),
                            ("fully_executed", "Fully executed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="draft",
                        help_text="Workflow status",
                        max_length=30,
                    ),
                ),
                ("content", models.TextField(blank=True, default="", help_text="Rendered contract text including BILL")),
                (
                    "completion_data",
                    models.JSONField(blank=True, default=dict, help_text="Completion snapshot the bill was computed from"),
                ),
                ("client_completed_at", models.DateTimeField(blank=True, help_text="Client submitted completion", null=True)),
                ("client_signed_at", models.DateTimeField(blank=True, help_text="Client signature time", null=True)),
                ("admin_signed_at", models.DateTimeField(blank=True, help_text="Outfitter signature time", null=True)),
                ("version", models.PositiveIntegerField(default=1, help_text="Bumped on every content or status write")),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["outfitter", "status"], name="hc_contract_outfitter_st_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("status", "fully_executed"), _negated=True),
                            models.Q(("client_signed_at__isnull", False), ("admin_signed_at__isnull", False)),
                            _connector="OR",
                        ),
                        name="hunt_contracts_executed_requires_signatures",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ContractRevision",
            fields=base_fields() + [
                (
                    "contract",
                    models.ForeignKey(
                        help_text="Contract this revision belongs to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="revisions",
                        to="django_hunt_contracts.huntcontract",
                    ),
                ),
                ("version", models.PositiveIntegerField(help_text="Contract version after this write")),
                ("status", models.CharField(help_text="Contract status after this write", max_length=30)),
                ("content", models.TextField(blank=True, default="", help_text="Content at this version")),
                ("completion_data", models.JSONField(blank=True, default=dict, help_text="Snapshot at this version")),
                ("reason", models.CharField(help_text="Why the contract changed", max_length=200)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        help_text="User who made the change (null for system writes)",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="hunt_contract_revisions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["contract", "version"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("contract", "version"),
                        name="hunt_contracts_unique_revision_version",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PaymentItem",
            fields=base_fields() + [
                ("outfitter", outfitter_fk("payment_items", "Outfitter being paid")),
                (
                    "client",
                    models.ForeignKey(
                        blank=True,
                        help_text="Client who owes the amount",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payment_items",
                        to="django_hunt_contracts.client",
                    ),
                ),
                (
                    "contract",
                    models.ForeignKey(
                        blank=True,
                        help_text="Contract this obligation derives from",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payment_items",
                        to="django_hunt_contracts.huntcontract",
                    ),
                ),
                (
                    "hunt",
                    models.ForeignKey(
                        blank=True,
                        help_text="Hunt this obligation relates to",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="payment_items",
                        to="django_hunt_contracts.hunt",
                    ),
                ),
                (
                    "item_type",
                    models.CharField(
                        choices=[
                            ("guide_fee", "Guide fee"),
                            ("guide_fee_installment", "Guide fee installment"),
                            ("tag_purchase", "Tag purchase"),
                            ("other", "Other"),
                        ],
                        default="guide_fee",
                        help_text="Kind of obligation",
                        max_length=30,
                    ),
                ),
                ("description", models.CharField(help_text="Line shown to the client", max_length=255)),
                ("subtotal_cents", models.PositiveIntegerField(default=0, help_text="Amount before platform fee")),
                ("platform_fee_cents", models.PositiveIntegerField(default=0, help_text="Platform fee")),
                ("total_cents", models.PositiveIntegerField(default=0, help_text="Subtotal plus platform fee")),
                ("amount_paid_cents", models.PositiveIntegerField(default=0, help_text="Amount received so far")),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("partially_paid", "Partially paid"), ("paid", "Paid")],
                        default="pending",
                        help_text="Payment status",
                        max_length=20,
                    ),
                ),
                ("version", models.PositiveIntegerField(default=1, help_text="Compare-and-swap version")),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["contract", "item_type"], name="hc_payment_contract_type_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            ("total_cents", models.F("subtotal_cents") + models.F("platform_fee_cents")),
                        ),
                        name="hunt_contracts_payment_total_is_sum",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("deleted_at__isnull", True), ("item_type", "guide_fee")),
                        fields=("contract",),
                        name="hunt_contracts_one_guide_fee_per_contract",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ScheduleEntry",
            fields=base_fields() + [
                ("outfitter", outfitter_fk("schedule_entries", "Outfitter calendar")),
                (
                    "hunt",
                    models.OneToOneField(
                        blank=True,
                        help_text="Hunt this entry schedules",
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="schedule_entry",
                        to="django_hunt_contracts.hunt",
                    ),
                ),
                (
                    "contract",
                    models.OneToOneField(
                        blank=True,
                        help_text="Contract that produced this entry",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="schedule_entry",
                        to="django_hunt_contracts.huntcontract",
                    ),
                ),
                ("title", models.CharField(help_text="Calendar title", max_length=200)),
                ("start_time", models.DateTimeField(help_text="Entry start")),
                ("end_time", models.DateTimeField(help_text="Entry end")),
                ("participants", models.JSONField(blank=True, default=list, help_text="Participant emails")),
                ("species", models.CharField(blank=True, default="", help_text="Species", max_length=100)),
                ("unit", models.CharField(blank=True, default="", help_text="Unit", max_length=50)),
                ("weapon", models.CharField(blank=True, default="", help_text="Weapon", max_length=50)),
                ("hunt_code", models.CharField(blank=True, default="", help_text="Hunt code", max_length=50)),
                ("camp_name", models.CharField(blank=True, default="", help_text="Camp", max_length=200)),
            ],
            options={"ordering": ["start_time"], "verbose_name_plural": "schedule entries"},
        ),
    ]
