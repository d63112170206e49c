"""Django admin configuration for hunt contracts."""

from django.contrib import admin

from .models import (
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


class ContractRevisionInline(admin.TabularInline):
    """Inline for viewing contract revisions."""

    model = ContractRevision
    extra = 0
    readonly_fields = ['version', 'status', 'reason', 'created_by', 'created_at']
    fields = readonly_fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Outfitter)
class OutfitterAdmin(admin.ModelAdmin):
    list_display = ['name', 'phone', 'email']
    search_fields = ['name', 'email']


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ['full_name', 'email', 'outfitter']
    list_filter = ['outfitter']
    search_fields = ['first_name', 'last_name', 'email']


@admin.register(PricingItem)
class PricingItemAdmin(admin.ModelAdmin):
    """Admin for the outfitter pricing catalog."""

    list_display = ['title', 'category', 'addon_type', 'species', 'weapons', 'included_days', 'amount_usd', 'sort_order']
    list_filter = ['outfitter', 'category', 'addon_type']
    search_fields = ['title', 'species']
    ordering = ['outfitter', 'sort_order', 'created_at']


@admin.register(ContractTemplate)
class ContractTemplateAdmin(admin.ModelAdmin):
    list_display = ['name', 'outfitter', 'template_type', 'is_active', 'created_at']
    list_filter = ['template_type', 'is_active']


@admin.register(Hunt)
class HuntAdmin(admin.ModelAdmin):
    """Admin for hunts."""

    list_display = ['__str__', 'client', 'hunt_type', 'tag_status', 'hunt_code', 'start_time', 'end_time']
    list_filter = ['hunt_type', 'tag_status', 'outfitter']
    search_fields = ['title', 'species', 'hunt_code']
    readonly_fields = ['contract_generated_at', 'created_at', 'updated_at']


@admin.register(HuntContract)
class HuntContractAdmin(admin.ModelAdmin):
    """Admin for hunt contracts.

    Status, signatures and the snapshot move through the workflow services
    only, so they are read-only here.
    """

    list_display = ['id', 'client_name', 'hunt', 'status', 'version', 'client_signed_at', 'admin_signed_at']
    list_filter = ['status', 'outfitter']
    search_fields = ['client_name', 'client_email']
    readonly_fields = [
        'id',
        'status',
        'version',
        'completion_data',
        'client_completed_at',
        'client_signed_at',
        'admin_signed_at',
        'created_at',
        'updated_at',
    ]
    fieldsets = [
        ('Contract', {
            'fields': ['id', 'outfitter', 'hunt', 'client', 'client_name', 'client_email', 'template']
        }),
        ('Workflow', {
            'fields': ['status', 'version', 'client_completed_at', 'client_signed_at', 'admin_signed_at']
        }),
        ('Content', {
            'fields': ['content', 'completion_data']
        }),
        ('Timestamps', {
            'fields': ['created_at', 'updated_at'],
            'classes': ['collapse']
        }),
    ]
    inlines = [ContractRevisionInline]


@admin.register(ContractRevision)
class ContractRevisionAdmin(admin.ModelAdmin):
    """Admin for ContractRevision model (read-only)."""

    list_display = ['contract', 'version', 'status', 'reason', 'created_by', 'created_at']
    list_filter = ['status', 'created_at']
    readonly_fields = ['id', 'contract', 'version', 'status', 'content', 'completion_data', 'reason', 'created_by', 'created_at']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(PaymentItem)
class PaymentItemAdmin(admin.ModelAdmin):
    """Admin for payment items; amounts change through reconciliation only."""

    list_display = ['description', 'client', 'item_type', 'due_date', 'total_cents', 'amount_paid_cents', 'status']
    list_filter = ['item_type', 'status', 'outfitter']
    readonly_fields = [
        'subtotal_cents',
        'platform_fee_cents',
        'total_cents',
        'amount_paid_cents',
        'status',
        'installment_number',
        'version',
        'created_at',
        'updated_at',
    ]


@admin.register(ScheduleEntry)
class ScheduleEntryAdmin(admin.ModelAdmin):
    list_display = ['title', 'outfitter', 'start_time', 'end_time', 'hunt_code']
    list_filter = ['outfitter']
    search_fields = ['title', 'hunt_code']
