"""Django Hunt Contracts configuration.

All settings can be overridden in your Django settings.py.

Example:
    # settings.py
    HUNT_CONTRACTS_PLATFORM_FEE_PERCENT = Decimal("4.5")
    HUNT_CONTRACTS_MIN_PLATFORM_FEE_CENTS = 100
"""

from decimal import Decimal

from django.conf import settings


# =============================================================================
# DEFAULTS
# =============================================================================

DEFAULT_PLATFORM_FEE_PERCENT = Decimal("5")
DEFAULT_MIN_PLATFORM_FEE_CENTS = 50

# Per-unit add-on rates used when the catalog has no usable entry
DEFAULT_EXTRA_DAY_USD = Decimal("100")
DEFAULT_NON_HUNTER_USD = Decimal("75")
DEFAULT_SPOTTER_USD = Decimal("50")

DEFAULT_RECONCILE_MAX_RETRIES = 3

DEFAULT_ADDONS_CATEGORY = "add-ons"


def get_setting(name: str, default=None):
    """Get a setting with HUNT_CONTRACTS_ prefix."""
    return getattr(settings, f"HUNT_CONTRACTS_{name}", default)


def platform_fee_percent() -> Decimal:
    """Platform fee as a percentage of the guide-fee subtotal."""
    return Decimal(str(get_setting("PLATFORM_FEE_PERCENT", DEFAULT_PLATFORM_FEE_PERCENT)))


def min_platform_fee_cents() -> int:
    """Floor applied to any non-zero platform fee."""
    return int(get_setting("MIN_PLATFORM_FEE_CENTS", DEFAULT_MIN_PLATFORM_FEE_CENTS))


def default_addon_rates() -> dict:
    """Fallback per-unit rates keyed by add-on kind value."""
    return {
        "extra_days": Decimal(str(get_setting("DEFAULT_EXTRA_DAY_USD", DEFAULT_EXTRA_DAY_USD))),
        "non_hunter": Decimal(str(get_setting("DEFAULT_NON_HUNTER_USD", DEFAULT_NON_HUNTER_USD))),
        "spotter": Decimal(str(get_setting("DEFAULT_SPOTTER_USD", DEFAULT_SPOTTER_USD))),
    }


def reconcile_max_retries() -> int:
    """Compare-and-swap attempts before reconciliation gives up."""
    return max(1, int(get_setting("RECONCILE_MAX_RETRIES", DEFAULT_RECONCILE_MAX_RETRIES)))


def addons_category() -> str:
    """Catalog category (case-insensitive) that marks per-unit add-ons."""
    return str(get_setting("ADDONS_CATEGORY", DEFAULT_ADDONS_CATEGORY)).strip().lower()


# =============================================================================
# DEFAULT SETTINGS REFERENCE
# =============================================================================

# HUNT_CONTRACTS_PLATFORM_FEE_PERCENT = Decimal("5")
# HUNT_CONTRACTS_MIN_PLATFORM_FEE_CENTS = 50
# HUNT_CONTRACTS_DEFAULT_EXTRA_DAY_USD = Decimal("100")
# HUNT_CONTRACTS_DEFAULT_NON_HUNTER_USD = Decimal("75")
# HUNT_CONTRACTS_DEFAULT_SPOTTER_USD = Decimal("50")
# HUNT_CONTRACTS_RECONCILE_MAX_RETRIES = 3
# HUNT_CONTRACTS_ADDONS_CATEGORY = "add-ons"
