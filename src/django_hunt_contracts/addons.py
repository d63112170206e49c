"""Add-on calculator.

Resolves per-unit rates for the three add-on kinds and prices a set of
add-on quantities against them.

Rate resolution per kind, first hit wins:
    1. Catalog entry explicitly tagged with the kind (addon_type)
    2. Catalog entry in the add-ons category whose title matches the kind
    3. Configured default rate

Within each level the first entry in catalog order wins. An entry priced
at zero or with an unparseable price falls back to the default.
"""

from decimal import Decimal
from enum import Enum
from typing import NamedTuple

from . import conf
from .matching import catalog_order_key, is_addon_category
from .money import ZERO, to_decimal


class AddonKind(str, Enum):
    EXTRA_DAYS = "extra_days"
    NON_HUNTER = "non_hunter"
    SPOTTER = "spotter"


# Stable order for bill lines
ADDON_KINDS = (AddonKind.EXTRA_DAYS, AddonKind.NON_HUNTER, AddonKind.SPOTTER)

RATE_SOURCE_TAG = "tag"
RATE_SOURCE_HEURISTIC = "heuristic"
RATE_SOURCE_DEFAULT = "default"

# Legacy completion keys accepted on read
QUANTITY_KEYS = {
    "extra_days": ("extra_days", "additional_days"),
    "extra_non_hunters": ("extra_non_hunters", "non_hunters"),
    "extra_spotters": ("extra_spotters", "spotters", "extra_observers"),
}


def _count(value) -> int:
    amount = to_decimal(value)
    if amount is None or amount <= 0:
        return 0
    return int(amount)


class AddonQuantities(NamedTuple):
    """Non-negative add-on counts for a hunt.

    extra_spotters counts the extra observers joining the hunt.
    """

    extra_days: int = 0
    extra_non_hunters: int = 0
    extra_spotters: int = 0

    @classmethod
    def from_mapping(cls, data) -> "AddonQuantities":
        """Build from a completion or add-on dict; unknown keys are ignored."""
        if not isinstance(data, dict):
            return cls()
        values = {}
        for field, keys in QUANTITY_KEYS.items():
            raw = next((data[key] for key in keys if data.get(key) is not None), 0)
            values[field] = _count(raw)
        return cls(**values)

    def for_kind(self, kind: AddonKind) -> int:
        return {
            AddonKind.EXTRA_DAYS: self.extra_days,
            AddonKind.NON_HUNTER: self.extra_non_hunters,
            AddonKind.SPOTTER: self.extra_spotters,
        }[kind]

    @property
    def is_empty(self) -> bool:
        return not any(self)

    def to_dict(self) -> dict:
        return self._asdict()


class AddonRate(NamedTuple):
    """Resolved per-unit rate for one kind."""

    kind: AddonKind
    amount: Decimal
    source: str
    pricing_item_id: str | None = None


class AddonRates(NamedTuple):
    """Per-unit rates for all three kinds."""

    extra_days: AddonRate
    non_hunter: AddonRate
    spotter: AddonRate

    def for_kind(self, kind: AddonKind) -> AddonRate:
        return getattr(self, kind.value)

    def amounts(self) -> dict:
        """Rates keyed by kind value, as Decimal."""
        return {rate.kind.value: rate.amount for rate in self}


class AddonLine(NamedTuple):
    """Priced add-on line: quantity x rate."""

    kind: AddonKind
    quantity: int
    rate: Decimal
    amount: Decimal


class AddonAmount(NamedTuple):
    """Result of pricing add-on quantities."""

    total: Decimal
    lines: list[AddonLine]
    rates: AddonRates


def _title_matches(kind: AddonKind, title: str) -> bool:
    t = (title or "").lower()
    if kind == AddonKind.EXTRA_DAYS:
        if "non" in t:
            return False
        return "additional day" in t or "extra day" in t or "day" in t
    if kind == AddonKind.NON_HUNTER:
        return "non-hunter" in t or "non hunter" in t or ("non" in t and "hunter" in t)
    if kind == AddonKind.SPOTTER:
        return "spotter" in t
    return False


def classify_addon_by_keywords(item) -> AddonKind | None:
    """Keyword heuristic for untagged entries in the add-ons category."""
    if not is_addon_category(getattr(item, "category", "")):
        return None
    title = getattr(item, "title", "")
    # "Spotter per day" prices an observer, not an extra hunt day
    for kind in (AddonKind.NON_HUNTER, AddonKind.SPOTTER, AddonKind.EXTRA_DAYS):
        if _title_matches(kind, title):
            return kind
    return None


def classify_addon(item) -> tuple[AddonKind | None, str | None]:
    """Classify a catalog entry as an add-on kind.

    Returns:
        (kind, source) where source is "tag" or "heuristic", or (None, None)
    """
    tag = getattr(item, "addon_type", "") or ""
    if tag:
        try:
            return AddonKind(tag), RATE_SOURCE_TAG
        except ValueError:
            return None, None
    kind = classify_addon_by_keywords(item)
    if kind is not None:
        return kind, RATE_SOURCE_HEURISTIC
    return None, None


def resolve_addon_rates(items) -> AddonRates:
    """Resolve the per-unit rate for each add-on kind from the catalog."""
    defaults = conf.default_addon_rates()
    found = {}
    for item in sorted(items, key=catalog_order_key):
        kind, source = classify_addon(item)
        if kind is None:
            continue
        current = found.get(kind)
        # A tagged entry outranks any heuristic match
        if current is None or (current[1] == RATE_SOURCE_HEURISTIC and source == RATE_SOURCE_TAG):
            found[kind] = (item, source)

    rates = {}
    for kind in ADDON_KINDS:
        default = defaults[kind.value]
        if kind not in found:
            rates[kind.value] = AddonRate(kind, default, RATE_SOURCE_DEFAULT)
            continue
        item, source = found[kind]
        amount = to_decimal(getattr(item, "amount_usd", None))
        if amount is None or amount <= ZERO:
            rates[kind.value] = AddonRate(kind, default, RATE_SOURCE_DEFAULT)
        else:
            rates[kind.value] = AddonRate(kind, amount, source, str(item.id))
    return AddonRates(**rates)


def rates_from_pinned(pinned: dict) -> AddonRates:
    """Rebuild rates from prices pinned into a completion snapshot."""
    defaults = conf.default_addon_rates()
    rates = {}
    for kind in ADDON_KINDS:
        amount = to_decimal(pinned.get(kind.value))
        if amount is None:
            rates[kind.value] = AddonRate(kind, defaults[kind.value], RATE_SOURCE_DEFAULT)
        else:
            rates[kind.value] = AddonRate(kind, amount, "pinned")
    return AddonRates(**rates)


def calculate_addon_amount(quantities: AddonQuantities, items=None, rates: AddonRates | None = None) -> AddonAmount:
    """Price add-on quantities: sum of quantity x rate over the three kinds.

    Args:
        quantities: Add-on counts
        items: Outfitter catalog, used when rates is not given
        rates: Pre-resolved rates (e.g. pinned at signing)

    Returns:
        AddonAmount with total, non-zero lines and the rates used
    """
    if rates is None:
        rates = resolve_addon_rates(items or [])
    lines = []
    total = ZERO
    for kind in ADDON_KINDS:
        quantity = quantities.for_kind(kind)
        if quantity <= 0:
            continue
        rate = rates.for_kind(kind).amount
        amount = rate * quantity
        lines.append(AddonLine(kind, quantity, rate, amount))
        total += amount
    return AddonAmount(total, lines, rates)
