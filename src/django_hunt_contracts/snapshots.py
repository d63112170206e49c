"""Completion snapshot stored in HuntContract.completion_data.

The snapshot is the set of inputs the contract's bill was composed from.
Every render records the prices it billed (pinned_base_lines, pinned_rates);
the first signature stamps pinned_at, after which those prices are frozen
and later catalog edits never re-price the bill.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from .addons import QUANTITY_KEYS, AddonQuantities
from .money import to_decimal

SCHEMA_VERSION = 1

MERGEABLE_FIELDS = (
    "selected_pricing_item_id",
    "extra_days",
    "extra_non_hunters",
    "extra_spotters",
    "client_start_date",
    "client_end_date",
)


@dataclass
class PinnedLine:
    """Base-price line as billed at signing."""

    title: str
    amount: Decimal
    pricing_item_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "PinnedLine | None":
        amount = to_decimal(data.get("amount"))
        if amount is None:
            return None
        return cls(
            title=str(data.get("title") or "Guide fee"),
            amount=amount,
            pricing_item_id=data.get("pricing_item_id"),
        )

    def to_dict(self) -> dict:
        return {
            "pricing_item_id": self.pricing_item_id,
            "title": self.title,
            "amount": str(self.amount),
        }


def _parse_date(value) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


@dataclass
class CompletionSnapshot:
    """Typed view over completion_data; unknown keys are ignored on read."""

    selected_pricing_item_id: str | None = None
    extra_days: int = 0
    extra_non_hunters: int = 0
    extra_spotters: int = 0
    client_start_date: date | None = None
    client_end_date: date | None = None
    pinned_base_lines: list[PinnedLine] | None = None
    pinned_rates: dict[str, Decimal] | None = None
    pinned_at: str | None = None
    schema_version: int = field(default=SCHEMA_VERSION)

    @classmethod
    def from_dict(cls, data) -> "CompletionSnapshot":
        if not isinstance(data, dict):
            return cls()
        quantities = AddonQuantities.from_mapping(data)
        selected = data.get("selected_pricing_item_id")

        pinned_lines = None
        if isinstance(data.get("pinned_base_lines"), list):
            pinned_lines = [
                line for line in (
                    PinnedLine.from_dict(raw) for raw in data["pinned_base_lines"]
                    if isinstance(raw, dict)
                )
                if line is not None
            ]

        pinned_rates = None
        if isinstance(data.get("pinned_rates"), dict):
            pinned_rates = {
                key: amount for key, amount in (
                    (key, to_decimal(raw)) for key, raw in data["pinned_rates"].items()
                )
                if amount is not None
            }

        return cls(
            selected_pricing_item_id=str(selected) if selected else None,
            extra_days=quantities.extra_days,
            extra_non_hunters=quantities.extra_non_hunters,
            extra_spotters=quantities.extra_spotters,
            client_start_date=_parse_date(data.get("client_start_date")),
            client_end_date=_parse_date(data.get("client_end_date")),
            pinned_base_lines=pinned_lines,
            pinned_rates=pinned_rates,
            pinned_at=data.get("pinned_at"),
        )

    def to_dict(self) -> dict:
        """JSON-safe dict; empty optional fields are left out."""
        data = {"schema_version": self.schema_version}
        if self.selected_pricing_item_id:
            data["selected_pricing_item_id"] = self.selected_pricing_item_id
        data["extra_days"] = self.extra_days
        data["extra_non_hunters"] = self.extra_non_hunters
        data["extra_spotters"] = self.extra_spotters
        if self.client_start_date:
            data["client_start_date"] = self.client_start_date.isoformat()
        if self.client_end_date:
            data["client_end_date"] = self.client_end_date.isoformat()
        if self.pinned_base_lines is not None:
            data["pinned_base_lines"] = [line.to_dict() for line in self.pinned_base_lines]
        if self.pinned_rates is not None:
            data["pinned_rates"] = {key: str(value) for key, value in self.pinned_rates.items()}
        if self.pinned_at:
            data["pinned_at"] = self.pinned_at
        return data

    def quantities(self) -> AddonQuantities:
        return AddonQuantities(self.extra_days, self.extra_non_hunters, self.extra_spotters)

    def with_quantities(self, quantities: AddonQuantities) -> "CompletionSnapshot":
        self.extra_days = quantities.extra_days
        self.extra_non_hunters = quantities.extra_non_hunters
        self.extra_spotters = quantities.extra_spotters
        return self

    @property
    def has_quoted_prices(self) -> bool:
        return self.pinned_base_lines is not None and self.pinned_rates is not None

    @property
    def is_pinned(self) -> bool:
        """Prices are frozen once pinned_at is stamped at signing."""
        return bool(self.pinned_at) and self.has_quoted_prices

    def merge(self, data: dict) -> "CompletionSnapshot":
        """Overlay client-submitted values onto this snapshot.

        Only keys present in data are applied. Pinned prices are never
        taken from submitted data.
        """
        if not isinstance(data, dict):
            return self
        incoming = CompletionSnapshot.from_dict(data)
        for name in MERGEABLE_FIELDS:
            keys = QUANTITY_KEYS.get(name, (name,))
            if any(key in data for key in keys):
                setattr(self, name, getattr(incoming, name))
        return self
