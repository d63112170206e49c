"""Bill composer.

Combines a base price with priced add-ons into an itemized bill and renders
the contract text that carries it.

Base price precedence:
    1. Prices pinned into the completion snapshot at signing
    2. The explicitly selected catalog entry
    3. The top-ranked matching base package

Composing twice from the same inputs yields the same total to the cent;
reconciliation relies on this when it replays a bill.
"""

import re
from datetime import date, timezone as dt_timezone
from decimal import Decimal
from typing import NamedTuple

from django.utils import timezone

from .addons import (
    ADDON_KINDS,
    AddonKind,
    AddonQuantities,
    AddonRates,
    calculate_addon_amount,
    rates_from_pinned,
    resolve_addon_rates,
)
from .matching import hunt_days_from_range, select_base_price
from .money import ZERO, format_usd, to_cents, to_decimal
from .snapshots import CompletionSnapshot, PinnedLine

NOT_SPECIFIED = "Not specified"
DATE_TBD = "TBD"
DEFAULT_BASE_TITLE = "Guide fee"

BILL_HEADER = "\n---\n\nBILL"
BILL_BLOCK_RE = re.compile(r"\n?---\s*\n+\s*BILL[\s\S]*")
PLACEHOLDER_RE = re.compile(r"\{\{\s*([a-z_]+)\s*\}\}")

PLACEHOLDERS = (
    "client_name",
    "client_email",
    "hunt_title",
    "hunt_code",
    "species",
    "unit",
    "weapon",
    "start_date",
    "end_date",
    "camp_name",
    "outfitter_name",
    "outfitter_phone",
    "outfitter_email",
)
DATE_PLACEHOLDERS = ("start_date", "end_date")
# Contact details render blank rather than "Not specified"
BLANK_PLACEHOLDERS = ("outfitter_phone", "outfitter_email")

ADDON_LABELS = {
    AddonKind.EXTRA_DAYS: ("Extra days", "day"),
    AddonKind.NON_HUNTER: ("Non-hunters", "person"),
    AddonKind.SPOTTER: ("Spotter(s)", "person"),
}

HUNT_TYPE_LABELS = {
    "private_land": "Private Land Tag",
    "draw": "Draw Tag",
    "unit_wide": "Unit-Wide Tag",
}


class BillLine(NamedTuple):
    """One line of the bill."""

    key: str
    label: str
    amount: Decimal
    quantity: int = 1
    unit_amount: Decimal | None = None
    unit: str | None = None
    pricing_item_id: str | None = None

    @property
    def is_base(self) -> bool:
        return self.key == "base"

    def render(self) -> str:
        if self.is_base:
            return f"{self.label}: {format_usd(self.amount)}"
        return (
            f"{self.label} ({self.quantity} × {format_usd(self.unit_amount)}/{self.unit}): "
            f"{format_usd(self.amount)}"
        )


class Bill(NamedTuple):
    """Itemized bill: base lines, non-zero add-on lines and the total."""

    lines: list[BillLine]
    total: Decimal
    rates: AddonRates

    @property
    def base_lines(self) -> list[BillLine]:
        return [line for line in self.lines if line.is_base]

    @property
    def addon_lines(self) -> list[BillLine]:
        return [line for line in self.lines if not line.is_base]

    @property
    def total_cents(self) -> int:
        return to_cents(self.total)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def title(self) -> str:
        """Title used on payment items: the first base line, else a generic label."""
        base = self.base_lines
        return base[0].label if base else DEFAULT_BASE_TITLE

    def render(self) -> str:
        return render_bill_block(self)


class ComposedContract(NamedTuple):
    """Rendered contract content and the bill and snapshot behind it."""

    content: str
    bill: Bill
    snapshot: CompletionSnapshot


def _find_item(items, pricing_item_id):
    wanted = str(pricing_item_id)
    return next((item for item in items if str(item.id) == wanted), None)


def resolve_base_lines(
    items,
    *,
    selected_pricing_item_id=None,
    species: str | None = None,
    weapon: str | None = None,
    days: int | None = None,
    pinned_lines: list[PinnedLine] | None = None,
) -> list[BillLine]:
    """Resolve the base-price line(s) for a bill."""
    if pinned_lines is not None:
        return [
            BillLine("base", line.title, line.amount, pricing_item_id=line.pricing_item_id)
            for line in pinned_lines
        ]

    item = None
    if selected_pricing_item_id:
        item = _find_item(items, selected_pricing_item_id)
    if item is None:
        item = select_base_price(items, species, weapon, days)
    if item is None:
        return []
    amount = to_decimal(item.amount_usd) or ZERO
    return [BillLine("base", item.title or DEFAULT_BASE_TITLE, amount, pricing_item_id=str(item.id))]


def compose_bill(
    items,
    *,
    selected_pricing_item_id=None,
    species: str | None = None,
    weapon: str | None = None,
    days: int | None = None,
    quantities: AddonQuantities | None = None,
    pinned: CompletionSnapshot | None = None,
) -> Bill:
    """Compose an itemized bill.

    Args:
        items: The outfitter's pricing catalog
        selected_pricing_item_id: Client's explicit plan selection
        species: Hunt species for matching
        weapon: Hunt weapon for matching
        days: Hunt duration for matching
        quantities: Add-on counts
        pinned: Snapshot whose pinned prices replace catalog lookups

    Returns:
        Bill with lines and total. No base price is not an error; the bill
        then carries only add-on lines, or nothing.
    """
    items = list(items)
    quantities = quantities or AddonQuantities()

    if pinned is not None and pinned.is_pinned:
        base_lines = resolve_base_lines(items, pinned_lines=pinned.pinned_base_lines)
        rates = rates_from_pinned(pinned.pinned_rates)
    else:
        base_lines = resolve_base_lines(
            items,
            selected_pricing_item_id=selected_pricing_item_id,
            species=species,
            weapon=weapon,
            days=days,
        )
        rates = resolve_addon_rates(items)

    addons = calculate_addon_amount(quantities, rates=rates)
    lines = list(base_lines)
    for addon in addons.lines:
        label, unit = ADDON_LABELS[addon.kind]
        lines.append(BillLine(
            addon.kind.value,
            label,
            addon.amount,
            quantity=addon.quantity,
            unit_amount=addon.rate,
            unit=unit,
        ))

    total = sum((line.amount for line in base_lines), ZERO) + addons.total
    return Bill(lines, total, rates)


def render_bill_block(bill: Bill) -> str:
    """Render the BILL block; an empty bill renders as an empty string."""
    if bill.is_empty:
        return ""
    rows = [BILL_HEADER, ""]
    rows.extend(line.render() for line in bill.lines)
    rows.append("")
    rows.append(f"Total: {format_usd(bill.total)}")
    return "\n".join(rows)


def strip_bill_block(content: str) -> str:
    """Remove a previously rendered BILL block from contract text."""
    match = BILL_BLOCK_RE.search(content or "")
    if not match:
        return content or ""
    return content[:match.start()]


def attach_bill(content: str, bill: Bill) -> str:
    """Replace any BILL block in content with the given bill."""
    body = strip_bill_block(content).rstrip()
    block = render_bill_block(bill)
    if not block:
        return body
    return body + "\n" + block


def _date_text(value) -> str:
    if value is None:
        return DATE_TBD
    if hasattr(value, "astimezone") and getattr(value, "tzinfo", None) is not None:
        value = value.astimezone(dt_timezone.utc)
    return value.strftime("%Y-%m-%d")


def build_contract_context(hunt, client=None, outfitter=None, snapshot: CompletionSnapshot | None = None) -> dict:
    """Placeholder values for a hunt; missing values are None."""
    client = client if client is not None else hunt.client
    outfitter = outfitter if outfitter is not None else hunt.outfitter
    start = hunt.start_time
    end = hunt.end_time
    if snapshot is not None and snapshot.client_start_date and snapshot.client_end_date:
        start = snapshot.client_start_date
        end = snapshot.client_end_date

    return {
        "client_name": client.full_name if client else None,
        "client_email": client.email if client else None,
        "hunt_title": hunt.title or f"{hunt.species or 'Hunt'} Hunt",
        "hunt_code": hunt.hunt_code or None,
        "species": hunt.species or None,
        "unit": hunt.unit or None,
        "weapon": hunt.weapon or None,
        "start_date": _date_text(start) if start else None,
        "end_date": _date_text(end) if end else None,
        "camp_name": hunt.camp_name or None,
        "outfitter_name": outfitter.name if outfitter else None,
        "outfitter_phone": outfitter.phone if outfitter else None,
        "outfitter_email": outfitter.email if outfitter else None,
        "hunt_type": hunt.hunt_type,
    }


def _placeholder_value(name: str, context: dict) -> str:
    value = context.get(name)
    if value:
        return str(value)
    if name in DATE_PLACEHOLDERS:
        return DATE_TBD
    if name in BLANK_PLACEHOLDERS:
        return ""
    return NOT_SPECIFIED


def render_contract_body(template_content: str | None, context: dict, generated_on: date | None = None) -> str:
    """Render contract text from a template, or the fallback layout.

    Unknown placeholders are left untouched.
    """
    if template_content:
        def substitute(match):
            name = match.group(1)
            if name not in PLACEHOLDERS:
                return match.group(0)
            return _placeholder_value(name, context)

        return PLACEHOLDER_RE.sub(substitute, template_content)

    generated_on = generated_on or timezone.now().date()
    def value(name):
        return _placeholder_value(name, context)

    hunt_type = HUNT_TYPE_LABELS.get(context.get("hunt_type") or "", "Hunt")
    return (
        "HUNT CONTRACT\n\n"
        f"Client: {value('client_name')}\n"
        f"Email: {value('client_email')}\n\n"
        "Hunt Details:\n"
        f"- Hunt Type: {hunt_type}\n"
        f"- Hunt Code: {value('hunt_code')}\n"
        f"- Species: {value('species')}\n"
        f"- Unit: {value('unit')}\n"
        f"- Weapon: {value('weapon')}\n"
        f"- Start Date: {value('start_date')}\n"
        f"- End Date: {value('end_date')}\n\n"
        f"This contract confirms your {hunt_type.lower()} hunt booking.\n\n"
        f"Generated: {generated_on.isoformat()}"
    )


def hunt_bill_inputs(hunt, snapshot: CompletionSnapshot) -> dict:
    """Matching inputs for a hunt; the snapshot's selection and dates win."""
    if snapshot.client_start_date and snapshot.client_end_date:
        days = hunt_days_from_range(snapshot.client_start_date, snapshot.client_end_date)
    elif hunt is not None:
        days = hunt_days_from_range(hunt.start_time, hunt.end_time)
    else:
        days = None

    selected = snapshot.selected_pricing_item_id
    if not selected and hunt is not None and hunt.selected_pricing_item_id:
        selected = str(hunt.selected_pricing_item_id)

    return {
        "selected_pricing_item_id": selected,
        "species": hunt.species if hunt is not None else None,
        "weapon": hunt.weapon if hunt is not None else None,
        "days": days,
    }


def compose_hunt_bill(hunt, *, items, snapshot: CompletionSnapshot) -> Bill:
    """Compose the bill for a hunt from its completion snapshot.

    hunt may be None for contracts not yet assigned to a calendar slot;
    only an explicit selection can then price the base line.
    """
    return compose_bill(
        items,
        quantities=snapshot.quantities(),
        pinned=snapshot,
        **hunt_bill_inputs(hunt, snapshot),
    )


def record_quoted_prices(snapshot: CompletionSnapshot, bill: Bill) -> CompletionSnapshot:
    """Store the prices a bill was rendered with in the snapshot."""
    snapshot.pinned_base_lines = [
        PinnedLine(title=line.label, amount=line.amount, pricing_item_id=line.pricing_item_id)
        for line in bill.base_lines
    ]
    snapshot.pinned_rates = {kind.value: bill.rates.for_kind(kind).amount for kind in ADDON_KINDS}
    return snapshot


def compose_contract(
    hunt,
    *,
    items,
    snapshot: CompletionSnapshot,
    template=None,
    client=None,
    outfitter=None,
    generated_on: date | None = None,
) -> ComposedContract:
    """Render a hunt's contract content with its bill appended.

    The snapshot's dates (when set) override the hunt's for both the
    rendered dates and the duration used for package matching. The
    returned snapshot records the prices that were billed.
    """
    bill = compose_hunt_bill(hunt, items=items, snapshot=snapshot)
    context = build_contract_context(hunt, client=client, outfitter=outfitter, snapshot=snapshot)
    body = render_contract_body(template.content if template else None, context, generated_on)
    if not snapshot.is_pinned:
        record_quoted_prices(snapshot, bill)
    return ComposedContract(attach_bill(body, bill), bill, snapshot)
