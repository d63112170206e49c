"""Schedule entries for fully executed contracts.

Functions:
- upsert_schedule_entry(): Create or update the calendar entry for a hunt
- infer_contract_dates(): Resolve a contract's hunt dates
- parse_contract_details(): Read hunt details back out of contract text
- upsert_schedule_entry_from_contract(): Schedule a fully executed contract

Date resolution order: completion snapshot, linked hunt, contract text,
then a default one-week window starting today. Text parsing only exists
for contracts written before snapshots carried dates.
"""

import logging
import re
from datetime import date, datetime, time, timedelta, timezone as dt_timezone
from typing import NamedTuple

from django.db import transaction
from django.utils import timezone

from .models import Hunt, HuntContract, ScheduleEntry
from .snapshots import CompletionSnapshot

logger = logging.getLogger(__name__)

DEFAULT_SCHEDULE_DAYS = 7
DEFAULT_TITLE = "Guided Hunt"

DETAIL_PATTERNS = {
    "species": re.compile(r"Species:\s*([^\n]+)", re.IGNORECASE),
    "unit": re.compile(r"Unit:\s*([^\n]+)", re.IGNORECASE),
    "weapon": re.compile(r"Weapon:\s*([^\n]+)", re.IGNORECASE),
    "hunt_code": re.compile(r"Hunt Code:\s*([A-Za-z0-9-]+)", re.IGNORECASE),
    "camp_name": re.compile(r"Camp:\s*([^\n]+)", re.IGNORECASE),
    "start_date": re.compile(r"Start Date:\s*(\d{4}-\d{2}-\d{2})", re.IGNORECASE),
    "end_date": re.compile(r"End Date:\s*(\d{4}-\d{2}-\d{2})", re.IGNORECASE),
}
# Values the renderer writes for missing details
PLACEHOLDER_VALUES = {"not specified", "tbd", ""}


class DateRange(NamedTuple):
    """Inclusive hunt window and where it came from."""

    start: datetime
    end: datetime
    source: str


def day_start(value: date) -> datetime:
    return datetime.combine(value, time.min, tzinfo=dt_timezone.utc)


def day_end(value: date) -> datetime:
    return datetime.combine(value, time(23, 59, 59), tzinfo=dt_timezone.utc)


def parse_contract_details(content: str | None) -> dict:
    """Extract hunt details from rendered contract text.

    Returns:
        Dict with only the details found; placeholder values are skipped.
    """
    details = {}
    for name, pattern in DETAIL_PATTERNS.items():
        match = pattern.search(content or "")
        if not match:
            continue
        value = match.group(1).strip()
        if value.lower() in PLACEHOLDER_VALUES:
            continue
        details[name] = value
    return details


def infer_contract_dates(contract: HuntContract, today: date | None = None) -> DateRange:
    """Resolve the hunt dates for a contract.

    Args:
        contract: The contract to schedule
        today: Anchor for the default window (defaults to today)

    Returns:
        DateRange with source "snapshot", "hunt", "content" or "default"
    """
    snapshot = CompletionSnapshot.from_dict(contract.completion_data)
    if snapshot.client_start_date and snapshot.client_end_date:
        return DateRange(day_start(snapshot.client_start_date), day_end(snapshot.client_end_date), "snapshot")

    hunt = contract.hunt
    if hunt is not None and hunt.start_time and hunt.end_time:
        return DateRange(hunt.start_time, hunt.end_time, "hunt")

    details = parse_contract_details(contract.content)
    if "start_date" in details and "end_date" in details:
        try:
            start = date.fromisoformat(details["start_date"])
            end = date.fromisoformat(details["end_date"])
        except ValueError:
            start = end = None
        if start and end and start <= end:
            logger.warning(f"Contract {contract.pk}: hunt dates inferred from contract text")
            return DateRange(day_start(start), day_end(end), "content")

    start = timezone.now() if today is None else day_start(today)
    return DateRange(start, start + timedelta(days=DEFAULT_SCHEDULE_DAYS), "default")


def schedule_title(species: str | None = None, hunt_code: str | None = None) -> str:
    if species:
        return f"{species} Hunt"
    if hunt_code:
        return f"Hunt {hunt_code}"
    return DEFAULT_TITLE


def upsert_schedule_entry(
    *,
    outfitter,
    hunt: Hunt | None,
    date_range,
    participants: list[str],
    title: str,
    contract: HuntContract | None = None,
    **details,
) -> ScheduleEntry:
    """Create or update the schedule entry for a hunt.

    Entries are keyed by hunt, or by contract when there is no hunt.

    Args:
        outfitter: Owning outfitter
        hunt: Hunt being scheduled
        date_range: (start, end) datetimes
        participants: Participant emails
        title: Calendar title
        contract: Contract that produced the entry
        **details: species, unit, weapon, hunt_code, camp_name

    Returns:
        The saved ScheduleEntry
    """
    start, end = date_range[0], date_range[1]
    defaults = {
        "outfitter": outfitter,
        "title": title,
        "start_time": start,
        "end_time": end,
        "participants": sorted({p.strip().lower() for p in participants if p and p.strip()}),
        "contract": contract,
    }
    for name in ("species", "unit", "weapon", "hunt_code", "camp_name"):
        if details.get(name):
            defaults[name] = details[name]

    if hunt is None and contract is None:
        raise ValueError("A schedule entry needs a hunt or a contract")

    if hunt is not None:
        entry, created = ScheduleEntry.objects.update_or_create(hunt=hunt, defaults=defaults)
    else:
        entry, created = ScheduleEntry.objects.update_or_create(
            contract=contract, hunt=None, defaults=defaults,
        )
    logger.info(f"{'Created' if created else 'Updated'} schedule entry {entry.pk} ({title})")
    return entry


def _participants(contract: HuntContract, hunt: Hunt | None) -> list[str]:
    emails = [contract.client_email]
    if hunt is not None and hunt.client_id:
        emails.append(hunt.client.email)
    return [email for email in emails if email]


@transaction.atomic
def upsert_schedule_entry_from_contract(contract: HuntContract) -> ScheduleEntry:
    """Schedule a fully executed contract.

    With a linked hunt, the hunt is confirmed for the contract's client and
    moved to the resolved dates. Without one, a hunt is created from the
    contract's details and linked back to the contract.
    """
    hunt = Hunt.objects.select_for_update().get(pk=contract.hunt_id) if contract.hunt_id else None
    contract = HuntContract.objects.select_for_update().get(pk=contract.pk)
    date_range = infer_contract_dates(contract)

    if hunt is not None:
        if contract.client_id:
            hunt.client_id = contract.client_id
        hunt.tag_status = Hunt.TagStatus.CONFIRMED
        if date_range.source != "default":
            hunt.start_time, hunt.end_time = date_range.start, date_range.end
        hunt.save()
        details = {
            "species": hunt.species,
            "unit": hunt.unit,
            "weapon": hunt.weapon,
            "hunt_code": hunt.hunt_code,
            "camp_name": hunt.camp_name,
        }
        title = hunt.title or schedule_title(hunt.species, hunt.hunt_code)
    else:
        details = parse_contract_details(contract.content)
        logger.warning(f"Contract {contract.pk} has no hunt; creating one from contract text")
        details.pop("start_date", None)
        details.pop("end_date", None)
        title = schedule_title(details.get("species"), details.get("hunt_code"))
        hunt = Hunt.objects.create(
            outfitter_id=contract.outfitter_id,
            client_id=contract.client_id,
            title=title,
            hunt_type=Hunt.HuntType.PRIVATE_LAND,
            tag_status=Hunt.TagStatus.CONFIRMED,
            start_time=date_range.start,
            end_time=date_range.end,
            **details,
        )
        contract.hunt = hunt
        contract.save(update_fields=["hunt", "updated_at"])

    return upsert_schedule_entry(
        outfitter=contract.outfitter,
        hunt=hunt,
        date_range=date_range,
        participants=_participants(contract, hunt),
        title=title,
        contract=contract,
        **details,
    )
