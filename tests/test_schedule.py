"""Tests for schedule entries."""

from datetime import date

import pytest
from freezegun import freeze_time

from django_hunt_contracts.models import Hunt, HuntContract, ScheduleEntry
from django_hunt_contracts.schedule import (
    infer_contract_dates,
    parse_contract_details,
    upsert_schedule_entry,
    upsert_schedule_entry_from_contract,
)
from tests.helpers import day_range, utc

LEGACY_CONTENT = (
    "HUNT CONTRACT\n\n"
    "Hunt Details:\n"
    "- Hunt Code: ELK-1-294\n"
    "- Species: Elk\n"
    "- Unit: Not specified\n"
    "- Start Date: 2026-10-03\n"
    "- End Date: 2026-10-06\n"
)


def executed(outfitter, hunter, **kwargs):
    signed = utc(2026, 9, 1)
    return HuntContract.objects.create(
        outfitter=outfitter,
        client=hunter,
        client_email=hunter.email,
        status=HuntContract.Status.FULLY_EXECUTED,
        client_signed_at=signed,
        admin_signed_at=signed,
        **kwargs,
    )


class TestParseContractDetails:
    """Reading hunt details from contract text."""

    def test_reads_details_and_skips_placeholders(self):
        """Found details are returned; placeholder values are skipped."""
        details = parse_contract_details(LEGACY_CONTENT)
        assert details == {
            "species": "Elk",
            "hunt_code": "ELK-1-294",
            "start_date": "2026-10-03",
            "end_date": "2026-10-06",
        }

    def test_empty_content(self):
        """No content, no details."""
        assert parse_contract_details(None) == {}


@pytest.mark.django_db
class TestInferContractDates:
    """Date resolution order."""

    def test_snapshot_dates_win(self, outfitter, hunter, draw_hunt):
        """Client-chosen dates beat the hunt's."""
        contract = executed(
            outfitter, hunter, hunt=draw_hunt,
            completion_data={"client_start_date": "2026-10-10", "client_end_date": "2026-10-12"},
        )
        result = infer_contract_dates(contract)
        assert result.source == "snapshot"
        assert (result.start, result.end) == day_range(date(2026, 10, 10), date(2026, 10, 12))

    def test_hunt_dates_next(self, outfitter, hunter, draw_hunt):
        """Without a snapshot the hunt's dates are used."""
        contract = executed(outfitter, hunter, hunt=draw_hunt)
        result = infer_contract_dates(contract)
        assert result.source == "hunt"
        assert result.start == draw_hunt.start_time

    def test_content_dates_then(self, outfitter, hunter):
        """Older contracts fall back to dates in their text."""
        contract = executed(outfitter, hunter, content=LEGACY_CONTENT)
        result = infer_contract_dates(contract)
        assert result.source == "content"
        assert result.start == utc(2026, 10, 3)

    def test_default_week(self, outfitter, hunter):
        """With nothing to go on, a week from today."""
        contract = executed(outfitter, hunter)
        result = infer_contract_dates(contract, today=date(2026, 10, 17))
        assert result.source == "default"
        assert result.start == utc(2026, 10, 17)
        assert result.end == utc(2026, 10, 24)

    @freeze_time("2026-10-17 12:00:00")
    def test_default_week_starts_now(self, outfitter, hunter):
        """Without an anchor the window opens at the current time."""
        result = infer_contract_dates(executed(outfitter, hunter))
        assert result.start == utc(2026, 10, 17, 12)
        assert result.end == utc(2026, 10, 24, 12)


@pytest.mark.django_db
class TestUpsertScheduleEntry:
    """Creating and updating calendar entries."""

    def test_upsert_is_keyed_by_hunt(self, outfitter, draw_hunt):
        """A second upsert updates the same entry."""
        upsert_schedule_entry(
            outfitter=outfitter, hunt=draw_hunt, date_range=day_range(date(2026, 10, 1), date(2026, 10, 5)),
            participants=["Jane@Example.test"], title="Elk Hunt",
        )
        entry = upsert_schedule_entry(
            outfitter=outfitter, hunt=draw_hunt, date_range=day_range(date(2026, 10, 2), date(2026, 10, 5)),
            participants=["jane@example.test", " "], title="Elk Hunt", species="Elk",
        )
        assert ScheduleEntry.objects.count() == 1
        assert entry.start_time == utc(2026, 10, 2)
        assert entry.participants == ["jane@example.test"]
        assert entry.species == "Elk"

    def test_needs_hunt_or_contract(self, outfitter):
        """An entry must be keyed by something."""
        with pytest.raises(ValueError):
            upsert_schedule_entry(
                outfitter=outfitter, hunt=None, date_range=(utc(2026, 10, 1), utc(2026, 10, 2)),
                participants=[], title="Hunt",
            )

    def test_contract_with_hunt_confirms_hunt(self, outfitter, hunter, draw_hunt):
        """Scheduling confirms the tag and moves the hunt to the contract dates."""
        contract = executed(
            outfitter, hunter, hunt=draw_hunt,
            completion_data={"client_start_date": "2026-10-10", "client_end_date": "2026-10-12"},
        )
        entry = upsert_schedule_entry_from_contract(contract)

        draw_hunt.refresh_from_db()
        assert draw_hunt.tag_status == Hunt.TagStatus.CONFIRMED
        assert draw_hunt.start_time == utc(2026, 10, 10)
        assert entry.title == "Elk Hunt"
        assert entry.hunt_code == "ELK-1-294"

    def test_contract_without_hunt_creates_one(self, outfitter, hunter):
        """A contract with no hunt gets a private-land hunt built from its text."""
        contract = executed(outfitter, hunter, content=LEGACY_CONTENT)

        entry = upsert_schedule_entry_from_contract(contract)

        contract.refresh_from_db()
        hunt = contract.hunt
        assert hunt.hunt_type == Hunt.HuntType.PRIVATE_LAND
        assert hunt.species == "Elk"
        assert hunt.hunt_code == "ELK-1-294"
        assert entry.hunt_id == hunt.pk
        assert entry.title == "Elk Hunt"
        assert entry.start_time == utc(2026, 10, 3)
