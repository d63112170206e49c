"""Shared fixtures for hunt contract tests."""

from datetime import date
from decimal import Decimal

import pytest

from django_hunt_contracts.models import (
    Client,
    ContractTemplate,
    Hunt,
    Outfitter,
    PricingItem,
)
from django_hunt_contracts.workflow import (
    complete_booking,
    record_signature,
    review_contract,
    set_tag_status,
    submit_client_completion,
)
from tests.helpers import day_range


@pytest.fixture
def outfitter(db):
    return Outfitter.objects.create(name="High Country Outfitters", phone="555-0100", email="office@highcountry.test")


@pytest.fixture
def other_outfitter(db):
    return Outfitter.objects.create(name="Other Outfitter")


@pytest.fixture
def hunter(outfitter):
    return Client.objects.create(
        outfitter=outfitter,
        first_name="Jane",
        last_name="Hunter",
        email="jane@example.test",
    )


@pytest.fixture
def elk_package(outfitter):
    """5-day elk rifle package at $5,000."""
    return PricingItem.objects.create(
        outfitter=outfitter,
        title="Elk Rifle 5-Day",
        category="Guided Hunts",
        species="Elk",
        weapons="Rifle",
        included_days=5,
        amount_usd=Decimal("5000.00"),
        sort_order=1,
    )


@pytest.fixture
def template(outfitter):
    return ContractTemplate.objects.create(
        outfitter=outfitter,
        name="Standard hunt contract",
        content=(
            "Contract for {{client_name}}\n"
            "Hunt: {{hunt_title}} ({{hunt_code}})\n"
            "Species: {{species}}\n"
            "Dates: {{start_date}} to {{end_date}}\n"
        ),
    )


@pytest.fixture
def draw_hunt(outfitter, hunter):
    """Draw hunt with a client assigned, tag still pending."""
    start, end = day_range(date(2026, 10, 1), date(2026, 10, 5))
    return Hunt.objects.create(
        outfitter=outfitter,
        client=hunter,
        title="Elk Hunt",
        species="Elk",
        unit="34",
        weapon="Rifle",
        hunt_type=Hunt.HuntType.DRAW,
        hunt_code="ELK-1-294",
        start_time=start,
        end_time=end,
        hunt_window_start=date(2026, 9, 20),
        hunt_window_end=date(2026, 10, 31),
        tag_status=Hunt.TagStatus.APPLIED,
    )


@pytest.fixture
def private_hunt(outfitter, hunter):
    """Private-land hunt with a client assigned and the tag confirmed."""
    return Hunt.objects.create(
        outfitter=outfitter,
        client=hunter,
        species="Elk",
        unit="16A",
        hunt_type=Hunt.HuntType.PRIVATE_LAND,
        tag_status=Hunt.TagStatus.CONFIRMED,
    )


@pytest.fixture
def executed_contract(draw_hunt, hunter, template, elk_package):
    """Fully executed $5,200 contract (5-day plan plus 2 extra days)."""
    contract = set_tag_status(draw_hunt, Hunt.TagStatus.DRAWN).contract
    complete_booking(
        draw_hunt,
        client=hunter,
        start_date=date(2026, 10, 1),
        end_date=date(2026, 10, 7),
        selected_pricing_item_id=elk_package.pk,
        quantities={"extra_days": 2},
    )
    submit_client_completion(contract, {})
    review_contract(contract, approve=True)
    record_signature(contract, party="client")
    return record_signature(contract, party="admin").contract
