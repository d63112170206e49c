"""Tests for the pricing matcher."""

from datetime import date
from decimal import Decimal

import pytest

from django_hunt_contracts.matching import (
    hunt_days_from_range,
    is_base_package,
    match_pricing_for_hunt,
    normalize_weapon,
    pricing_item_matches_hunt,
    select_base_price,
    split_list,
)
from tests.helpers import catalog_item, day_range, utc


class TestHuntDays:
    """Inclusive day counting."""

    def test_single_day_stored_as_full_day_is_one_day(self):
        """00:00:00 to 23:59:59 on the same date counts as one day."""
        start, end = day_range(date(2026, 10, 1), date(2026, 10, 1))
        assert hunt_days_from_range(start, end) == 1

    def test_week_is_seven_days(self):
        """Oct 1 through Oct 7 is seven days."""
        start, end = day_range(date(2026, 10, 1), date(2026, 10, 7))
        assert hunt_days_from_range(start, end) == 7

    def test_plain_dates_are_accepted(self):
        """Dates count the same as datetimes."""
        assert hunt_days_from_range(date(2026, 10, 1), date(2026, 10, 5)) == 5

    def test_datetimes_count_by_utc_date(self):
        """Partial days still count as whole calendar days."""
        assert hunt_days_from_range(utc(2026, 10, 1, 18), utc(2026, 10, 2, 6)) == 2

    def test_missing_or_inverted_range_is_unknown(self):
        """Missing bounds and inverted ranges have no duration."""
        assert hunt_days_from_range(None, date(2026, 10, 1)) is None
        assert hunt_days_from_range(date(2026, 10, 5), date(2026, 10, 1)) is None


class TestListHelpers:
    """Catalog list parsing and weapon normalization."""

    def test_split_list_drops_blanks(self):
        """Empty entries and whitespace are dropped."""
        assert split_list(" Elk, ,Mule Deer ,") == ["Elk", "Mule Deer"]
        assert split_list("") == []

    def test_bow_normalizes_to_archery(self):
        """Bow is the calendar label for the Archery tag type."""
        assert normalize_weapon("Bow") == "Archery"
        assert normalize_weapon(" bow ") == "Archery"
        assert normalize_weapon("Rifle") == "Rifle"
        assert normalize_weapon("  ") is None


class TestMatching:
    """Selection and ranking of base packages."""

    @pytest.fixture
    def any_duration(self):
        return catalog_item(title="Elk Any", species="Elk", amount_usd=Decimal("4000"), sort_order=0)

    @pytest.fixture
    def five_day(self):
        return catalog_item(
            title="Elk 5-Day", species="Elk", included_days=5, amount_usd=Decimal("5000"), sort_order=1,
        )

    @pytest.fixture
    def three_day(self):
        return catalog_item(
            title="Elk 3-Day", species="Elk", included_days=3, amount_usd=Decimal("3500"), sort_order=2,
        )

    def test_exact_duration_ranks_first(self, any_duration, five_day, three_day):
        """An entry priced for the hunt's duration outranks a duration-agnostic one."""
        matched = match_pricing_for_hunt([any_duration, five_day, three_day], "Elk", None, 5)
        assert matched == [five_day, any_duration]

    def test_different_duration_is_excluded(self, three_day):
        """An entry priced for another duration never matches."""
        assert match_pricing_for_hunt([three_day], "Elk", None, 5) == []

    def test_unknown_duration_keeps_catalog_order(self, any_duration, five_day, three_day):
        """Without a duration every entry matches, in catalog order."""
        matched = match_pricing_for_hunt([three_day, five_day, any_duration], "Elk", None, None)
        assert matched == [any_duration, five_day, three_day]

    def test_species_filter_is_case_insensitive(self, five_day):
        """Species match ignores case; other species are excluded."""
        assert pricing_item_matches_hunt(five_day, "elk", None, 5)
        assert not pricing_item_matches_hunt(five_day, "Mule Deer", None, 5)

    def test_empty_species_list_applies_to_all(self):
        """An entry without species applies to any hunt."""
        item = catalog_item(title="Camp fee", amount_usd=Decimal("250"))
        assert pricing_item_matches_hunt(item, "Pronghorn", "Rifle", 3)

    def test_bow_hunt_matches_archery_entry(self):
        """A Bow hunt matches an entry listed for Archery."""
        item = catalog_item(title="Archery Elk", species="Elk", weapons="Archery, Muzzleloader")
        assert pricing_item_matches_hunt(item, "Elk", "Bow", None)
        assert not pricing_item_matches_hunt(item, "Elk", "Rifle", None)

    def test_addons_are_not_base_packages(self):
        """Add-on entries never price the base line."""
        tagged = catalog_item(title="Extra day", addon_type="extra_days", amount_usd=Decimal("150"))
        in_category = catalog_item(title="Spotter", category="Add-Ons", amount_usd=Decimal("60"))
        package = catalog_item(title="Elk", category="Guided Hunts")
        assert not is_base_package(tagged)
        assert not is_base_package(in_category)
        assert is_base_package(package)
        assert match_pricing_for_hunt([tagged, in_category], None, None, None) == []

    def test_select_base_price_none_without_match(self, three_day):
        """No matching entry means no base price."""
        assert select_base_price([three_day], "Elk", None, 5) is None
        assert select_base_price([], "Elk", None, 5) is None
