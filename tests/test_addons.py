"""Tests for the add-on calculator."""

from decimal import Decimal

import pytest
from django.test import override_settings

from django_hunt_contracts.addons import (
    AddonKind,
    AddonQuantities,
    RATE_SOURCE_DEFAULT,
    RATE_SOURCE_HEURISTIC,
    RATE_SOURCE_TAG,
    calculate_addon_amount,
    classify_addon,
    resolve_addon_rates,
)
from tests.helpers import catalog_item


class TestAddonQuantities:
    """Reading add-on counts from stored dicts."""

    def test_reads_current_keys(self):
        """Current keys map straight through."""
        q = AddonQuantities.from_mapping({"extra_days": 2, "extra_non_hunters": 1, "extra_spotters": 3})
        assert q == AddonQuantities(2, 1, 3)

    def test_reads_legacy_keys(self):
        """Older completion keys are still understood."""
        q = AddonQuantities.from_mapping({"additional_days": "2", "non_hunters": 1, "extra_observers": 1})
        assert q == AddonQuantities(2, 1, 1)

    def test_negative_and_garbage_counts_are_zero(self):
        """Counts below zero or unparseable count as zero."""
        q = AddonQuantities.from_mapping({"extra_days": -3, "extra_non_hunters": "lots", "extra_spotters": None})
        assert q.is_empty

    def test_non_dict_is_empty(self):
        """Anything but a dict reads as no add-ons."""
        assert AddonQuantities.from_mapping(None).is_empty


class TestClassification:
    """Tag and keyword classification of catalog entries."""

    def test_tag_wins(self):
        """An explicit addon_type tag classifies regardless of title."""
        item = catalog_item(title="Camp upgrade", addon_type="spotter", amount_usd=Decimal("40"))
        assert classify_addon(item) == (AddonKind.SPOTTER, RATE_SOURCE_TAG)

    def test_keywords_only_apply_in_addons_category(self):
        """Title keywords are ignored outside the add-ons category."""
        outside = catalog_item(title="Extra day", category="Guided Hunts")
        inside = catalog_item(title="Extra day", category="add-ons")
        assert classify_addon(outside) == (None, None)
        assert classify_addon(inside) == (AddonKind.EXTRA_DAYS, RATE_SOURCE_HEURISTIC)

    def test_non_hunter_day_is_not_an_extra_day(self):
        """'Non-hunter per day' prices a non-hunter, not a hunt day."""
        item = catalog_item(title="Non-hunter per day", category="Add-ons")
        assert classify_addon(item) == (AddonKind.NON_HUNTER, RATE_SOURCE_HEURISTIC)

    def test_spotter_day_is_a_spotter(self):
        """'Spotter per day' prices a spotter."""
        item = catalog_item(title="Spotter per day", category="Add-ons")
        assert classify_addon(item) == (AddonKind.SPOTTER, RATE_SOURCE_HEURISTIC)


class TestRateResolution:
    """Per-kind rate resolution."""

    def test_defaults_without_catalog(self):
        """Empty catalog falls back to $100 / $75 / $50."""
        rates = resolve_addon_rates([])
        assert rates.extra_days.amount == Decimal("100")
        assert rates.non_hunter.amount == Decimal("75")
        assert rates.spotter.amount == Decimal("50")
        assert all(rate.source == RATE_SOURCE_DEFAULT for rate in rates)

    def test_tag_outranks_earlier_heuristic(self):
        """A tagged entry beats a keyword match even when it sorts later."""
        heuristic = catalog_item(title="Extra day", category="Add-ons", amount_usd=Decimal("120"), sort_order=0)
        tagged = catalog_item(title="Day rate", addon_type="extra_days", amount_usd=Decimal("150"), sort_order=5)
        rates = resolve_addon_rates([heuristic, tagged])
        assert rates.extra_days.amount == Decimal("150")
        assert rates.extra_days.source == RATE_SOURCE_TAG
        assert rates.extra_days.pricing_item_id == str(tagged.id)

    def test_first_in_catalog_order_wins(self):
        """Among equal sources the first entry in catalog order wins."""
        second = catalog_item(title="Spotter", category="Add-ons", amount_usd=Decimal("80"), sort_order=2)
        first = catalog_item(title="Spotter", category="Add-ons", amount_usd=Decimal("60"), sort_order=1)
        assert resolve_addon_rates([second, first]).spotter.amount == Decimal("60")

    def test_zero_price_falls_back_to_default(self):
        """An entry priced at zero uses the default rate."""
        free = catalog_item(title="Extra day", addon_type="extra_days", amount_usd=Decimal("0"))
        rate = resolve_addon_rates([free]).extra_days
        assert rate.amount == Decimal("100")
        assert rate.source == RATE_SOURCE_DEFAULT

    @override_settings(HUNT_CONTRACTS_DEFAULT_SPOTTER_USD="65")
    def test_defaults_are_configurable(self):
        """Default rates come from settings."""
        assert resolve_addon_rates([]).spotter.amount == Decimal("65")


class TestCalculateAddonAmount:
    """Pricing quantities against rates."""

    def test_total_is_sum_of_quantity_times_rate(self):
        """2 extra days + 1 non-hunter + 2 spotters at defaults."""
        result = calculate_addon_amount(AddonQuantities(2, 1, 2), items=[])
        assert result.total == Decimal("375")
        assert [line.kind for line in result.lines] == [
            AddonKind.EXTRA_DAYS, AddonKind.NON_HUNTER, AddonKind.SPOTTER,
        ]

    def test_zero_quantities_have_no_lines(self):
        """Kinds with zero quantity produce no line."""
        result = calculate_addon_amount(AddonQuantities(extra_spotters=1), items=[])
        assert result.total == Decimal("50")
        assert len(result.lines) == 1

    def test_no_addons_is_zero(self):
        """No quantities cost nothing."""
        assert calculate_addon_amount(AddonQuantities(), items=[]).total == Decimal("0")

    @pytest.mark.parametrize("field", ["extra_days", "extra_non_hunters", "extra_spotters"])
    def test_adding_a_unit_never_lowers_the_total(self, field):
        """Each extra unit of any kind adds its rate to the total."""
        items = [
            catalog_item(title="Extra day", category="Add-ons", amount_usd=Decimal("125")),
            catalog_item(title="Spotter", category="Add-ons", amount_usd=Decimal("40")),
        ]
        base = AddonQuantities(1, 1, 1)
        previous = calculate_addon_amount(base, items=items).total
        for count in range(2, 8):
            total = calculate_addon_amount(base._replace(**{field: count}), items=items).total
            assert total > previous
            previous = total
