"""Test helpers shared across modules."""

from datetime import date, datetime, time, timezone as dt_timezone
from decimal import Decimal

from django_hunt_contracts.models import PricingItem


def utc(year, month, day, hour=0, minute=0, second=0):
    return datetime(year, month, day, hour, minute, second, tzinfo=dt_timezone.utc)


def day_range(start: date, end: date):
    return (
        datetime.combine(start, time.min, tzinfo=dt_timezone.utc),
        datetime.combine(end, time(23, 59, 59), tzinfo=dt_timezone.utc),
    )


def catalog_item(**kwargs):
    """Unsaved PricingItem for pure calculator tests."""
    kwargs.setdefault("title", "Package")
    kwargs.setdefault("amount_usd", Decimal("0"))
    return PricingItem(**kwargs)
