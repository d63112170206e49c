"""Pricing matcher.

Selects the base-package catalog entries that apply to a hunt by species,
weapon and duration. Pure functions; callers pass the catalog in.

Ranking:
    1. Entries whose included_days equals the hunt duration
    2. Entries with no included_days (any duration)
    Entries priced for a different duration never match.
    Ties keep catalog order (sort_order, created_at, id).
"""

from datetime import date, datetime, timezone as dt_timezone

from . import conf

WEAPON_ALIASES = {
    "bow": "Archery",
}


def normalize_weapon(weapon: str | None) -> str | None:
    """Normalize a calendar weapon label to its tag type (Bow -> Archery)."""
    if not weapon or not weapon.strip():
        return None
    w = weapon.strip()
    return WEAPON_ALIASES.get(w.lower(), w)


def split_list(value: str | None) -> list[str]:
    """Split a comma-separated catalog list, dropping blanks."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def as_utc_date(value) -> date | None:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(dt_timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    return None


def hunt_days_from_range(start, end) -> int | None:
    """Inclusive number of calendar days between two dates or datetimes.

    Datetimes count by their UTC calendar date, so a hunt stored as
    00:00:00 to 23:59:59 on the same day is one day. Returns None when
    either bound is missing or the range is inverted.
    """
    start_date = as_utc_date(start)
    end_date = as_utc_date(end)
    if start_date is None or end_date is None:
        return None
    days = (end_date - start_date).days + 1
    return days if days >= 1 else None


def is_addon_category(category: str | None) -> bool:
    return (category or "").strip().lower() == conf.addons_category()


def is_base_package(item) -> bool:
    """Base packages are neither in the add-ons category nor tagged as add-ons."""
    if getattr(item, "addon_type", ""):
        return False
    return not is_addon_category(getattr(item, "category", ""))


def catalog_order_key(item):
    """Deterministic catalog order used for every tie-break."""
    created_at = getattr(item, "created_at", None)
    return (
        getattr(item, "sort_order", 0) or 0,
        created_at.timestamp() if created_at else 0.0,
        str(getattr(item, "id", "")),
    )


def pricing_item_matches_hunt(item, species: str | None, weapon: str | None, days: int | None) -> bool:
    """Whether a catalog entry applies to the hunt's species, weapon and duration."""
    species_list = split_list(getattr(item, "species", ""))
    if species_list and species and species.strip():
        wanted = species.strip().lower()
        if not any(s.lower() == wanted for s in species_list):
            return False

    weapon_list = split_list(getattr(item, "weapons", ""))
    normalized = normalize_weapon(weapon)
    if weapon_list and normalized:
        wanted = normalized.lower()
        if not any(normalize_weapon(w).lower() == wanted for w in weapon_list):
            return False

    included_days = getattr(item, "included_days", None)
    if included_days is not None and days:
        if included_days != days:
            return False

    return True


def match_pricing_for_hunt(items, species: str | None, weapon: str | None, days: int | None) -> list:
    """Return matching base packages, exact-duration entries first.

    An empty list means there is no base price for the hunt.
    """
    matched = [
        item for item in items
        if is_base_package(item) and pricing_item_matches_hunt(item, species, weapon, days)
    ]

    def rank(item):
        exact = 0 if days and getattr(item, "included_days", None) == days else 1
        return (exact, catalog_order_key(item))

    return sorted(matched, key=rank)


def select_base_price(items, species: str | None, weapon: str | None, days: int | None):
    """Top-ranked base package for the hunt, or None."""
    matched = match_pricing_for_hunt(items, species, weapon, days)
    return matched[0] if matched else None
