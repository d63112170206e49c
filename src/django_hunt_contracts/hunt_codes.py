"""Hunt code helpers.

Hunt codes look like ``ELK-1-294``: species prefix, weapon digit, number.
The middle digit encodes the weapon (1 rifle / any legal, 2 bow,
3 muzzleloader).
"""

WEAPON_DIGITS = {
    "1": "Rifle",
    "2": "Bow",
    "3": "Muzzleloader",
}


def weapon_digit(code: str | None) -> str | None:
    if not code:
        return None
    parts = code.strip().split("-")
    if len(parts) < 2:
        return None
    return parts[1].strip() or None


def weapon_from_hunt_code(code: str | None) -> str | None:
    """Calendar weapon label for a hunt code, or None if the digit is unknown."""
    return WEAPON_DIGITS.get(weapon_digit(code) or "")
