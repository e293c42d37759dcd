"""
Field resolution for loosely-shaped stored records.

Addresses and name snapshots were written by several generations of the
dashboard, each with its own key names. Resolution goes through one ordered
candidate list per concept instead of ad hoc lookups at every call site.
"""

from typing import Any, Iterable, Mapping

ADDRESS_LINE_KEYS = (
    "fullLine", "line1", "street", "address1", "address",
    "full", "formatted", "text", "label", "line", "street1",
)
ADDRESS_DISPLAY_KEYS = ("fullLine", "full", "formatted", "label", "text")
CITY_KEYS = ("city", "town")
STATE_KEYS = ("state", "region", "province")
ZIP_KEYS = ("zip", "postalCode", "postcode", "zipCode")
PERSON_NAME_KEYS = ("name", "fullName", "displayName")


def _as_mapping(obj: Any) -> Mapping[str, Any]:
    if isinstance(obj, Mapping):
        return obj
    # pydantic models with extra fields
    if hasattr(obj, "model_dump"):
        return obj.model_dump(by_alias=True)
    return {}


def pick_string(obj: Any, keys: Iterable[str]) -> str:
    """
    Return the first value among keys that is a non-blank string.

    Args:
        obj: Mapping (or pydantic model) to search
        keys: Candidate keys in priority order

    Returns:
        The matching value stripped of surrounding whitespace, or "" if
        no candidate holds a non-blank string.
    """
    data = _as_mapping(obj)
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def resolve_address(address: Any) -> dict[str, str]:
    """
    Normalize a stored address into display, line1, city, state and zip.

    A bare string is treated as both display and line1.
    """
    if isinstance(address, str):
        text = address.strip()
        return {"display": text, "line1": text, "city": "", "state": "", "zip": ""}

    line1 = pick_string(address, ADDRESS_LINE_KEYS)
    display = pick_string(address, ADDRESS_DISPLAY_KEYS) or line1
    return {
        "display": display,
        "line1": line1,
        "city": pick_string(address, CITY_KEYS),
        "state": pick_string(address, STATE_KEYS),
        "zip": pick_string(address, ZIP_KEYS),
    }


def address_display(address: Any, fallback: str = "") -> str:
    """
    One-line label for an address.

    Falls back to "City, ST" when no line is present, then to fallback.
    """
    resolved = resolve_address(address)
    if resolved["display"]:
        return resolved["display"]
    if resolved["city"] or resolved["state"]:
        return f"{resolved['city']}, {resolved['state']}".strip(", ")
    return fallback


def person_name(snapshot: Any) -> str:
    """Name from a snapshot stored either as a string or as an object."""
    if not snapshot:
        return ""
    if isinstance(snapshot, str):
        return snapshot.strip()
    return pick_string(snapshot, PERSON_NAME_KEYS)


def compact(data: Mapping[str, Any]) -> dict[str, Any]:
    """Drop None and blank-string values (shallow)."""
    return {
        k: v for k, v in data.items()
        if v is not None and not (isinstance(v, str) and not v.strip())
    }
