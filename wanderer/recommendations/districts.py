from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

ANY_DISTRICT = "Any District"

# Municipality name fragments, matched case-insensitively as substrings of an
# entity's municipality or location. Fragments carry no "City" suffix:
# "Legazpi" matches both "Legazpi" and "Legazpi City".
DISTRICTS: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "District 1": (
        "Tabaco",
        "Tiwi",
        "Malinao",
        "Malilipot",
        "Bacacay",
        "Santo Domingo",
    ),
    "District 2": (
        "Legazpi",
        "Daraga",
        "Camalig",
        "Manito",
        "Rapu-Rapu",
    ),
    "District 3": (
        "Ligao",
        "Guinobatan",
        "Pio Duran",
        "Pioduran",
        "Jovellar",
        "Oas",
        "Polangui",
        "Libon",
    ),
})


def district_names() -> list[str]:
    return [*DISTRICTS.keys(), ANY_DISTRICT]


def municipalities_for(district: str | None) -> tuple[str, ...]:
    """Return the municipality fragments for *district* (empty if unknown)."""
    if not district:
        return ()
    return DISTRICTS.get(district.strip(), ())


def in_district(district: str | None, *texts: str | None) -> bool:
    """True if any of *texts* mentions a municipality of *district*."""
    fragments = municipalities_for(district)
    if not fragments:
        return False
    for text in texts:
        if not isinstance(text, str) or not text.strip():
            continue
        lower = text.lower()
        if any(f.lower() in lower for f in fragments):
            return True
    return False


def district_of(text: str | None) -> str | None:
    """Return the first district whose municipalities appear in *text*."""
    for name in DISTRICTS:
        if in_district(name, text):
            return name
    return None
