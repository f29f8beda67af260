"""
Department to shipping zone resolution.

Maps the department typed at checkout to one of the five Olva pricing zones.
Lookup is tolerant of case, surrounding or repeated whitespace and accents
("Junín", " san  martin "), and anything unknown falls into the remote zone.
"""

import re
import unicodedata
from collections.abc import Mapping
from typing import Optional

from purrfect_glow.database.models.shipping import ShippingZone

DEPARTMENT_ZONES: dict[str, ShippingZone] = {
    "LIMA": ShippingZone.LIMA_LOCAL,
    "CALLAO": ShippingZone.LIMA_PROVINCIAS,
    # Coast
    "LA LIBERTAD": ShippingZone.COSTA_NACIONAL,
    "LAMBAYEQUE": ShippingZone.COSTA_NACIONAL,
    "PIURA": ShippingZone.COSTA_NACIONAL,
    "TUMBES": ShippingZone.COSTA_NACIONAL,
    "ICA": ShippingZone.COSTA_NACIONAL,
    "AREQUIPA": ShippingZone.COSTA_NACIONAL,
    "MOQUEGUA": ShippingZone.COSTA_NACIONAL,
    "TACNA": ShippingZone.COSTA_NACIONAL,
    "ANCASH": ShippingZone.COSTA_NACIONAL,
    # Highlands and jungle
    "CUSCO": ShippingZone.SIERRA_SELVA,
    "PUNO": ShippingZone.SIERRA_SELVA,
    "JUNIN": ShippingZone.SIERRA_SELVA,
    "AYACUCHO": ShippingZone.SIERRA_SELVA,
    "APURIMAC": ShippingZone.SIERRA_SELVA,
    "HUANCAVELICA": ShippingZone.SIERRA_SELVA,
    "CAJAMARCA": ShippingZone.SIERRA_SELVA,
    "HUANUCO": ShippingZone.SIERRA_SELVA,
    "PASCO": ShippingZone.SIERRA_SELVA,
    "LORETO": ShippingZone.SIERRA_SELVA,
    "UCAYALI": ShippingZone.SIERRA_SELVA,
    "SAN MARTIN": ShippingZone.SIERRA_SELVA,
    "AMAZONAS": ShippingZone.SIERRA_SELVA,
    "MADRE DE DIOS": ShippingZone.SIERRA_SELVA,
}

DEFAULT_ZONE = ShippingZone.ZONAS_REMOTAS

_WHITESPACE = re.compile(r"\s+")


def normalize_department(department: Optional[str]) -> str:
    """
    Canonical form of a department name.

    Strips and collapses whitespace, removes accents and upper-cases.
    Non-string input normalizes to an empty string.
    """
    if not isinstance(department, str):
        return ""
    decomposed = unicodedata.normalize("NFKD", department)
    folded = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _WHITESPACE.sub(" ", folded).strip().upper()


class ZoneResolver:
    """
    Resolves departments to shipping zones over an injectable mapping.

    Keys of the mapping are normalized on construction, so callers may pass
    human-written names.
    """

    def __init__(
        self,
        mapping: Optional[Mapping[str, ShippingZone]] = None,
        default: ShippingZone = DEFAULT_ZONE,
    ):
        source = DEPARTMENT_ZONES if mapping is None else mapping
        self._mapping = {
            normalize_department(name): zone for name, zone in source.items()
        }
        self.default = default

    def resolve(self, department: Optional[str]) -> ShippingZone:
        """
        Resolve a department to its zone.

        Never raises; unmapped or malformed input resolves to the default zone.
        """
        return self._mapping.get(normalize_department(department), self.default)

    def departments(self) -> list[str]:
        """Normalized department names known to this resolver, sorted."""
        return sorted(self._mapping)


_default_resolver = ZoneResolver()


def resolve_zone(department: Optional[str]) -> ShippingZone:
    """
    Resolve a department using the built-in Peruvian department map.

    Example:
        >>> resolve_zone("Cusco")
        <ShippingZone.SIERRA_SELVA: 'SIERRA_SELVA'>
    """
    return _default_resolver.resolve(department)
