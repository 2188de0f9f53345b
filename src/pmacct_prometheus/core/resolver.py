from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from .errors import InvalidAddress, LookupFailed
from .models import IPAddress, Peer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CityRecord:
    country: str = ""
    country_iso: str = ""
    city: str = ""
    latitude: float = 0.0
    longitude: float = 0.0


@dataclass(frozen=True)
class AsnRecord:
    number: int
    organization: str = ""


class CityLookup(Protocol):
    """
    Geolocation lookup service.

    Return None when the database has no record for the address.
    Raise LookupFailed only when the backend itself could not answer.
    """

    def lookup_city(self, ip: IPAddress) -> Optional[CityRecord]:
        ...


class AsnLookup(Protocol):
    """
    Network number lookup service. Same miss and failure rules as CityLookup.
    """

    def lookup_asn(self, ip: IPAddress) -> Optional[AsnRecord]:
        ...


class NullLookup:
    """
    Lookup service with no data. Every address is a miss.
    Used when a database file is not configured.
    """

    def lookup_city(self, ip: IPAddress) -> Optional[CityRecord]:
        return None

    def lookup_asn(self, ip: IPAddress) -> Optional[AsnRecord]:
        return None


def parse_address(text: str) -> IPAddress:
    """
    Parse a canonical v4 or v6 address string, no port.
    """
    try:
        return ipaddress.ip_address(text)
    except (ValueError, AttributeError) as e:
        raise InvalidAddress(str(text)) from e


class PeerResolver:
    """
    Resolves an address string into a Peer.

    The two lookups are independent. A miss or backend failure on one leaves
    only its own fields empty. An unparseable address is the one hard error.

    Every call queries the lookup services again. There is no cache, so two
    calls against the same database snapshot return equal Peers.
    """

    def __init__(self, city_lookup: CityLookup, asn_lookup: AsnLookup):
        self.city_lookup = city_lookup
        self.asn_lookup = asn_lookup

    def _city(self, ip: IPAddress) -> Optional[CityRecord]:
        try:
            return self.city_lookup.lookup_city(ip)
        except LookupFailed as e:
            logger.warning("city lookup failed for %s: %s", ip, e)
            return None

    def _asn(self, ip: IPAddress) -> Optional[AsnRecord]:
        try:
            return self.asn_lookup.lookup_asn(ip)
        except LookupFailed as e:
            logger.warning("asn lookup failed for %s: %s", ip, e)
            return None

    def resolve(self, text: str) -> Peer:
        ip = parse_address(text)

        city = self._city(ip) or CityRecord()
        asn = self._asn(ip)

        return Peer(
            ip=ip,
            country=city.country,
            country_iso=city.country_iso,
            city=city.city,
            latitude=city.latitude,
            longitude=city.longitude,
            asn=str(asn.number) if asn is not None and asn.number else "",
            asn_org=asn.organization if asn is not None else "",
        )
