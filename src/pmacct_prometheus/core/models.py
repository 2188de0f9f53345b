from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import FrozenSet, Optional, Union

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
LocalAddressSet = FrozenSet[IPAddress]

DIRECTION_IN = "in"
DIRECTION_OUT = "out"
DIRECTION_UNKNOWN = "unknown"

PRIVACY_PRIVATE = "private"
PRIVACY_PUBLIC = "public"


@dataclass(frozen=True)
class RawFlowRecord:
    """
    One decoded pmacctd JSON line.

    Example input:
      {"event_type": "purge", "ip_src": "10.0.1.1", "ip_dst": "10.0.2.1", "packets": 2, "bytes": 143}

    Addresses are still strings here. The resolver parses them.
    """

    ip_src: str
    ip_dst: str
    packets: int
    bytes: int
    proto: str = ""


@dataclass(frozen=True)
class Peer:
    """
    Geolocation and network ownership of one flow endpoint.

    Fields stay at their zero value when a database has no record:
      empty strings for names and asn
      0.0 for coordinates
    """

    ip: IPAddress
    country: str = ""
    country_iso: str = ""
    city: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    asn: str = ""
    asn_org: str = ""


@dataclass(frozen=True)
class Flow:
    """
    Enriched flow, consumed once by the aggregator.

    direction
      "in" when the destination is local, "out" when the source is local,
      "unknown" otherwise.

    privacy
      "private" when both endpoints are private use addresses.
    """

    ip_src: IPAddress
    ip_dst: IPAddress
    packets: int
    bytes: int
    proto: str
    direction: str
    privacy: str
    source: Peer
    destination: Peer

    @property
    def is_private(self) -> bool:
        return self.privacy == PRIVACY_PRIVATE

    def remote_peer(self) -> Optional[Peer]:
        """
        The endpoint that is not the local host. None for unknown direction.
        """
        if self.direction == DIRECTION_IN:
            return self.source
        if self.direction == DIRECTION_OUT:
            return self.destination
        return None
