from __future__ import annotations

import ipaddress
import logging
import socket
from typing import Iterable, Set

import psutil

from pmacct_prometheus.core.models import IPAddress, LocalAddressSet
from pmacct_prometheus.core.resolver import parse_address

logger = logging.getLogger(__name__)


def _strip_zone(addr: str) -> str:
    # fe80::1%eth0 -> fe80::1
    return addr.split("%", 1)[0]


def current_local_addresses(extra: Iterable[str] = ()) -> LocalAddressSet:
    """
    Every IPv4 and IPv6 address bound to a local interface, plus extras.

    Computed once at startup. Interfaces that come up later are not seen,
    pass their addresses as extras if that matters.

    Raises InvalidAddress if an extra is not an IP address.
    """
    found: Set[IPAddress] = set()

    for ifname, addrs in psutil.net_if_addrs().items():
        for a in addrs:
            if a.family not in (socket.AF_INET, socket.AF_INET6):
                continue
            try:
                found.add(ipaddress.ip_address(_strip_zone(a.address)))
            except ValueError:
                logger.debug("skipping unparseable address %r on %s", a.address, ifname)

    for text in extra:
        if text.strip():
            found.add(parse_address(text.strip()))

    logger.info("local addresses: %s", ", ".join(sorted(str(ip) for ip in found)))
    return frozenset(found)
