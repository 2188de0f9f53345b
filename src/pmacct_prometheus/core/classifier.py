from __future__ import annotations

from typing import Tuple

from .models import (
    DIRECTION_IN,
    DIRECTION_OUT,
    DIRECTION_UNKNOWN,
    IPAddress,
    LocalAddressSet,
)


def is_private_address(ip: IPAddress) -> bool:
    """
    Loopback, link local, RFC1918, RFC4193 and the other ranges the
    ipaddress module flags as private use.
    """
    return ip.is_private or ip.is_loopback or ip.is_link_local


def classify(
    ip_src: IPAddress,
    ip_dst: IPAddress,
    local_addresses: LocalAddressSet,
) -> Tuple[str, bool]:
    """
    Return (direction, is_private) for one flow.

    Destination is checked first, so a flow between two local addresses
    is always "in". Keep this order, existing dashboards depend on it.
    """
    if ip_dst in local_addresses:
        direction = DIRECTION_IN
    elif ip_src in local_addresses:
        direction = DIRECTION_OUT
    else:
        direction = DIRECTION_UNKNOWN

    private = is_private_address(ip_src) and is_private_address(ip_dst)
    return direction, private
