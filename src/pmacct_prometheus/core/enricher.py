from __future__ import annotations

import logging

from .classifier import classify
from .models import PRIVACY_PRIVATE, PRIVACY_PUBLIC, Flow, LocalAddressSet
from .parser import parse_line
from .resolver import PeerResolver

logger = logging.getLogger(__name__)


class FlowEnricher:
    """
    Raw line in, annotated Flow out.

    Steps:
      parse the JSON record
      resolve source and destination peers
      classify direction and privacy

    Raises MalformedRecord when parsing fails and InvalidAddress when either
    endpoint is not an IP address. Keeps no state between calls.
    """

    def __init__(self, resolver: PeerResolver, local_addresses: LocalAddressSet):
        self.resolver = resolver
        self.local_addresses = frozenset(local_addresses)

    def enrich(self, line: str) -> Flow:
        record = parse_line(line)

        source = self.resolver.resolve(record.ip_src)
        destination = self.resolver.resolve(record.ip_dst)

        direction, private = classify(source.ip, destination.ip, self.local_addresses)

        flow = Flow(
            ip_src=source.ip,
            ip_dst=destination.ip,
            packets=record.packets,
            bytes=record.bytes,
            proto=record.proto,
            direction=direction,
            privacy=PRIVACY_PRIVATE if private else PRIVACY_PUBLIC,
            source=source,
            destination=destination,
        )

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("%s\n%s\n%s", record, source, destination)

        return flow
