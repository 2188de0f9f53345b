"""
Core flow pipeline.

Nothing in here opens databases, sockets or child processes. Lookup services
and the line source are handed in by the caller.
"""

from .models import Flow, Peer, RawFlowRecord
from .errors import FlowPipelineError, InvalidAddress, LookupFailed, MalformedRecord
from .resolver import PeerResolver
from .enricher import FlowEnricher
from .aggregator import FlowCounters, MetricAggregator
from .pump import LinePump

__all__ = [
    "Flow",
    "Peer",
    "RawFlowRecord",
    "FlowPipelineError",
    "InvalidAddress",
    "LookupFailed",
    "MalformedRecord",
    "PeerResolver",
    "FlowEnricher",
    "FlowCounters",
    "MetricAggregator",
    "LinePump",
]
