from __future__ import annotations

import threading
from typing import Dict, Optional, Tuple

from prometheus_client import CollectorRegistry, Counter

from .models import DIRECTION_UNKNOWN, Flow

LABEL_NAMES = ("direction", "private", "country", "asn", "asn_org")

LabelTuple = Tuple[str, str, str, str, str]


class FlowCounters:
    """
    Owner of the flow_bytes_total counter family.

    The family is registered on the registry passed in, or on a fresh
    CollectorRegistry. The exporter serves that same registry, so nothing
    here touches the process wide default registry.

    prometheus_client locks every child value on increment, which keeps
    concurrent adds on one label tuple linearizable while the scrape thread
    reads.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry if registry is not None else CollectorRegistry()
        self._bytes = Counter(
            "flow_bytes",
            "Flow Bytes.",
            labelnames=LABEL_NAMES,
            registry=self.registry,
        )

    def add(self, labels: LabelTuple, amount: int) -> None:
        self._bytes.labels(*labels).inc(amount)

    def value(self, labels: LabelTuple) -> float:
        sample = self.registry.get_sample_value(
            "flow_bytes_total", dict(zip(LABEL_NAMES, labels))
        )
        return sample or 0.0

    def snapshot(self) -> Dict[LabelTuple, float]:
        """
        Current value of every label tuple seen so far.
        """
        out: Dict[LabelTuple, float] = {}
        for metric in self._bytes.collect():
            for sample in metric.samples:
                if sample.name != "flow_bytes_total":
                    continue
                key: LabelTuple = tuple(sample.labels[n] for n in LABEL_NAMES)  # type: ignore[assignment]
                out[key] = sample.value
        return out


class MetricAggregator:
    """
    Maps an enriched Flow to a counter increment.

    Traffic is attributed to the remote peer:
      in   remote is the source
      out  remote is the destination

    Flows with unknown direction are counted as skipped and never touch the
    counters.
    """

    def __init__(self, counters: FlowCounters):
        self.counters = counters
        self._lock = threading.Lock()
        self._observed = 0
        self._skipped = 0

    def observe(self, flow: Flow) -> None:
        remote = flow.remote_peer()
        if flow.direction == DIRECTION_UNKNOWN or remote is None:
            with self._lock:
                self._skipped += 1
            return

        labels: LabelTuple = (
            flow.direction,
            flow.privacy,
            remote.country,
            remote.asn,
            remote.asn_org,
        )
        self.counters.add(labels, flow.bytes)

        with self._lock:
            self._observed += 1

    def status(self) -> Dict[str, int]:
        with self._lock:
            return {"observed": self._observed, "skipped_unknown": self._skipped}
