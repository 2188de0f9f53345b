from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, Optional

from .aggregator import MetricAggregator
from .enricher import FlowEnricher
from .errors import InvalidAddress, MalformedRecord
from .models import Flow
from .parser import is_flow_line

logger = logging.getLogger(__name__)


class LinePump:
    """
    Drives the pipeline for one line stream.

    Flow lines go through the enricher and into the aggregator.
    Everything else goes to diagnostic_sink verbatim.

    run() is a blocking pull loop meant for one dedicated worker. It returns
    when the line iterable is exhausted, which is how shutdown works: close
    the stream and the loop ends after the line it is on. Errors raised by
    the stream itself are not caught.
    """

    def __init__(
        self,
        enricher: FlowEnricher,
        aggregator: MetricAggregator,
        diagnostic_sink: Callable[[str], None] = print,
    ):
        self.enricher = enricher
        self.aggregator = aggregator
        self.diagnostic_sink = diagnostic_sink

        self._running = False
        self._lines = 0
        self._flows = 0
        self._passthrough = 0
        self._malformed = 0
        self._invalid_address = 0

    def process_line(self, line: str) -> Optional[Flow]:
        """
        Handle one line. Returns the Flow that was observed, if any.
        """
        self._lines += 1
        text = line.rstrip("\r\n")

        if not is_flow_line(text):
            self._passthrough += 1
            self.diagnostic_sink(text)
            return None

        try:
            flow = self.enricher.enrich(text)
        except MalformedRecord as e:
            self._malformed += 1
            logger.warning("dropping malformed flow record: %s: %r", e.reason, e.line)
            return None
        except InvalidAddress as e:
            self._invalid_address += 1
            logger.warning("dropping flow with %s", e)
            return None

        self._flows += 1
        self.aggregator.observe(flow)
        return flow

    def run(self, lines: Iterable[str]) -> None:
        self._running = True
        logger.info("line pump started")
        try:
            for line in lines:
                self.process_line(line)
        finally:
            self._running = False
            logger.info("line pump stopped after %d lines", self._lines)

    def status(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "running": self._running,
            "lines": self._lines,
            "flows": self._flows,
            "passthrough": self._passthrough,
            "malformed": self._malformed,
            "invalid_address": self._invalid_address,
        }
        out.update(self.aggregator.status())
        return out
