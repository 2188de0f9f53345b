from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
import threading
from contextlib import ExitStack
from typing import Any, Callable, List, Optional

from prometheus_client import start_http_server

from pmacct_prometheus.collector import PmacctCollector
from pmacct_prometheus.config import ExporterConfig
from pmacct_prometheus.core.aggregator import FlowCounters, MetricAggregator
from pmacct_prometheus.core.enricher import FlowEnricher
from pmacct_prometheus.core.models import LocalAddressSet
from pmacct_prometheus.core.pump import LinePump
from pmacct_prometheus.core.resolver import NullLookup, PeerResolver
from pmacct_prometheus.lookups.local import current_local_addresses
from pmacct_prometheus.lookups.maxmind import MaxMindAsnLookup, MaxMindCityLookup

logger = logging.getLogger("pmacct_prometheus")


def build_parser(defaults: ExporterConfig) -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pmacct-prometheus",
        description="Run pmacctd and export GeoIP enriched flow byte counters to Prometheus.",
    )
    p.add_argument("--addr", default=defaults.listen, help="Listening Address for /metrics")
    p.add_argument("--verbose", action="store_true", default=defaults.verbose, help="Be chatty")
    p.add_argument("--city-db", default=defaults.city_db, help="GeoLite2 City database, empty to disable")
    p.add_argument("--asn-db", default=defaults.asn_db, help="GeoLite2 ASN database, empty to disable")
    p.add_argument(
        "--local-address",
        action="append",
        default=list(defaults.local_addresses),
        help="Extra address treated as local, repeatable",
    )
    p.add_argument(
        "--collector-command",
        default=json.dumps(defaults.collector_command),
        help="Collector command line as a JSON list",
    )
    p.add_argument("--mcp", action="store_true", default=defaults.mcp, help="Serve MCP tools on stdio")
    return p


def config_from_args(argv: Optional[List[str]] = None) -> ExporterConfig:
    defaults = ExporterConfig.from_env()
    args = build_parser(defaults).parse_args(argv)

    cmd = json.loads(args.collector_command)
    if not isinstance(cmd, list) or not cmd:
        raise SystemExit("--collector-command must be a non empty JSON list")

    return ExporterConfig(
        listen=args.addr,
        verbose=args.verbose,
        city_db=args.city_db,
        asn_db=args.asn_db,
        collector_command=[str(c) for c in cmd],
        local_addresses=list(args.local_address),
        mcp=args.mcp,
    )


def build_pump(
    resolver: PeerResolver,
    local_addresses: LocalAddressSet,
    counters: FlowCounters,
    diagnostic_sink: Callable[[str], None],
) -> LinePump:
    enricher = FlowEnricher(resolver, local_addresses)
    aggregator = MetricAggregator(counters)
    return LinePump(enricher, aggregator, diagnostic_sink=diagnostic_sink)


def _log_sink(text: str) -> None:
    logger.info("collector: %s", text)


def _open_lookups(cfg: ExporterConfig, stack: ExitStack) -> PeerResolver:
    city: Any = NullLookup()
    asn: Any = NullLookup()

    if cfg.city_db:
        city = stack.enter_context(MaxMindCityLookup(cfg.city_db))
    else:
        logger.warning("no city database configured, country labels will be empty")

    if cfg.asn_db:
        asn = stack.enter_context(MaxMindAsnLookup(cfg.asn_db))
    else:
        logger.warning("no asn database configured, asn labels will be empty")

    return PeerResolver(city, asn)


def run(cfg: ExporterConfig) -> int:
    host, port = cfg.listen_address()

    with ExitStack() as stack:
        resolver = _open_lookups(cfg, stack)
        local_addresses = current_local_addresses(cfg.local_addresses)
        counters = FlowCounters()

        sink: Callable[[str], None] = print
        if cfg.mcp:
            # stdout belongs to the MCP transport
            sink = _log_sink

        pump = build_pump(resolver, local_addresses, counters, sink)

        logger.info("Starting Prometheus web server, available at: http://%s:%d/metrics", host, port)
        start_http_server(port, addr=host, registry=counters.registry)

        collector = PmacctCollector(cfg.collector_command)
        collector.start()

        worker = threading.Thread(
            target=pump.run,
            args=(collector.lines(),),
            name="line-pump",
            daemon=True,
        )
        worker.start()

        stop = threading.Event()

        def _on_signal(signum: int, frame: Any) -> None:
            logger.info("term received, shutting down...")
            stop.set()

        try:
            if cfg.mcp:
                from pmacct_prometheus.core.server import ExporterMCPServer

                ExporterMCPServer(pump, pump.aggregator, resolver, local_addresses).run()
            else:
                signal.signal(signal.SIGINT, _on_signal)
                signal.signal(signal.SIGTERM, _on_signal)
                while worker.is_alive() and not stop.wait(0.5):
                    pass
                if not worker.is_alive() and not stop.is_set():
                    logger.warning("collector output closed, shutting down")
        finally:
            code = collector.stop()
            worker.join(timeout=5.0)

    print("finished!")
    return 0 if not code else 1


def main(argv: Optional[List[str]] = None) -> None:
    """
    Entry point.

    Example:
      export PMACCT_EXPORTER_LOCAL_ADDRESSES=203.0.113.7
      pmacct-prometheus --addr :9590 --city-db /app/GeoLite2-City.mmdb --asn-db /app/GeoLite2-ASN.mmdb
    """
    cfg = config_from_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if cfg.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    sys.exit(run(cfg))


if __name__ == "__main__":
    main()
