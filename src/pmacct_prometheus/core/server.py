from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

from mcp.server.fastmcp import FastMCP

from .aggregator import LABEL_NAMES, MetricAggregator
from .classifier import classify
from .errors import InvalidAddress
from .models import LocalAddressSet
from .pump import LinePump
from .resolver import PeerResolver, parse_address


class ExporterMCPServer:
    """
    MCP control surface for a running exporter.

    Responsibilities:
      Report pipeline health counters
      Show the current counter values, largest first
      Resolve and classify addresses on demand with the live databases

    Tools are thin wrappers around the methods below so they can be called
    without a transport.
    """

    def __init__(
        self,
        pump: LinePump,
        aggregator: MetricAggregator,
        resolver: PeerResolver,
        local_addresses: LocalAddressSet,
    ):
        self.pump = pump
        self.aggregator = aggregator
        self.resolver = resolver
        self.local_addresses = frozenset(local_addresses)
        self.mcp = FastMCP("pmacct_prometheus")

        self._register_tools()

    def pipeline_status(self) -> Dict[str, Any]:
        return self.pump.status()

    def counter_snapshot(self, limit: int = 50) -> List[Dict[str, Any]]:
        rows = []
        for labels, value in self.aggregator.counters.snapshot().items():
            row: Dict[str, Any] = dict(zip(LABEL_NAMES, labels))
            row["bytes"] = value
            rows.append(row)

        rows.sort(key=lambda r: r["bytes"], reverse=True)
        return rows[: max(0, int(limit))]

    def resolve_peer(self, ip: str) -> Dict[str, Any]:
        try:
            peer = self.resolver.resolve(ip)
        except InvalidAddress as e:
            return {"ok": False, "error": str(e)}

        out = asdict(peer)
        out["ip"] = str(peer.ip)
        out["ok"] = True
        return out

    def classify_pair(self, ip_src: str, ip_dst: str) -> Dict[str, Any]:
        try:
            src = parse_address(ip_src)
            dst = parse_address(ip_dst)
        except InvalidAddress as e:
            return {"ok": False, "error": str(e)}

        direction, private = classify(src, dst, self.local_addresses)
        return {"ok": True, "direction": direction, "private": private}

    def list_local_addresses(self) -> List[str]:
        return sorted(str(ip) for ip in self.local_addresses)

    def _register_tools(self) -> None:
        @self.mcp.tool()
        def pipeline_status() -> Dict[str, Any]:
            return self.pipeline_status()

        @self.mcp.tool()
        def counter_snapshot(limit: int = 50) -> List[Dict[str, Any]]:
            return self.counter_snapshot(limit=limit)

        @self.mcp.tool()
        def resolve_peer(ip: str) -> Dict[str, Any]:
            return self.resolve_peer(ip)

        @self.mcp.tool()
        def classify_pair(ip_src: str, ip_dst: str) -> Dict[str, Any]:
            return self.classify_pair(ip_src, ip_dst)

        @self.mcp.tool()
        def list_local_addresses() -> List[str]:
            return self.list_local_addresses()

    def run(self) -> None:
        self.mcp.run()
