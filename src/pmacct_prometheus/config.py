from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Tuple

from .collector import DEFAULT_COMMAND

ENV_PREFIX = "PMACCT_EXPORTER_"


def _env_bool(raw: Optional[str], default: bool) -> bool:
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _split_list(raw: str) -> List[str]:
    return [p.strip() for p in raw.split(",") if p.strip()]


def parse_listen_address(addr: str) -> Tuple[str, int]:
    """
    Parse a Go style listen address.

      ":9590"          -> ("0.0.0.0", 9590)
      "127.0.0.1:9590" -> ("127.0.0.1", 9590)
      "[::1]:9590"     -> ("::1", 9590)
    """
    host, sep, port = addr.strip().rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"listen address must be host:port, got {addr!r}")

    port_num = int(port)
    if not 0 < port_num < 65536:
        raise ValueError(f"port out of range in {addr!r}")

    host = host.strip("[]") or "0.0.0.0"
    return host, port_num


@dataclass
class ExporterConfig:
    """
    Runtime settings. Defaults match the upstream container image layout,
    databases next to the binary and metrics on :9590.

    Environment variables, all optional:
      PMACCT_EXPORTER_LISTEN            ":9590"
      PMACCT_EXPORTER_VERBOSE           "1" to log every flow
      PMACCT_EXPORTER_CITY_DB           path to GeoLite2-City.mmdb
      PMACCT_EXPORTER_ASN_DB            path to GeoLite2-ASN.mmdb
      PMACCT_EXPORTER_COLLECTOR_COMMAND JSON list, e.g. '["pmacctd", "-f", "/etc/pmacctd.conf"]'
      PMACCT_EXPORTER_LOCAL_ADDRESSES   comma separated extra local addresses
      PMACCT_EXPORTER_MCP               "1" to serve MCP tools on stdio
    """

    listen: str = ":9590"
    verbose: bool = False
    city_db: str = "GeoLite2-City.mmdb"
    asn_db: str = "GeoLite2-ASN.mmdb"
    collector_command: List[str] = field(default_factory=lambda: list(DEFAULT_COMMAND))
    local_addresses: List[str] = field(default_factory=list)
    mcp: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ExporterConfig":
        env = os.environ if environ is None else environ
        cfg = cls()

        def get(name: str) -> Optional[str]:
            return env.get(ENV_PREFIX + name)

        if get("LISTEN"):
            cfg.listen = str(get("LISTEN"))
        cfg.verbose = _env_bool(get("VERBOSE"), cfg.verbose)
        if get("CITY_DB"):
            cfg.city_db = str(get("CITY_DB"))
        if get("ASN_DB"):
            cfg.asn_db = str(get("ASN_DB"))

        raw_cmd = get("COLLECTOR_COMMAND")
        if raw_cmd:
            cmd = json.loads(raw_cmd)
            if not isinstance(cmd, list) or not cmd or not all(isinstance(c, str) for c in cmd):
                raise ValueError(f"{ENV_PREFIX}COLLECTOR_COMMAND must be a non empty JSON list of strings")
            cfg.collector_command = cmd

        raw_local = get("LOCAL_ADDRESSES")
        if raw_local:
            cfg.local_addresses = _split_list(raw_local)

        cfg.mcp = _env_bool(get("MCP"), cfg.mcp)
        return cfg

    def listen_address(self) -> Tuple[str, int]:
        return parse_listen_address(self.listen)
