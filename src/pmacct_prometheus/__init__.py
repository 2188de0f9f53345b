"""
pmacct_prometheus

Turns the JSON flow stream printed by pmacctd into Prometheus byte counters.

Core ideas
1. The collector prints one JSON object per flow on stdout
2. Each flow is enriched with GeoLite2 country and ASN data for both peers
3. Direction is derived from the local host addresses
4. Bytes are attributed to the remote peer and exposed as counters
"""

__version__ = "0.1.0"

__all__ = ["core", "lookups", "cli", "collector", "config"]
