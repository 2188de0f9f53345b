from __future__ import annotations

import json
from typing import Any, Dict

from .errors import MalformedRecord
from .models import RawFlowRecord


def is_flow_line(line: str) -> bool:
    """
    pmacctd mixes JSON records with plain status output on stdout.
    Only lines whose first non blank character is "{" are flow records.
    """
    return line.lstrip().startswith("{")


def _require_str(obj: Dict[str, Any], name: str, line: str) -> str:
    value = obj.get(name)
    if not isinstance(value, str):
        raise MalformedRecord(f"field {name} missing or not a string", line)
    return value


def _require_count(obj: Dict[str, Any], name: str, line: str) -> int:
    value = obj.get(name)
    # bool is an int subclass, json true/false is not a count
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedRecord(f"field {name} missing or not an integer", line)
    if value < 0:
        raise MalformedRecord(f"field {name} is negative", line)
    return value


def parse_line(line: str) -> RawFlowRecord:
    """
    Decode one pmacctd JSON line into a RawFlowRecord.

    Required fields: ip_src, ip_dst, packets, bytes.
    Optional: proto. Anything else, like event_type, is ignored.

    Raises MalformedRecord on anything that does not fit.
    """
    text = line.strip()
    if not is_flow_line(text):
        raise MalformedRecord("not a flow record", line)

    try:
        obj = json.loads(text)
    except ValueError as e:
        raise MalformedRecord(f"invalid json: {e}", line) from e

    if not isinstance(obj, dict):
        raise MalformedRecord("flow record is not a json object", line)

    proto = obj.get("proto", "")
    if proto is None:
        proto = ""
    if not isinstance(proto, str):
        raise MalformedRecord("field proto is not a string", line)

    return RawFlowRecord(
        ip_src=_require_str(obj, "ip_src", line),
        ip_dst=_require_str(obj, "ip_dst", line),
        packets=_require_count(obj, "packets", line),
        bytes=_require_count(obj, "bytes", line),
        proto=proto,
    )
