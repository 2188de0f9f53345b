from __future__ import annotations


class FlowPipelineError(Exception):
    """
    Base class for per line failures.

    None of these are fatal. The line pump logs them and moves on.
    """


class MalformedRecord(FlowPipelineError):
    """
    A line started with "{" but could not be decoded into a flow record.
    """

    def __init__(self, reason: str, line: str = ""):
        super().__init__(reason)
        self.reason = reason
        self.line = line


class InvalidAddress(FlowPipelineError, ValueError):
    """
    An endpoint address string is not an IPv4 or IPv6 address.
    The whole flow is dropped when this happens.
    """

    def __init__(self, address: str):
        super().__init__(f"invalid ip address {address!r}")
        self.address = address


class LookupFailed(FlowPipelineError):
    """
    A lookup backend failed to answer.

    Different from a miss: a miss is a valid address with no record and is
    returned as None. The resolver degrades both to empty peer fields.
    """
