"""
Identity lookup correlation.
"""

from owner_scout.lookup.correlator import (
    LookupBusyError,
    LookupCommandError,
    LookupCorrelator,
    LookupGateway,
    LookupReply,
    parse_lookup_reply,
)

__all__ = [
    "LookupBusyError",
    "LookupCommandError",
    "LookupCorrelator",
    "LookupGateway",
    "LookupReply",
    "parse_lookup_reply",
]
