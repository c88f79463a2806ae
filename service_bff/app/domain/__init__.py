"""
Aggregation domain: fan-out/join, partial-failure policy, merge and the
authentication gate that fronts them.
"""

from .aggregator import Aggregator, FetchOutcome, join_both, settle
from .merger import merge
from .request_gate import RequestGate

__all__ = ["Aggregator", "FetchOutcome", "RequestGate", "join_both", "merge", "settle"]
