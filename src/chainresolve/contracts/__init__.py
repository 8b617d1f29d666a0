"""ABI tables and read-only contract access."""

from .contract import RECORDS_EVENTS_STARTING_BLOCK, Contract, EventLog

__all__ = ["Contract", "EventLog", "RECORDS_EVENTS_STARTING_BLOCK"]
