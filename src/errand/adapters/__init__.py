"""Adapters - I/O implementations of ports."""

from .memory_store import MemoryTaskStore
from .json_source import JsonTaskSource
from .rrule_text import RRuleTextParser

__all__ = [
    "MemoryTaskStore",
    "JsonTaskSource",
    "RRuleTextParser",
]
