#!/usr/bin/env python3
"""
bulk/diagnostics.py - Structured diagnostics for one bulk build.

Counts engine round-trips and recoverable lookup misses, logs them as
structured events and forwards them to an optional hook.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from searchbulk.bulk import config
from searchbulk.logger import ContextLogger, get_logger

DiagnosticHook = Callable[[str, Dict[str, Any]], None]

_COUNTED_EVENTS = {
    "ancestry_query": "ancestry_queries",
    "fallback_lookup": "fallback_lookups",
    "ancestry_cache_miss": "cache_misses",
    "join_field_missing": "join_fallbacks",
}


class BuildDiagnostics:
    __slots__ = ("hook", "log", "ancestry_queries", "fallback_lookups", "cache_misses", "join_fallbacks")

    def __init__(self, hook: Optional[DiagnosticHook] = None, document_type: str = ""):
        self.hook = hook
        self.log = ContextLogger(
            get_logger(__name__, json_format=config.DIAGNOSTICS_JSON),
            document_type=document_type,
        )
        self.ancestry_queries = 0
        self.fallback_lookups = 0
        self.cache_misses = 0
        self.join_fallbacks = 0

    def emit(self, event: str, **fields: Any) -> None:
        counter = _COUNTED_EVENTS.get(event)
        if counter:
            setattr(self, counter, getattr(self, counter) + 1)
        self.log.debug(event, event=event, **fields)
        if self.hook is not None:
            self.hook(event, fields)

    @property
    def engine_round_trips(self) -> int:
        return self.ancestry_queries + self.fallback_lookups

    def as_dict(self) -> Dict[str, int]:
        return {counter: getattr(self, counter) for counter in _COUNTED_EVENTS.values()}
