#!/usr/bin/env python3
"""
bulk/routing.py - Routing values for parent/child documents.

A child document must be routed to the shard of its root ancestor, so its
routing is the root's id. Parents are looked up in the current batch first,
then in the ancestry cache, and only then with one engine lookup per
missing ancestor.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from searchbulk.bulk import config
from searchbulk.bulk.ancestry import AncestryCache
from searchbulk.bulk.compose import DocumentComposer
from searchbulk.bulk.diagnostics import BuildDiagnostics
from searchbulk.bulk.types import (
    Absent,
    AncestrySource,
    HasIdentity,
    Structured,
    identify,
)
from searchbulk.logger import RoutingCycleError


class RoutingResolver:
    def __init__(
        self,
        join_field: Optional[str],
        composer: DocumentComposer,
        cache: AncestryCache,
        source: Optional[AncestrySource],
        index_objects_by_id: Callable[[], Mapping[str, Any]],
        diagnostics: BuildDiagnostics,
        max_depth: Optional[int] = None,
    ):
        self.join_field = join_field
        self._composer = composer
        self._cache = cache
        self._source = source
        self._index_objects_by_id = index_objects_by_id
        self._diagnostics = diagnostics
        self.max_depth = config.ROUTING_MAX_DEPTH if max_depth is None else max_depth
        self._routings: Dict[int, Tuple[Any, Optional[str]]] = {}
        self._existing: Dict[str, Optional[str]] = {}

    def parent_id(self, obj: Any) -> Any:
        """Immediate parent id of obj, falling back to its cached parent."""
        join = self._composer.join_value(obj, self.join_field)
        if isinstance(join, Structured):
            return join.parent
        if isinstance(join, Absent) and self._cache:
            ident = identify(obj)
            if not isinstance(ident, HasIdentity):
                return None
            record = self._cache.get(ident.id)
            self._diagnostics.emit(
                "join_field_missing",
                id=str(ident.id),
                cached_parent=record.parent_id if record else None,
            )
            return record.parent_id if record else None
        return None

    def existing_routing(self, doc_id: Any) -> Optional[str]:
        """Routing of a document already in the engine."""
        if doc_id is None:
            return None
        key = str(doc_id)
        record = self._cache.get(key)
        if record is not None:
            return record.routing
        if key in self._existing:
            return self._existing[key]

        self._diagnostics.emit("ancestry_cache_miss", id=key)
        routing = None
        if self._source is not None:
            self._diagnostics.emit("fallback_lookup", id=key)
            found = self._source.routing_for(key)
            routing = None if found is None else str(found)
        self._existing[key] = routing
        return routing

    def routing(self, obj: Any) -> Optional[str]:
        """Routing for obj, or None for objects without identity."""
        return self._resolve(obj, [])

    def _resolve(self, obj: Any, chain: List[str]) -> Optional[str]:
        if obj is None:
            return None
        ident = identify(obj)
        if not isinstance(ident, HasIdentity):
            return None

        held = self._routings.get(id(obj))
        if held is not None and held[0] is obj:
            return held[1]

        own = str(ident.id)
        if own in chain:
            raise RoutingCycleError(chain + [own])
        if len(chain) > self.max_depth:
            raise RoutingCycleError(chain + [own], limit=self.max_depth)

        parent_id = self.parent_id(obj)
        if parent_id is None:
            routing = own
        else:
            parent = self._index_objects_by_id().get(str(parent_id))
            routing = self._resolve(parent, chain + [own])
            if routing is None:
                routing = self.existing_routing(parent_id)

        self._routings[id(obj)] = (obj, routing)
        return routing
