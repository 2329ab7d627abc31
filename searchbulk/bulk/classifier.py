#!/usr/bin/env python3
"""
bulk/classifier.py - Decide which bulk operations an object turns into.

Objects to index become a full ``index``, a partial ``update`` when update
fields were requested, or a ``delete`` followed by ``index`` when the join
field moved the document to another parent (or out of a parent). Objects to
delete become a single ``delete``.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from searchbulk.bulk.ancestry import AncestryCache
from searchbulk.bulk.compose import DocumentComposer
from searchbulk.bulk.routing import RoutingResolver
from searchbulk.bulk.types import (
    AncestryRecord,
    DocumentType,
    Structured,
    as_json,
    entry_id,
    is_blank,
    is_scalar,
    parse_join_value,
    same_id,
)

Operation = Dict[str, Dict[str, Any]]


class OperationClassifier:
    def __init__(
        self,
        document_type: DocumentType,
        join_field: Optional[str],
        fields: Sequence[str],
        composer: DocumentComposer,
        cache: AncestryCache,
        resolver: RoutingResolver,
        index_id: Callable[[Any], Any],
    ):
        self.document_type = document_type
        self.join_field = join_field
        self.fields = list(fields)
        self._composer = composer
        self._cache = cache
        self._resolver = resolver
        self._index_id = index_id

    def parent_changed(self, document: Mapping[str, Any], old: Optional[AncestryRecord]) -> bool:
        """Whether the join field differs from the document's indexed ancestry.

        Only checked for documents already in the engine, and when the join field is among the requested update
        fields. A structured value changes when its parent differs from the
        cached one; any other value means the document is no longer a child.
        """
        if old is None:
            return False
        if not self.join_field:
            return False
        if self.join_field not in self.fields:
            return False
        if self.join_field not in document:
            return False

        join = parse_join_value(document[self.join_field])
        if isinstance(join, Structured):
            return not same_id(join.parent, old.parent_id)
        return True

    def index_entry(self, obj: Any) -> List[Operation]:
        entry: Dict[str, Any] = {}
        doc_id = self._index_id(obj)
        if doc_id is not None:
            entry["_id"] = doc_id

        data = self._composer.document(obj)
        old = None
        if doc_id is not None and self._cache:
            old = self._cache.get(doc_id)

        if self.join_field:
            routing = self._resolver.routing(obj)
            if routing is not None:
                entry["_routing"] = routing

        if self.parent_changed(data, old):
            entry["data"] = data
            return self.delete_entry(obj)[:1] + [{"index": entry}]
        if self.fields:
            if doc_id is None:
                return []
            entry["data"] = {"doc": self._composer.partial(obj, self.fields)}
            return [{"update": entry}]
        entry["data"] = data
        return [{"index": entry}]

    def delete_entry(self, obj: Any) -> List[Operation]:
        entry: Dict[str, Any] = {}
        doc_id = entry_id(self.document_type, obj)
        routing_id = doc_id
        if doc_id is None:
            doc_id = as_json(obj)
            routing_id = doc_id if is_scalar(obj) else None
        if is_blank(doc_id):
            return []
        entry["_id"] = doc_id

        if self.join_field:
            routing = self._resolver.existing_routing(routing_id)
            if routing is not None:
                entry["_routing"] = routing
        if self._cache.enabled:
            old = self._cache.get(doc_id)
            if old is not None and old.parent_id is not None:
                entry["parent"] = old.parent_id

        return [{"delete": entry}]
