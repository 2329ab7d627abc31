#!/usr/bin/env python3
"""
bulk/builder.py - Bulk request body assembly.

BulkBuilder turns objects to index and objects (or ids) to delete into the
body of a single bulk write request. For types with a join field it looks
up the routing and parent of already-indexed documents so child documents
land on their root ancestor's shard, and it re-creates documents whose
parent changed instead of partially updating them.

The body is never sent from here; see ``elasticsearch.helpers.bulk`` or any
other bulk endpoint client for that.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

from searchbulk.bulk.ancestry import AncestryCache
from searchbulk.bulk.classifier import Operation, OperationClassifier
from searchbulk.bulk.compose import DocumentComposer
from searchbulk.bulk.diagnostics import BuildDiagnostics, DiagnosticHook
from searchbulk.bulk.routing import RoutingResolver
from searchbulk.bulk.types import AncestrySource, DocumentType, entry_id, is_blank, join_field
from searchbulk.logger import ContextLogger, get_logger


class BulkBuilder:
    """Builds a bulk body for one document type.

    Args:
        document_type: type whose mapping and composer are used
        index: objects to index
        delete: objects or ids to delete
        fields: field names for partial updates; empty means full documents
        source: engine lookups for routing and parents of indexed documents
        diagnostics: counters/hook for engine round-trips and lookup misses
    """

    def __init__(
        self,
        document_type: DocumentType,
        index: Iterable[Any] = (),
        delete: Iterable[Any] = (),
        fields: Iterable[Any] = (),
        source: Optional[AncestrySource] = None,
        diagnostics: Optional[BuildDiagnostics] = None,
        hook: Optional[DiagnosticHook] = None,
        max_depth: Optional[int] = None,
    ):
        self.document_type = document_type
        self.index = list(index)
        self.delete = list(delete)
        self.fields = [str(f) for f in fields]
        self.source = source
        self.join_field = join_field(document_type)
        self.diagnostics = diagnostics or BuildDiagnostics(hook=hook, document_type=document_type.name)
        self.log = ContextLogger(get_logger(__name__), document_type=document_type.name)

        self._index_ids: Optional[Dict[int, Any]] = None
        self._index_objects_by_id: Optional[Dict[str, Any]] = None
        self._bulk_body: Optional[List[Operation]] = None

        self.composer = DocumentComposer(document_type, self.index)
        self.cache = AncestryCache(
            self.join_field, source, self.index, self.delete, self.composer, self.diagnostics
        )
        self.resolver = RoutingResolver(
            self.join_field,
            self.composer,
            self.cache,
            source,
            self.index_objects_by_id,
            self.diagnostics,
            max_depth=max_depth,
        )
        self.classifier = OperationClassifier(
            document_type,
            self.join_field,
            self.fields,
            self.composer,
            self.cache,
            self.resolver,
            self.index_id,
        )

    def bulk_body(self) -> List[Operation]:
        """Bulk request body: index-side operations, then delete-side ones.

        Computed once; later calls return the same list without touching the
        engine again.
        """
        if self._bulk_body is not None:
            return self._bulk_body

        self.cache.load()
        body: List[Operation] = []
        for obj in self.index:
            body.extend(self.classifier.index_entry(obj))
        for obj in self.delete:
            body.extend(self.classifier.delete_entry(obj))

        self.log.info(
            "bulk body built",
            index=len(self.index),
            delete=len(self.delete),
            operations=len(body),
            **self.diagnostics.as_dict(),
        )
        self._bulk_body = body
        return body

    def index_id(self, obj: Any) -> Any:
        """Document id of an object to index, None when blank."""
        return self._ids().get(id(obj))

    def index_objects_by_id(self) -> Mapping[str, Any]:
        """Objects to index keyed by their stringified document id."""
        if self._index_objects_by_id is None:
            by_id: Dict[str, Any] = {}
            for obj in self.index:
                doc_id = self.index_id(obj)
                if doc_id is not None:
                    by_id[str(doc_id)] = obj
            self._index_objects_by_id = by_id
        return self._index_objects_by_id

    def routing(self, obj: Any) -> Optional[str]:
        """Routing for obj; None for types without a join field."""
        if not self.join_field:
            return None
        self.cache.load()
        return self.resolver.routing(obj)

    def _ids(self) -> Dict[int, Any]:
        if self._index_ids is None:
            ids: Dict[int, Any] = {}
            for obj in self.index:
                doc_id = entry_id(self.document_type, obj)
                if not is_blank(doc_id):
                    ids[id(obj)] = doc_id
            self._index_ids = ids
        return self._index_ids
