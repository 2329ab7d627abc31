#!/usr/bin/env python3
"""
bulk/ancestry.py - Routing and parent ids of documents already in the engine.

One query per build fetches the ``{routing, parent_id}`` pair of every
batch member and of every parent named by the documents being indexed.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Any, List, Mapping, Optional, Sequence

from searchbulk.bulk.compose import DocumentComposer
from searchbulk.bulk.diagnostics import BuildDiagnostics
from searchbulk.bulk.types import (
    AncestryRecord,
    AncestrySource,
    HasIdentity,
    Structured,
    batch_member_id,
    identify,
    parse_join_value,
    unique_strings,
)
from searchbulk.logger import ContextLogger, get_logger, log_and_reraise

_EMPTY: Mapping[str, AncestryRecord] = MappingProxyType({})


class AncestryCache:
    def __init__(
        self,
        join_field: Optional[str],
        source: Optional[AncestrySource],
        index: Sequence[Any],
        delete: Sequence[Any],
        composer: DocumentComposer,
        diagnostics: BuildDiagnostics,
    ):
        self.join_field = join_field
        self.source = source
        self._index = index
        self._delete = delete
        self._composer = composer
        self._diagnostics = diagnostics
        self._records: Optional[Mapping[str, AncestryRecord]] = None
        self.log = ContextLogger(get_logger(__name__), join_field=join_field)

    @property
    def enabled(self) -> bool:
        return bool(self.join_field)

    def ids(self) -> List[str]:
        """Ids whose ancestry is fetched up front."""
        members = [batch_member_id(obj) for obj in self._index]
        members.extend(batch_member_id(obj) for obj in self._delete)

        referenced = []
        for obj in self._index:
            if isinstance(identify(obj), HasIdentity):
                join = self._composer.join_value(obj, self.join_field)
                if isinstance(join, Structured):
                    referenced.append(join.parent)
        for obj in self._delete:
            ident = identify(obj)
            if isinstance(ident, HasIdentity):
                referenced.append(ident.id)

        return list(unique_strings(members + referenced))

    def load(self) -> Mapping[str, AncestryRecord]:
        """Fetch ancestry once; no engine call when the type has no join field."""
        if self._records is not None:
            return self._records
        if not self.enabled:
            self._records = _EMPTY
            return self._records

        ids = self.ids()
        if not ids or self.source is None:
            self._records = _EMPTY
            return self._records

        self._diagnostics.emit("ancestry_query", ids=len(ids))
        records = {}
        try:
            for doc_id, routing, raw_join in self.source.query_by_ids(ids, self.join_field):
                join = parse_join_value(raw_join)
                parent = join.parent if isinstance(join, Structured) else None
                records[str(doc_id)] = AncestryRecord(
                    routing=None if routing is None else str(routing),
                    parent_id=None if parent is None else str(parent),
                )
        except Exception as e:
            log_and_reraise(self.log, "ancestry query failed", e, ids=len(ids))

        self.log.debug("ancestry loaded", requested=len(ids), found=len(records))
        self._records = MappingProxyType(records)
        return self._records

    @property
    def records(self) -> Mapping[str, AncestryRecord]:
        return self.load()

    def __bool__(self) -> bool:
        return bool(self.load())

    def get(self, doc_id: Any) -> Optional[AncestryRecord]:
        if doc_id is None:
            return None
        return self.load().get(str(doc_id))
