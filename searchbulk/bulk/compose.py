#!/usr/bin/env python3
"""
bulk/compose.py - Memoized document composition for one build.
"""
from __future__ import annotations

from typing import Any, Dict, Optional, Sequence, Tuple

from searchbulk.bulk.types import ABSENT, DocumentType, JoinValue, parse_join_value


class DocumentComposer:
    """Composes each object at most once per build.

    Full documents are keyed by object identity and stored next to the object
    itself, which keeps the object alive and the key from being reused.
    """

    def __init__(self, document_type: DocumentType, objects: Sequence[Any]):
        self.document_type = document_type
        self._objects = objects
        self._crutches: Any = None
        self._crutches_built = False
        self._documents: Dict[int, Tuple[Any, Dict[str, Any]]] = {}

    @property
    def crutches(self) -> Any:
        if not self._crutches_built:
            self._crutches = self.document_type.build_crutches(self._objects)
            self._crutches_built = True
        return self._crutches

    def document(self, obj: Any) -> Dict[str, Any]:
        held = self._documents.get(id(obj))
        if held is not None and held[0] is obj:
            return held[1]
        doc = self.document_type.compose(obj, self.crutches)
        self._documents[id(obj)] = (obj, doc)
        return doc

    def partial(self, obj: Any, fields: Sequence[str]) -> Dict[str, Any]:
        return self.document_type.compose(obj, self.crutches, fields=list(fields))

    def join_value(self, obj: Any, join_field: Optional[str]) -> JoinValue:
        if not join_field:
            return ABSENT
        return parse_join_value(self.document(obj).get(join_field))
