#!/usr/bin/env python3
"""
bulk/documents.py - Mapping-driven document type and in-memory sources.

MappedDocumentType composes plain records into documents holding only the
mapped fields. It backs the CLI and is a convenient DocumentType for
callers whose domain objects are already flat dictionaries.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from searchbulk.bulk.types import DocumentType
from searchbulk.logger import ValidationError


@dataclass
class Record:
    """A domain object with an identity and flat field values."""

    id: Any
    fields: Dict[str, Any] = field(default_factory=dict)

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)


class MappedDocumentType(DocumentType):
    def __init__(self, name: str, mappings: Mapping[str, Mapping[str, Any]], id_field: Optional[str] = None):
        if not isinstance(mappings, Mapping):
            raise ValidationError(f"mappings for {name!r} must be an object of field options")
        self.name = name
        self._mappings = dict(mappings)
        self.id_field = id_field

    def mappings(self) -> Mapping[str, Mapping[str, Any]]:
        return self._mappings

    def compose(self, obj: Any, crutches: Any = None, fields: Optional[Sequence[str]] = None) -> Dict[str, Any]:
        values = _values(obj)
        names = list(fields) if fields else list(self._mappings)
        return {name: values[name] for name in names if name in values}

    @property
    def has_custom_id(self) -> bool:
        return bool(self.id_field)

    def compose_id(self, obj: Any) -> Any:
        values = _values(obj)
        return values.get(self.id_field) if self.id_field else None


def _values(obj: Any) -> Mapping[str, Any]:
    if isinstance(obj, Record):
        return {"id": obj.id, **obj.fields}
    if isinstance(obj, Mapping):
        return obj
    return {}


def load_records(items: Iterable[Any]) -> List[Any]:
    """Turn JSON items into builder inputs.

    Objects with an ``id`` become Records, other objects stay dictionaries
    (deleted by their JSON shape) and scalars stay bare ids.
    """
    out: List[Any] = []
    for item in items or []:
        if isinstance(item, Mapping):
            if item.get("id") is not None:
                out.append(Record(id=item["id"], fields={k: v for k, v in item.items() if k != "id"}))
            else:
                out.append(dict(item))
        elif item is None or isinstance(item, (str, int, float)):
            out.append(item)
        else:
            raise ValidationError(f"unsupported batch item: {item!r}")
    return out


class StaticAncestrySource:
    """AncestrySource over documents held in memory.

    ``documents`` maps id to ``{"routing": ..., <join_field>: ...}``; listing
    order stands in for the engine's natural document order.
    """

    def __init__(self, documents: Mapping[str, Mapping[str, Any]], routing_key: str = "routing"):
        self.documents = {str(k): dict(v or {}) for k, v in (documents or {}).items()}
        self.routing_key = routing_key
        self.queries: List[List[str]] = []
        self.lookups: List[str] = []

    def query_by_ids(self, ids: Sequence[str], join_field: str) -> Iterator[Tuple[Any, Any, Any]]:
        wanted = {str(i) for i in ids}
        self.queries.append(list(ids))
        for doc_id, doc in self.documents.items():
            if doc_id in wanted:
                yield doc_id, doc.get(self.routing_key), doc.get(join_field)

    def routing_for(self, id: Any) -> Optional[str]:
        self.lookups.append(str(id))
        doc = self.documents.get(str(id))
        return None if doc is None else doc.get(self.routing_key)
