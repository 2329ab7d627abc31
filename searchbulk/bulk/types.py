#!/usr/bin/env python3
"""
bulk/types.py - Value types and collaborator contracts for bulk assembly.

Identity and join-field values are modelled as small tagged variants so the
builder can branch on them explicitly:

- Identity: HasIdentity(id) | Identifierless(value)
- JoinValue: Absent | Scalar(value) | Structured(name, parent)
"""
from __future__ import annotations

import abc
import collections.abc
import json
from dataclasses import dataclass
from functools import singledispatch
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Protocol, Sequence, Tuple, Union

from searchbulk.bulk import config
from searchbulk.logger import ConfigurationError

try:
    from bson import ObjectId as _BsonObjectId
    _OBJECT_ID_TYPES: Tuple[type, ...] = (_BsonObjectId,)
except ImportError:  # bson ships with pymongo; without it there is nothing to normalize
    _OBJECT_ID_TYPES = ()


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class HasIdentity:
    id: Any


@dataclass(frozen=True)
class Identifierless:
    value: Any


Identity = Union[HasIdentity, Identifierless]

_MISSING = object()


@singledispatch
def identify(obj: Any) -> Identity:
    """Classify a domain object by whether it carries an identity attribute.

    Register more types with ``identify.register`` when a model exposes its
    identity under a different attribute.
    """
    ident = getattr(obj, "id", _MISSING)
    if ident is _MISSING or ident is None or callable(ident):
        return Identifierless(obj)
    return HasIdentity(ident)


@identify.register(type(None))
@identify.register(str)
@identify.register(bytes)
@identify.register(int)
@identify.register(float)
def _identify_plain(obj) -> Identity:
    return Identifierless(obj)


@identify.register(collections.abc.Mapping)
def _identify_mapping(obj) -> Identity:
    return Identifierless(obj)


def is_scalar(value: Any) -> bool:
    return isinstance(value, (str, bytes, int, float)) and not isinstance(value, bool)


def batch_member_id(obj: Any) -> Any:
    """Id an object contributes to the ancestry lookup, or None.

    Identity-bearing objects give their id, bare scalars are ids themselves
    and mappings give their ``id`` key.
    """
    ident = identify(obj)
    if isinstance(ident, HasIdentity):
        return ident.id
    if is_scalar(obj):
        return obj
    if isinstance(obj, Mapping):
        return obj.get("id")
    return None


# ---------------------------------------------------------------------------
# Join field values
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Absent:
    pass


@dataclass(frozen=True)
class Scalar:
    value: Any


@dataclass(frozen=True)
class Structured:
    name: Any = None
    parent: Any = None


JoinValue = Union[Absent, Scalar, Structured]

ABSENT = Absent()


def parse_join_value(raw: Any) -> JoinValue:
    """Lift a raw join-field value into a JoinValue.

    Join fields hold either ``{"name": "child", "parent": "1"}``,
    ``{"name": "question"}`` or a bare relation name such as ``"question"``.
    Anything that is not a mapping is kept as a Scalar, which classifies as
    a changed relation.
    """
    if raw is None:
        return ABSENT
    if isinstance(raw, Mapping):
        return Structured(name=raw.get("name"), parent=raw.get("parent"))
    return Scalar(raw)


def same_id(left: Any, right: Any) -> bool:
    if left is None or right is None:
        return left is right
    return str(left) == str(right)


# ---------------------------------------------------------------------------
# Ancestry
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class AncestryRecord:
    routing: Optional[str]
    parent_id: Optional[str]


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------
class DocumentType(abc.ABC):
    """A searchable document type: its mapping and its document composer."""

    name: str = "document"

    @abc.abstractmethod
    def mappings(self) -> Mapping[str, Mapping[str, Any]]:
        """Return field name -> field options."""

    @abc.abstractmethod
    def compose(self, obj: Any, crutches: Any = None, fields: Optional[Sequence[str]] = None) -> Dict[str, Any]:
        """Serialize obj into a document; only ``fields`` when given."""

    def build_crutches(self, objects: Sequence[Any]) -> Any:
        """Preload shared data for composing ``objects``; None when unused."""
        return None

    @property
    def has_custom_id(self) -> bool:
        return False

    def compose_id(self, obj: Any) -> Any:
        raise NotImplementedError(f"{type(self).__name__} does not compose ids")


class AncestrySource(Protocol):
    """Existence/routing queries against the engine holding indexed documents."""

    def query_by_ids(self, ids: Sequence[str], join_field: str) -> Iterable[Tuple[Any, Any, Any]]:
        """Yield ``(id, routing, join_field_value)`` in natural document order."""
        ...

    def routing_for(self, id: Any) -> Optional[str]:
        ...


def join_field(document_type: DocumentType) -> Optional[str]:
    """Name of the field whose options declare the join type, if any.

    A mapping may hold at most one join field.
    """
    found = [
        str(name)
        for name, options in (document_type.mappings() or {}).items()
        if isinstance(options, Mapping) and str(options.get("type", "")) == config.JOIN_FIELD_TYPE
    ]
    if len(found) > 1:
        raise ConfigurationError(
            f"{document_type.name} declares more than one join field: {', '.join(found)}"
        )
    return found[0] if found else None


# ---------------------------------------------------------------------------
# Ids
# ---------------------------------------------------------------------------
def normalize_id(value: Any) -> Any:
    if _OBJECT_ID_TYPES and isinstance(value, _OBJECT_ID_TYPES):
        return str(value)
    return value


def entry_id(document_type: DocumentType, obj: Any) -> Any:
    """Document id for obj: custom id rule, identity attribute, or ``id`` key."""
    if document_type.has_custom_id:
        return document_type.compose_id(obj)
    ident = identify(obj)
    value = ident.id if isinstance(ident, HasIdentity) else None
    if value is None and isinstance(obj, Mapping):
        value = obj.get("id")
    return normalize_id(value)


def is_blank(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (Mapping, list, tuple, set, bytes)):
        return len(value) == 0
    return False


def as_json(obj: Any) -> Any:
    """Pseudo id for objects without identity.

    Mappings become their canonical JSON text; scalars stay as they are.
    """
    if obj is None or is_blank(obj):
        return None
    if isinstance(obj, Mapping):
        return json.dumps(obj, sort_keys=True, separators=(",", ":"), default=str)
    return normalize_id(obj)


def unique_strings(values: Iterable[Any]) -> Iterator[str]:
    """Stringify values, dropping None and repeats; order kept."""
    seen = set()
    for value in values:
        if value is None:
            continue
        key = str(normalize_id(value))
        if key in seen:
            continue
        seen.add(key)
        yield key
