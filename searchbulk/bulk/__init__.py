"""
Bulk package - Bulk request body assembly.

Modules:
- config: Environment-based configuration and constants
- types: Identity and join-field variants, collaborator contracts
- diagnostics: Lookup counters and structured diagnostic events
- compose: Memoized document composition
- ancestry: Routing/parent ids of already-indexed documents
- routing: Routing resolution along parent chains
- classifier: Index/update/delete decisions per object
- builder: BulkBuilder, the batch assembler
- documents: Mapping-driven document type and in-memory sources
- qdrant: Qdrant-backed ancestry lookups
- cli: Command-line interface

Usage:
    from searchbulk.bulk import BulkBuilder
    body = BulkBuilder(document_type, index=objs, delete=ids, source=source).bulk_body()
"""
from searchbulk.bulk import config
from searchbulk.bulk import types
from searchbulk.bulk import diagnostics
from searchbulk.bulk import compose
from searchbulk.bulk import ancestry
from searchbulk.bulk import routing
from searchbulk.bulk import classifier
from searchbulk.bulk import builder
from searchbulk.bulk import documents
from searchbulk.bulk.builder import BulkBuilder
from searchbulk.bulk.types import AncestryRecord, AncestrySource, DocumentType

__all__ = [
    "config",
    "types",
    "diagnostics",
    "compose",
    "ancestry",
    "routing",
    "classifier",
    "builder",
    "documents",
    "BulkBuilder",
    "AncestryRecord",
    "AncestrySource",
    "DocumentType",
]
