#!/usr/bin/env python3
"""
bulk/cli.py - Command-line interface for building bulk bodies.

Reads a batch file and a mappings file, assembles the bulk body and prints
it as JSON. The body is never submitted.

Batch file layout::

    {
      "index": [{"id": 1, "title": "..."}, ...],
      "delete": [3, {"id": 4}, {"title": "by shape"}],
      "fields": ["title"],
      "existing": {"2": {"routing": "1", "join": {"name": "answer", "parent": "1"}}}
    }

``existing`` is only read with ``--offline``; otherwise ancestry comes from
the Qdrant collection named by ``--collection`` / COLLECTION_NAME.
"""
from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any, List, Optional

from dotenv import load_dotenv

from searchbulk.bulk import config
from searchbulk.bulk.builder import BulkBuilder
from searchbulk.bulk.documents import MappedDocumentType, StaticAncestrySource, load_records
from searchbulk.logger import SearchBulkError, ValidationError, get_logger

logger = get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Build a search-engine bulk request body from a batch of documents."
    )
    parser.add_argument("--batch", type=str, required=True, help="JSON file with index/delete lists")
    parser.add_argument("--mappings", type=str, required=True, help="JSON file of field name -> options")
    parser.add_argument("--type", dest="type_name", type=str, default="document", help="Document type name")
    parser.add_argument(
        "--fields",
        type=str,
        default=None,
        help="Comma-separated fields for partial updates (overrides the batch file)",
    )
    parser.add_argument(
        "--id-field",
        type=str,
        default=None,
        help="Compose document ids from this field instead of the record id",
    )
    parser.add_argument("--collection", type=str, default=None, help="Qdrant collection holding indexed documents")
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Resolve ancestry from the batch file's 'existing' section instead of Qdrant",
    )
    parser.add_argument("--indent", type=int, default=None, help="Indent the printed JSON")
    parser.add_argument("--stats", action="store_true", help="Log lookup counters after building")
    parser.add_argument("--json-logs", action="store_true", help="Emit diagnostics as JSON log lines")
    return parser.parse_args(argv)


def _read_json(path: str, what: str) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise ValidationError(f"cannot read {what} file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ValidationError(f"{what} file {path} is not valid JSON: {e}") from e


def _fields(args, batch) -> List[str]:
    if args.fields is not None:
        return [f.strip() for f in args.fields.split(",") if f.strip()]
    fields = batch.get("fields") or []
    if not isinstance(fields, list):
        raise ValidationError("'fields' must be a list of field names")
    return [str(f) for f in fields]


def build(args) -> List[dict]:
    batch = _read_json(args.batch, "batch")
    if not isinstance(batch, dict):
        raise ValidationError("batch file must hold a JSON object")
    mappings = _read_json(args.mappings, "mappings")

    document_type = MappedDocumentType(args.type_name, mappings, id_field=args.id_field)
    if args.offline:
        source = StaticAncestrySource(batch.get("existing") or {})
    else:
        from searchbulk.bulk.qdrant import QdrantAncestrySource, get_qdrant_client

        collection = args.collection or config.collection_name()
        source = QdrantAncestrySource(get_qdrant_client(), collection)

    builder = BulkBuilder(
        document_type,
        index=load_records(batch.get("index")),
        delete=load_records(batch.get("delete")),
        fields=_fields(args, batch),
        source=source,
    )
    body = builder.bulk_body()
    if args.stats:
        logger.info(f"[bulk] {len(body)} operations, lookups: {builder.diagnostics.as_dict()}")
    return body


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    load_dotenv()
    args = parse_args(argv)
    if args.json_logs:
        os.environ["BULK_DIAGNOSTICS_JSON"] = "1"
        config.DIAGNOSTICS_JSON = True

    try:
        body = build(args)
    except ValidationError as e:
        logger.error(f"[bulk] invalid input: {e}")
        return 2
    except SearchBulkError as e:
        logger.error(f"[bulk] build failed: {e}")
        return 1

    json.dump(body, sys.stdout, indent=args.indent, default=str)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
