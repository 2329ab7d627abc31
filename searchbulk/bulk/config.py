#!/usr/bin/env python3
"""
bulk/config.py - Environment-based configuration for bulk body assembly.

This module centralizes environment variable parsing for the builder, the
ancestry lookups and the Qdrant-backed routing source.
"""
from __future__ import annotations

import os

from searchbulk.logger import get_logger, safe_bool, safe_int

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------
def _safe_int_env(key: str, default: int, minimum: int = 1) -> int:
    """Parse a positive integer from environment, falling back to default."""
    val = safe_int(os.environ.get(key), default, logger=logger, context=key)
    if val < minimum:
        logger.warning(f"{key}={val} below minimum {minimum}; using {default}")
        return default
    return val


def _env_truthy(key: str, default: bool) -> bool:
    return safe_bool(os.environ.get(key), default, logger=logger, context=key)


# ---------------------------------------------------------------------------
# Routing resolution
# ---------------------------------------------------------------------------
# Longest parent chain walked before resolution gives up
ROUTING_MAX_DEPTH = _safe_int_env("BULK_ROUTING_MAX_DEPTH", 64)

# Join field options value marking parent/child relations
JOIN_FIELD_TYPE = os.environ.get("BULK_JOIN_FIELD_TYPE", "join")


# ---------------------------------------------------------------------------
# Ancestry lookups
# ---------------------------------------------------------------------------
ANCESTRY_PAGE_SIZE = _safe_int_env("BULK_ANCESTRY_PAGE_SIZE", 256)

# Payload keys used by the Qdrant routing source
DOC_ID_KEY = os.environ.get("BULK_DOC_ID_KEY", "doc_id")
ROUTING_KEY = os.environ.get("BULK_ROUTING_KEY", "_routing")


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------
DIAGNOSTICS_JSON = _env_truthy("BULK_DIAGNOSTICS_JSON", False)


# ---------------------------------------------------------------------------
# Qdrant connection
# ---------------------------------------------------------------------------
def qdrant_url() -> str:
    return os.environ.get("QDRANT_URL", "http://localhost:6333")


def qdrant_api_key() -> str | None:
    key = os.environ.get("QDRANT_API_KEY")
    return key if key else None


def collection_name(default: str = "documents") -> str:
    """Collection holding previously indexed documents."""
    return (
        os.environ.get("COLLECTION_NAME")
        or os.environ.get("DEFAULT_COLLECTION")
        or default
    )
