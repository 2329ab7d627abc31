#!/usr/bin/env python3
"""
bulk/qdrant.py - Qdrant-backed routing and parent lookups.

Documents indexed through the bulk body are mirrored in a Qdrant collection
whose payload keeps the document id, its routing value and its join field.
This module answers the builder's ancestry queries from that collection.
"""
from __future__ import annotations

from typing import Any, Iterator, List, Optional, Sequence, Tuple

from qdrant_client import QdrantClient, models

from searchbulk.bulk import config
from searchbulk.logger import ContextLogger, get_logger


def get_qdrant_client(url: Optional[str] = None, api_key: Optional[str] = None) -> QdrantClient:
    """Create a Qdrant client from arguments or QDRANT_URL / QDRANT_API_KEY."""
    url = url or config.qdrant_url()
    api_key = api_key or config.qdrant_api_key()
    return QdrantClient(url=url, api_key=api_key if api_key else None)


class QdrantAncestrySource:
    """AncestrySource reading ``{id, routing, join}`` from point payloads.

    Failures from the client propagate; a broken lookup invalidates every
    routing decision in the build.
    """

    def __init__(
        self,
        client: QdrantClient,
        collection: str,
        id_key: Optional[str] = None,
        routing_key: Optional[str] = None,
        page_size: Optional[int] = None,
    ):
        self.client = client
        self.collection = collection
        self.id_key = id_key or config.DOC_ID_KEY
        self.routing_key = routing_key or config.ROUTING_KEY
        self.page_size = page_size or config.ANCESTRY_PAGE_SIZE
        self.log = ContextLogger(get_logger(__name__), collection=collection)

    def query_by_ids(self, ids: Sequence[str], join_field: str) -> Iterator[Tuple[Any, Any, Any]]:
        """Yield ``(id, routing, join)`` for every stored document in ids.

        Scroll order is point order, which keeps paging deterministic.
        """
        if not ids:
            return
        filt = models.Filter(
            must=[
                models.FieldCondition(
                    key=self.id_key, match=models.MatchAny(any=[str(i) for i in ids])
                )
            ]
        )
        log = self.log.bind(join_field=join_field)
        payload_keys: List[str] = [self.id_key, self.routing_key, join_field]
        next_page = None
        pages = 0
        while True:
            points, next_page = self.client.scroll(
                collection_name=self.collection,
                scroll_filter=filt,
                limit=self.page_size,
                offset=next_page,
                with_payload=payload_keys,
                with_vectors=False,
            )
            pages += 1
            for point in points:
                payload = point.payload or {}
                doc_id = payload.get(self.id_key)
                if doc_id is None:
                    continue
                yield doc_id, payload.get(self.routing_key), payload.get(join_field)
            if not points or next_page is None:
                break
        log.debug("ancestry scroll finished", ids=len(ids), pages=pages)

    def routing_for(self, id: Any) -> Optional[str]:
        """Routing of one stored document, or None when it is not indexed."""
        filt = models.Filter(
            must=[
                models.FieldCondition(
                    key=self.id_key, match=models.MatchValue(value=str(id))
                )
            ]
        )
        points, _ = self.client.scroll(
            collection_name=self.collection,
            scroll_filter=filt,
            limit=1,
            with_payload=[self.routing_key],
            with_vectors=False,
        )
        if not points:
            return None
        routing = (points[0].payload or {}).get(self.routing_key)
        return None if routing is None else str(routing)

