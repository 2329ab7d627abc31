import sys
from pathlib import Path

import pytest

# Ensure repository root is on sys.path so `import searchbulk...` works without install
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture
def qa_mappings():
    """Question/answer/comment documents sharing one index through a join field."""
    return {
        "title": {"type": "text"},
        "body": {"type": "text"},
        "relation": {"type": "join", "relations": {"question": "answer", "answer": "comment"}},
    }


@pytest.fixture(autouse=True)
def _reset_bulk_env(monkeypatch):
    for key in (
        "BULK_ROUTING_MAX_DEPTH",
        "BULK_ANCESTRY_PAGE_SIZE",
        "BULK_DOC_ID_KEY",
        "BULK_ROUTING_KEY",
        "BULK_JOIN_FIELD_TYPE",
        "BULK_DIAGNOSTICS_JSON",
        "COLLECTION_NAME",
        "DEFAULT_COLLECTION",
    ):
        monkeypatch.delenv(key, raising=False)
    yield
