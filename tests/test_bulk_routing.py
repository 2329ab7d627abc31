import pytest

from searchbulk.bulk.builder import BulkBuilder
from searchbulk.bulk.compose import DocumentComposer
from searchbulk.bulk.documents import MappedDocumentType, Record, StaticAncestrySource


@pytest.mark.unit
def test_existing_routing_without_source_is_absent(qa_mappings):
    builder = BulkBuilder(
        MappedDocumentType("qa", qa_mappings),
        index=[Record(2, {"relation": {"name": "answer", "parent": 1}})],
    )

    assert builder.routing(builder.index[0]) is None
    assert builder.diagnostics.cache_misses == 1
    assert builder.diagnostics.fallback_lookups == 0


@pytest.mark.unit
def test_existing_routing_memoizes_misses(qa_mappings):
    source = StaticAncestrySource({})
    builder = BulkBuilder(MappedDocumentType("qa", qa_mappings), source=source)
    builder.cache.load()

    assert builder.resolver.existing_routing(10) is None
    assert builder.resolver.existing_routing("10") is None
    assert source.lookups == ["10"]


@pytest.mark.unit
def test_scalar_join_value_is_a_root(qa_mappings):
    source = StaticAncestrySource({"2": {"routing": "1", "relation": {"name": "answer", "parent": "1"}}})
    obj = Record(2, {"relation": "question"})
    builder = BulkBuilder(MappedDocumentType("qa", qa_mappings), index=[obj], source=source)

    assert builder.resolver.parent_id(obj) is None
    assert builder.routing(obj) == "2"
    assert builder.diagnostics.join_fallbacks == 0


@pytest.mark.unit
def test_identifierless_objects_have_no_routing(qa_mappings):
    builder = BulkBuilder(MappedDocumentType("qa", qa_mappings), index=[{"id": 1}], source=StaticAncestrySource({}))

    assert builder.routing({"id": 1}) is None
    assert builder.routing("1") is None


@pytest.mark.unit
def test_composed_documents_follow_the_object_not_its_address(qa_mappings):
    composer = DocumentComposer(MappedDocumentType("qa", qa_mappings), [])

    titles = [composer.document(Record(i, {"title": f"t{i}"}))["title"] for i in range(5)]

    assert titles == ["t0", "t1", "t2", "t3", "t4"]
