import json

import pytest

from searchbulk.bulk import cli


@pytest.fixture
def files(tmp_path, qa_mappings):
    mappings = tmp_path / "mappings.json"
    mappings.write_text(json.dumps(qa_mappings))
    batch = tmp_path / "batch.json"
    batch.write_text(
        json.dumps(
            {
                "index": [
                    {"id": 1, "title": "q", "relation": {"name": "question"}},
                    {"id": 2, "body": "a", "relation": {"name": "answer", "parent": 1}},
                    {"id": 3, "body": "late", "relation": {"name": "answer", "parent": 7}},
                ],
                "delete": [5, {"title": "by shape"}],
                "existing": {
                    "5": {"routing": "7", "relation": {"name": "answer", "parent": "7"}},
                    "7": {"routing": "7", "relation": {"name": "question"}},
                },
            }
        )
    )
    return batch, mappings


def test_offline_build_prints_bulk_body(files, capsys):
    batch, mappings = files

    code = cli.main(["--batch", str(batch), "--mappings", str(mappings), "--offline"])

    assert code == 0
    body = json.loads(capsys.readouterr().out)
    assert body == [
        {"index": {"_id": 1, "_routing": "1", "data": {"title": "q", "relation": {"name": "question"}}}},
        {"index": {"_id": 2, "_routing": "1", "data": {"body": "a", "relation": {"name": "answer", "parent": 1}}}},
        {"index": {"_id": 3, "_routing": "7", "data": {"body": "late", "relation": {"name": "answer", "parent": 7}}}},
        {"delete": {"_id": 5, "_routing": "7", "parent": "7"}},
        {"delete": {"_id": '{"title":"by shape"}'}},
    ]


def test_fields_flag_builds_partial_updates(files, capsys):
    batch, mappings = files

    code = cli.main(["--batch", str(batch), "--mappings", str(mappings), "--offline", "--fields", "title"])

    assert code == 0
    body = json.loads(capsys.readouterr().out)
    assert body[0] == {"update": {"_id": 1, "_routing": "1", "data": {"doc": {"title": "q"}}}}
    assert body[1] == {"update": {"_id": 2, "_routing": "1", "data": {"doc": {}}}}


def test_invalid_batch_exits_with_usage_code(tmp_path, files, capsys):
    _, mappings = files
    bad = tmp_path / "bad.json"
    bad.write_text("{not json")

    assert cli.main(["--batch", str(bad), "--mappings", str(mappings), "--offline"]) == 2
    assert capsys.readouterr().out == ""


def test_missing_file_exits_with_usage_code(tmp_path, files):
    _, mappings = files

    assert cli.main(["--batch", str(tmp_path / "nope.json"), "--mappings", str(mappings), "--offline"]) == 2


def test_online_build_uses_collection(files, monkeypatch, capsys):
    batch, mappings = files
    seen = {}

    class FakeSource:
        def __init__(self, client, collection):
            seen["collection"] = collection

        def query_by_ids(self, ids, join_field):
            return iter(())

        def routing_for(self, id):
            return None

    import searchbulk.bulk.qdrant as bq

    monkeypatch.setattr(bq, "QdrantAncestrySource", FakeSource)
    monkeypatch.setattr(bq, "get_qdrant_client", lambda: object())
    monkeypatch.setenv("COLLECTION_NAME", "kb-docs")

    assert cli.main(["--batch", str(batch), "--mappings", str(mappings)]) == 0
    assert seen["collection"] == "kb-docs"
    assert len(json.loads(capsys.readouterr().out)) == 5
