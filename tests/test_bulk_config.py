import importlib

import pytest

import searchbulk.bulk.config as cfg


@pytest.fixture
def reload_config(monkeypatch):
    def _reload(**env):
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        return importlib.reload(cfg)

    yield _reload
    monkeypatch.undo()
    importlib.reload(cfg)


def test_defaults(reload_config):
    mod = reload_config()
    assert mod.ROUTING_MAX_DEPTH == 64
    assert mod.ANCESTRY_PAGE_SIZE == 256
    assert mod.DOC_ID_KEY == "doc_id"
    assert mod.ROUTING_KEY == "_routing"
    assert mod.DIAGNOSTICS_JSON is False


def test_invalid_values_fall_back(reload_config):
    mod = reload_config(BULK_ROUTING_MAX_DEPTH="deep", BULK_ANCESTRY_PAGE_SIZE="0")
    assert mod.ROUTING_MAX_DEPTH == 64
    assert mod.ANCESTRY_PAGE_SIZE == 256


def test_overrides(reload_config):
    mod = reload_config(BULK_ROUTING_MAX_DEPTH="8", BULK_DIAGNOSTICS_JSON="on", BULK_JOIN_FIELD_TYPE="relation")
    assert mod.ROUTING_MAX_DEPTH == 8
    assert mod.DIAGNOSTICS_JSON is True
    assert mod.JOIN_FIELD_TYPE == "relation"


def test_collection_name_precedence(monkeypatch):
    assert cfg.collection_name() == "documents"
    monkeypatch.setenv("DEFAULT_COLLECTION", "fallback")
    assert cfg.collection_name() == "fallback"
    monkeypatch.setenv("COLLECTION_NAME", "primary")
    assert cfg.collection_name() == "primary"
