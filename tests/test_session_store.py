import sqlite3

import pytest

from pagepilot.models import PublishCredential
from pagepilot.session_store import SessionStore


def test_save_and_get_credential(tmp_path):
    store = SessionStore(tmp_path / "pagepilot.db")
    store.initialize()

    store.save_page("s1", "page-1", "token-1")

    assert store.has_session("s1")
    assert store.get_credential("s1") == PublishCredential("page-1", "token-1")


def test_unknown_session(tmp_path):
    store = SessionStore(tmp_path / "pagepilot.db")
    store.initialize()

    assert not store.has_session("missing")
    assert store.get_credential("missing") is None


def test_save_page_overwrites_existing_session(tmp_path):
    store = SessionStore(tmp_path / "pagepilot.db")
    store.initialize()
    store.save_page("s1", "page-1", "token-1")

    store.save_page("s1", "page-2", "token-2")

    assert store.get_credential("s1") == PublishCredential("page-2", "token-2")


def test_credentials_are_independent_values(tmp_path):
    store = SessionStore(tmp_path / "pagepilot.db")
    store.initialize()
    store.save_page("s1", "page-1", "token-1")
    before = store.get_credential("s1")

    store.save_page("s1", "page-1", "rotated")

    assert before.access_token == "token-1"
    assert store.get_credential("s1").access_token == "rotated"


def test_delete_session_does_not_affect_others(tmp_path):
    store = SessionStore(tmp_path / "pagepilot.db")
    store.initialize()
    store.save_page("s1", "page-1", "token-1")
    store.save_page("s2", "page-2", "token-2")

    store.delete_session("s1")

    assert store.get_credential("s1") is None
    assert store.get_credential("s2") == PublishCredential("page-2", "token-2")


def test_initialize_is_idempotent(tmp_path):
    store = SessionStore(tmp_path / "pagepilot.db")
    store.initialize()
    store.save_page("s1", "page-1", "token-1")

    store.initialize()

    assert store.has_session("s1")


def test_unsupported_schema_version(tmp_path):
    path = tmp_path / "pagepilot.db"
    conn = sqlite3.connect(path)
    conn.execute("CREATE TABLE schema_version (version INTEGER NOT NULL)")
    conn.execute("INSERT INTO schema_version (version) VALUES (99)")
    conn.commit()
    conn.close()

    with pytest.raises(RuntimeError, match="Unsupported schema version"):
        SessionStore(path).initialize()
