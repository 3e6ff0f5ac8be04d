"""Tests for the Supabase-backed video store."""
import asyncio

import pytest
from src.config import config
from src.ingest.errors import StoreQueryError, StoreWriteError
from src.store.video_store import VideoStore

from tests.fakes import OWNER, make_row


def test_find_matching_filters(store, fake_client):
    """Test the duplicate lookup filters on owner and identity triple."""
    fake_client.tables["videos"] = [make_row(id="x")]
    ids = asyncio.run(
        store.find_matching(OWNER, "Cool Clip", "2024-01-05T00:00:00.000Z", "bob")
    )
    assert ids == ["x"]
    op, filters = fake_client.calls[0]
    assert op == "select"
    assert filters == [
        ("user_id", OWNER),
        ("name", "Cool Clip"),
        ("post_date", "2024-01-05T00:00:00.000Z"),
        ("creator_username", "bob"),
    ]


def test_find_matching_null_name(store, fake_client):
    """Test a missing name only matches stored rows without a name."""
    fake_client.tables["videos"] = [make_row(id="named"), make_row(id="unnamed", name=None)]
    ids = asyncio.run(store.find_matching(OWNER, None, "2024-01-05T00:00:00.000Z", "bob"))
    assert ids == ["unnamed"]


def test_insert_and_list(store, fake_client):
    """Test written rows come back newest first."""
    asyncio.run(
        store.insert_videos(
            [
                make_row(id="1", created_at="2024-01-01T00:00:00.000Z"),
                make_row(id="2", created_at="2024-01-02T00:00:00.000Z"),
            ]
        )
    )
    rows = asyncio.run(store.list_videos(OWNER))
    assert [r["id"] for r in rows] == ["2", "1"]


def test_insert_nothing(store, fake_client):
    """Test an empty insert is a no-op."""
    asyncio.run(store.insert_videos([]))
    assert fake_client.calls == []


def test_query_error_wrapped(store, fake_client):
    """Test read failures become StoreQueryError."""
    fake_client.fail_ops = {"select"}
    with pytest.raises(StoreQueryError, match="select failed"):
        asyncio.run(store.list_videos(OWNER))


def test_write_error_wrapped(store, fake_client):
    """Test write failures become StoreWriteError."""
    fake_client.fail_ops = {"upsert", "delete"}
    with pytest.raises(StoreWriteError):
        asyncio.run(store.insert_videos([make_row()]))
    with pytest.raises(StoreWriteError):
        asyncio.run(store.delete_all(OWNER))


def test_connection_ok(store):
    """Test the connection probe against a healthy client."""
    assert asyncio.run(store.test_connection()) is True


def test_from_config_requires_credentials(monkeypatch):
    """Test the store refuses to build without Supabase settings."""
    monkeypatch.setattr(config, "SUPABASE_URL", None)
    with pytest.raises(ValueError, match="Supabase configuration missing"):
        VideoStore.from_config()


def test_connection_failure_answers_without_retry(store, fake_client):
    """Test a plain connection check probes once and reports failure."""
    fake_client.fail_ops = {"select"}
    assert asyncio.run(store.test_connection()) is False
    assert [op for op, _ in fake_client.calls] == ["select"]
