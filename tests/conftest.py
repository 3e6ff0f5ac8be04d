"""Shared fixtures."""
import pytest

from src.store.video_store import VideoStore

from tests.fakes import FakeSupabaseClient


@pytest.fixture
def fake_client() -> FakeSupabaseClient:
    return FakeSupabaseClient()


@pytest.fixture
def store(fake_client) -> VideoStore:
    return VideoStore(fake_client, "videos")
