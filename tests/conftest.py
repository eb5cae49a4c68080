import pytest
import os
from typing import Dict, List, Optional
from unittest.mock import MagicMock
from dotenv import load_dotenv

# Settings are read once and cached; required values must exist before any
# rollbar_unfurler import.
os.environ.setdefault("UNFURLER_CLIENT_ID", "test-client-id")
os.environ.setdefault("UNFURLER_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("UNFURLER_VERIFICATION_TOKEN", "test-verification-token")

from rollbar_unfurler.errors import RemoteError
from rollbar_unfurler.schemas.rollbar import Item, Occurrence
from rollbar_unfurler.store.credentials import CredentialStore

@pytest.fixture(scope="session", autouse=True)
def _load_env():
    # Load .env once per session to avoid side-effects on import time
    load_dotenv()

@pytest.fixture(scope="function")
def store(tmp_path):
    """
    A CredentialStore backed by a temporary SQLite file.
    """
    s = CredentialStore(str(tmp_path / "test_unfurler.db")).open()
    yield s
    s.close()

@pytest.fixture(scope="function")
def test_db(tmp_path):
    """
    Points the cached settings at a temporary database for app-level tests.
    """
    from rollbar_unfurler.config import get_settings
    settings = get_settings()

    original_db_path = settings.DB_PATH
    settings.DB_PATH = str(tmp_path / "test_app.db")

    yield settings

    settings.DB_PATH = original_db_path


def make_item(**overrides) -> Item:
    data = {
        "id": 272505123,
        "project_id": 90,
        "counter": 42,
        "environment": "production",
        "title": "NullPointerException: order is null",
        "status": "active",
        "total_occurrences": 17,
        "first_occurrence_timestamp": 1500000000,
        "last_occurrence_timestamp": 1500003600,
        "activating_occurrence_id": 9001,
    }
    data.update(overrides)
    return Item.model_validate(data)

def make_occurrence(frame_count: int = 3, occurrence_id: int = 9001) -> Occurrence:
    frames = [
        {"filename": f"Service{i}.java", "lineno": i + 1, "method": f"call{i}", "class_name": f"com.acme.Service{i}"}
        for i in range(frame_count)
    ]
    return Occurrence.model_validate({
        "id": occurrence_id,
        "data": {"body": {"trace_chain": [{"frames": frames}]}},
    })


class FakeRollbar:
    """In-memory stand-in for RollbarClient keyed by (counter, token)."""

    def __init__(self):
        self.items: Dict[tuple, Item] = {}
        self.occurrences: Dict[int, Occurrence] = {}
        self.valid_tokens: List[str] = []
        self.fail_occurrences = False
        self.calls: List[tuple] = []

    def validate_token(self, token: str) -> bool:
        self.calls.append(("validate_token", token))
        return token in self.valid_tokens

    def fetch_item(self, counter: str, token: str) -> Item:
        self.calls.append(("fetch_item", counter, token))
        try:
            return self.items[(counter, token)]
        except KeyError:
            raise RemoteError("API error: Item not found")

    def fetch_occurrence(self, occurrence_id: int, token: str) -> Occurrence:
        self.calls.append(("fetch_occurrence", occurrence_id, token))
        if self.fail_occurrences or occurrence_id not in self.occurrences:
            raise RemoteError("API error: Occurrence not found")
        return self.occurrences[occurrence_id]

@pytest.fixture
def fake_rollbar():
    return FakeRollbar()

@pytest.fixture
def fake_slack():
    slack = MagicMock()
    slack.post_unfurl.return_value = {"ok": True}
    return slack

@pytest.fixture
def item_factory():
    return make_item

@pytest.fixture
def occurrence_factory():
    return make_occurrence
