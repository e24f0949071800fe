import os
import json
from typing import Callable, List, Optional, Union

import pytest
from fastapi.testclient import TestClient

# Set dummy env vars so Pydantic settings don't crash (must happen before importing main)
os.environ["VISION_API_KEY"] = "test_key_only"
os.environ["SUPABASE_URL"] = "https://test-project.supabase.co"
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test_service_key"
os.environ["SEARCH_BATCH_SIZE"] = "15"

from photo_search.schemas import MediaRecord


# --- STUB COLLABORATORS ---

def make_photos(count: int, prefix: str = "p") -> List[MediaRecord]:
    """p1..pN, in catalog order."""
    return [
        MediaRecord(id=f"{prefix}{i}", file_url=f"https://cdn.example.com/{prefix}{i}.jpg")
        for i in range(1, count + 1)
    ]

def batch_ids(messages) -> List[str]:
    """Reads back the 'Photo ID: x' tags the prompt builder attached."""
    ids = []
    for message in messages:
        content = message["content"]
        if isinstance(content, str):
            continue
        for part in content:
            if part["type"] == "text" and part["text"].startswith("Photo ID: "):
                ids.append(part["text"][len("Photo ID: "):])
    return ids


class StubCatalog:
    def __init__(self, photos: Optional[List[MediaRecord]] = None, error: Optional[Exception] = None):
        self.photos = photos or []
        self.error = error
        self.calls: List[str] = []

    async def fetch_photos(self, event_id: str) -> List[MediaRecord]:
        self.calls.append(event_id)
        if self.error:
            raise self.error
        return list(self.photos)

    async def ping(self) -> bool:
        if self.error:
            raise self.error
        return True


Responder = Callable[[List[str]], Union[str, Exception]]


class StubVisionClient:
    """
    Deterministic stand-in for the vision model.
    `responder` receives the ids of the batch and returns the raw answer text,
    or an exception instance to raise.
    """

    def __init__(self, responder: Optional[Responder] = None, configured: bool = True):
        self.responder = responder or (lambda ids: json.dumps({"matchedIds": []}))
        self.configured = configured
        self.calls: List[list] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def complete(self, messages) -> str:
        self.calls.append(messages)
        answer = self.responder(batch_ids(messages))
        if isinstance(answer, Exception):
            raise answer
        return answer


def match_when_present(*wanted: str) -> Responder:
    """Stub that matches the wanted ids found in each batch."""
    def responder(ids):
        return json.dumps({"matchedIds": [i for i in ids if i in wanted], "confidence": "high"})
    return responder


# --- FIXTURES ---

@pytest.fixture
def stub_catalog():
    return StubCatalog(photos=make_photos(5))

@pytest.fixture
def stub_vision():
    return StubVisionClient()

@pytest.fixture
def client(stub_catalog, stub_vision):
    """
    Test Client with the catalog and model replaced by stubs.
    """
    # Import app INSIDE the fixture (Lazy Import)
    from photo_search.main import app, get_catalog, get_vision_client

    app.dependency_overrides[get_catalog] = lambda: stub_catalog
    app.dependency_overrides[get_vision_client] = lambda: stub_vision

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()

@pytest.fixture
def unsafe_client(stub_catalog, stub_vision):
    """Same as `client`, but lets the global 500 handler answer instead of re-raising."""
    from photo_search.main import app, get_catalog, get_vision_client

    app.dependency_overrides[get_catalog] = lambda: stub_catalog
    app.dependency_overrides[get_vision_client] = lambda: stub_vision

    with TestClient(app, raise_server_exceptions=False) as c:
        yield c

    app.dependency_overrides.clear()


