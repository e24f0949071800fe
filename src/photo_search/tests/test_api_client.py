import httpx
import pytest

from api_client import PhotoSearchClient


@pytest.fixture
def fake_backend(monkeypatch):
    """Replaces httpx.post with a canned backend answer."""
    answer = {}

    def fake_post(url, json=None, timeout=None):
        answer["payload"] = json
        return httpx.Response(answer["status"], json=answer["body"], request=httpx.Request("POST", url))

    monkeypatch.setattr(httpx, "post", fake_post)
    return answer

def test_search_success(fake_backend):
    fake_backend.update(status=200, body={"mediaIds": ["p1"]})

    result = PhotoSearchClient().search("e1", query="cake", image_bytes=b"hello", image_mime="image/png")

    assert result == {"mediaIds": ["p1"]}
    assert fake_backend["payload"]["image"] == "data:image/png;base64,aGVsbG8="

def test_unconfigured_search_shows_backend_message(fake_backend):
    fake_backend.update(status=500, body={"error": "Vision model API key is not configured"})

    result = PhotoSearchClient().search("e1", query="cake")

    assert result["error"] is True
    assert result["message"] == "Server Error (500): Vision model API key is not configured"

def test_invalid_search_shows_backend_message(fake_backend):
    fake_backend.update(status=400, body={"error": "Event ID is required"})

    result = PhotoSearchClient().search("", query="cake")

    assert result["message"] == "⚠️ Event ID is required"
