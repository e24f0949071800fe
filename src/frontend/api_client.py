import base64
import httpx
from typing import Dict, Any, Optional

class PhotoSearchClient:
    def __init__(self, base_url: str = "http://localhost:8000"):
        self.base_url = base_url.rstrip("/")
        # A search fans out to several vision calls, give it time
        self.timeout = 180.0

    def search(
        self,
        event_id: str,
        query: Optional[str] = None,
        image_bytes: Optional[bytes] = None,
        image_mime: str = "image/jpeg"
    ) -> Dict[str, Any]:
        """
        Sends an AI photo search. The reference image travels as a data URL.
        """
        url = f"{self.base_url}/search-photos"
        payload = {"eventId": event_id, "query": query or None, "image": None}
        if image_bytes:
            encoded = base64.b64encode(image_bytes).decode("ascii")
            payload["image"] = f"data:{image_mime};base64,{encoded}"

        try:
            response = httpx.post(url, json=payload, timeout=self.timeout)

            if response.status_code == 200:
                return response.json()
            elif response.status_code == 400:
                return {"error": True, "message": f"⚠️ {self._error_text(response, 'Invalid search')}"}
            elif response.status_code == 503:
                return {"error": True, "message": "📂 Photo catalog is unavailable. Try again later."}
            else:
                return {"error": True, "message": f"Server Error ({response.status_code}): {self._error_text(response, response.text)}"}

        except httpx.ConnectError:
            return {"error": True, "message": "❌ Could not connect to backend."}
        except httpx.TimeoutException:
            return {"error": True, "message": "⏱️ Request timed out."}
        except Exception as e:
            return {"error": True, "message": f"Unexpected error: {str(e)}"}

    @staticmethod
    def _error_text(response: httpx.Response, default: str) -> str:
        """The backend reports failures as {"error": "..."}."""
        try:
            return response.json().get("error") or default
        except (ValueError, AttributeError):
            return default

    def event_photos(self, event_id: str) -> Dict[str, Any]:
        """Lists the photos of an event (id -> url lookup for the results grid)."""
        try:
            response = httpx.get(f"{self.base_url}/events/{event_id}/photos", timeout=10.0)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            return {"error": True, "message": f"Could not load event photos: {e}"}
