from loguru import logger
import httpx
from typing import Any, Dict, List, Optional, Protocol

from photo_search.errors import CatalogUnavailable
from photo_search.schemas import FileType, MediaRecord


class MediaCatalog(Protocol):
    """Read-only view of the media table that the search pipeline depends on."""

    async def fetch_photos(self, event_id: str) -> List[MediaRecord]:
        ...


class SupabaseMediaCatalog:
    """
    Queries the `media` table through the Supabase REST (PostgREST) API.
    The httpx client is owned by the caller (the app lifespan), not by this class.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str,
        api_key: str,
        table: str = "media",
        timeout: float = 10.0,
    ):
        self.http_client = http_client
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.table = table
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }

    async def _get(self, params: Dict[str, str]) -> Any:
        if not self.is_configured:
            raise CatalogUnavailable("Media catalog is not configured (SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY)")

        url = f"{self.base_url}/rest/v1/{self.table}"
        try:
            response = await self.http_client.get(
                url, params=params, headers=self._headers(), timeout=self.timeout
            )
        except httpx.HTTPError as e:
            logger.error(f"❌ Catalog request failed: {e}")
            raise CatalogUnavailable(f"Could not reach media catalog: {e}") from e

        if response.status_code >= 400:
            logger.error(f"❌ Catalog returned {response.status_code}: {response.text[:200]}")
            raise CatalogUnavailable(f"Media catalog error ({response.status_code})")

        try:
            return response.json()
        except ValueError as e:
            raise CatalogUnavailable("Media catalog returned a non-JSON body") from e

    async def fetch_photos(self, event_id: str) -> List[MediaRecord]:
        """Returns every photo of the event in catalog order. Videos never come back."""
        rows = await self._get({
            "select": "id,file_url,file_type",
            "event_id": f"eq.{event_id}",
            "file_type": f"eq.{FileType.PHOTO.value}",
        })
        if not isinstance(rows, list):
            raise CatalogUnavailable("Media catalog returned an unexpected payload")

        records = []
        for row in rows:
            if not isinstance(row, dict):
                raise CatalogUnavailable(f"Media catalog returned a non-object row: {row!r}")
            record = map_row_to_record(row)
            if record is not None and record.file_type == FileType.PHOTO:
                records.append(record)

        logger.info(f"📷 Event {event_id}: {len(records)} photo(s) in catalog")
        return records

    async def ping(self) -> bool:
        """Cheap reachability probe for /health."""
        await self._get({"select": "id", "limit": "1"})
        return True


def map_row_to_record(row: Dict[str, Any]) -> Optional[MediaRecord]:
    """
    Helper to map a raw `media` row to our MediaRecord model.
    Returns None for rows that cannot take part in a search.
    """
    media_id = row.get("id")
    file_url = row.get("file_url")
    if media_id is None or not file_url:
        logger.warning(f"⚠️ Skipping incomplete media row: {row}")
        return None

    try:
        file_type = FileType(row.get("file_type") or FileType.PHOTO.value)
    except ValueError:
        logger.warning(f"⚠️ Unknown file_type {row.get('file_type')!r} for media {media_id}")
        return None

    return MediaRecord(id=str(media_id), file_url=file_url, file_type=file_type)
