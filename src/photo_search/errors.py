from typing import Optional


class PhotoSearchError(Exception):
    """Base class for every error raised by the search pipeline."""


# --- FATAL (surface to the caller) ---

class InvalidRequest(PhotoSearchError):
    """The search request is missing something it cannot do without (e.g. eventId)."""


class CatalogUnavailable(PhotoSearchError):
    """The media catalog could not be queried."""


class SearchUnconfigured(PhotoSearchError):
    """The vision model credential is missing, so no search can run."""


# --- PER-BATCH (absorbed by the aggregator) ---

class ModelRequestFailed(PhotoSearchError):
    """
    One call to the vision endpoint did not succeed.
    status_code is None when the request never got an HTTP response (timeout, DNS, ...).
    """

    def __init__(self, status_code: Optional[int], body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Vision model request failed ({status_code}): {body[:200]}")


class MalformedModelOutput(PhotoSearchError):
    """The model answered, but not with the expected {"matchedIds": [...]} object."""
