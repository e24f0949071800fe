import re
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from photo_search.schemas import MediaRecord

# --- PROMPTS ---

OUTPUT_CONTRACT = (
    'Respond ONLY with a JSON object of the form {"matchedIds": ["id1", "id2"], "confidence": "high"}. '
    "Use the exact photo IDs given to you. If nothing matches, return {\"matchedIds\": []}. "
    "Do not add any text before or after the JSON."
)

FACE_SIMILARITY_PROMPT = (
    "You are a face-matching assistant for an event photo gallery. "
    "You receive one REFERENCE photo followed by candidate photos, each labelled with its ID. "
    "Compare facial structure only: face shape, eyes, nose, mouth, eyebrows, hairline, skin tone and age. "
    "Ignore clothing, accessories, pose, background and lighting. "
    "Return every candidate photo in which the same person as in the reference appears, "
    "including group photos. Only include a photo when you are highly confident it is the same person. "
    + OUTPUT_CONTRACT
)

TEXT_DESCRIPTION_PROMPT = (
    "You are a photo search assistant for an event photo gallery. "
    "You receive a description and candidate photos, each labelled with its ID. "
    "Compare the visual content of each photo against the description: people, objects, colors, "
    "clothing, actions and scene. Return the photos that match the description. "
    + OUTPUT_CONTRACT
)

NO_CRITERION_PROMPT = (
    "You are a photo search assistant. No search criterion was provided, so no photo matches. "
    + OUTPUT_CONTRACT
)

_DATA_URL = re.compile(r"^data:[\w.+-]+/[\w.+-]+;base64,", re.IGNORECASE)


class SearchMode(str, Enum):
    FACE = "face"
    TEXT = "text"
    NONE = "none"


def select_mode(query: Optional[str], image: Optional[str]) -> SearchMode:
    """The reference image wins when both are given; the text query is then ignored."""
    if image:
        return SearchMode.FACE
    if query:
        return SearchMode.TEXT
    return SearchMode.NONE


def normalize_image_reference(image: str, default_mime: str = "image/jpeg") -> str:
    """
    Accepts a data URL, an http(s) URL or raw base64 and returns something
    the chat-completions `image_url` field understands.
    """
    image = image.strip()
    if _DATA_URL.match(image) or image.startswith(("http://", "https://")):
        return image
    return f"data:{default_mime};base64,{''.join(image.split())}"


def _image_part(url: str, detail: str) -> Dict[str, Any]:
    return {"type": "image_url", "image_url": {"url": url, "detail": detail}}


def _photo_parts(batch: Sequence[MediaRecord], detail: str) -> List[Dict[str, Any]]:
    parts: List[Dict[str, Any]] = []
    for photo in batch:
        parts.append({"type": "text", "text": f"Photo ID: {photo.id}"})
        parts.append(_image_part(photo.file_url, detail))
    return parts


def build_match_messages(
    batch: Sequence[MediaRecord],
    query: Optional[str] = None,
    image: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Builds the chat-completions `messages` for one batch.

    Face mode: reference first, then every photo tagged with its ID, all at high detail.
    Text mode: description and available IDs, then the tagged photos.
    No criterion: photos only, and a system prompt that expects no match.
    """
    mode = select_mode(query, image)
    ids = ", ".join(photo.id for photo in batch)

    if mode == SearchMode.FACE:
        content = [
            {"type": "text", "text": "Reference photo (the person to find):"},
            _image_part(normalize_image_reference(image), "high"),
            {"type": "text", "text": f"Candidate photos. Available IDs: {ids}"},
        ]
        content.extend(_photo_parts(batch, "high"))
        system_prompt = FACE_SIMILARITY_PROMPT

    elif mode == SearchMode.TEXT:
        content = [
            {"type": "text", "text": f"Find photos matching: {query}\n\nAvailable IDs: {ids}"},
        ]
        content.extend(_photo_parts(batch, "auto"))
        system_prompt = TEXT_DESCRIPTION_PROMPT

    else:
        content = [{"type": "text", "text": f"Available IDs: {ids}"}]
        content.extend(_photo_parts(batch, "auto"))
        system_prompt = NO_CRITERION_PROMPT

    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": content},
    ]
