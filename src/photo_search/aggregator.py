import json
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

from photo_search.errors import MalformedModelOutput, PhotoSearchError
from photo_search.schemas import MatchResult

# Gemini-style answers often come wrapped in ```json ... ```
_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


def _as_id(value) -> Optional[str]:
    """Catalog ids may be numeric; the model can echo them back as JSON numbers."""
    if isinstance(value, str):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return None


def parse_match_output(text: str) -> MatchResult:
    """
    Strictly parses one batch answer into a MatchResult.
    Raises MalformedModelOutput when the text is not {"matchedIds": [...]}.
    """
    if text is None:
        raise MalformedModelOutput("Empty model output")

    stripped = text.strip()
    fenced = _CODE_FENCE.match(stripped)
    if fenced:
        stripped = fenced.group(1)

    try:
        parsed = json.loads(stripped)
    except json.JSONDecodeError as e:
        raise MalformedModelOutput(f"Model output is not JSON: {text[:200]!r}") from e

    if not isinstance(parsed, dict) or "matchedIds" not in parsed:
        raise MalformedModelOutput(f"Model output has no matchedIds: {text[:200]!r}")

    matched = parsed["matchedIds"]
    if not isinstance(matched, list):
        raise MalformedModelOutput(f"matchedIds is not a list: {matched!r}")

    confidence = parsed.get("confidence")
    return MatchResult(
        matched_ids=[media_id for media_id in map(_as_id, matched) if media_id is not None],
        confidence=confidence if isinstance(confidence, str) else None,
    )


@dataclass(frozen=True)
class BatchOutcome:
    """Result of one batch: either a MatchResult or the error that replaced it."""
    index: int
    result: Optional[MatchResult] = None
    error: Optional[PhotoSearchError] = None

    @classmethod
    def ok(cls, index: int, result: MatchResult) -> "BatchOutcome":
        return cls(index=index, result=result)

    @classmethod
    def failed(cls, index: int, error: PhotoSearchError) -> "BatchOutcome":
        return cls(index=index, error=error)

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.result is not None


def merge_outcomes(outcomes: Iterable[BatchOutcome]) -> List[str]:
    """
    Folds batch outcomes into one deduplicated id list (first-seen order).
    Failed batches contribute nothing.
    """
    merged = {}
    for outcome in outcomes:
        if not outcome.succeeded:
            continue
        for media_id in outcome.result.matched_ids:
            merged.setdefault(media_id, None)
    return list(merged)
