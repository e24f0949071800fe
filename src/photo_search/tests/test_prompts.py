from conftest import batch_ids, make_photos
from photo_search.prompts import (
    SearchMode,
    build_match_messages,
    normalize_image_reference,
    select_mode,
)


def image_parts(messages):
    return [part for part in messages[1]["content"] if part["type"] == "image_url"]

def test_select_mode_image_takes_priority():
    assert select_mode("blue dress", "aGVsbG8=") == SearchMode.FACE
    assert select_mode("blue dress", None) == SearchMode.TEXT
    assert select_mode(None, None) == SearchMode.NONE

def test_face_mode_reference_first_high_detail():
    batch = make_photos(3)

    messages = build_match_messages(batch, query="ignored text", image="data:image/png;base64,aGVsbG8=")

    assert messages[0]["role"] == "system"
    assert "facial" in messages[0]["content"]
    assert "clothing" in messages[0]["content"]
    assert "matchedIds" in messages[0]["content"]

    images = image_parts(messages)
    assert images[0]["image_url"]["url"] == "data:image/png;base64,aGVsbG8="
    assert [i["image_url"]["url"] for i in images[1:]] == [p.file_url for p in batch]
    assert all(i["image_url"]["detail"] == "high" for i in images)
    assert "Reference" in messages[1]["content"][0]["text"]

    # the text query is not used when a reference image is present
    assert not any("ignored text" in p.get("text", "") for p in messages[1]["content"])

def test_text_mode_contains_query_and_ids():
    batch = make_photos(2)

    messages = build_match_messages(batch, query="child holding a candle")

    assert "description" in messages[0]["content"]
    first_text = messages[1]["content"][0]["text"]
    assert "child holding a candle" in first_text
    assert "p1, p2" in first_text
    assert batch_ids(messages) == ["p1", "p2"]
    assert len(image_parts(messages)) == 2

def test_no_criterion_still_lists_photos():
    messages = build_match_messages(make_photos(2))

    assert batch_ids(messages) == ["p1", "p2"]
    assert "No search criterion" in messages[0]["content"]

def test_normalize_raw_base64():
    assert normalize_image_reference("aGVs\nbG8=") == "data:image/jpeg;base64,aGVsbG8="

def test_normalize_passthrough():
    assert normalize_image_reference("data:image/webp;base64,AAAA") == "data:image/webp;base64,AAAA"
    assert normalize_image_reference("https://cdn.example.com/ref.jpg") == "https://cdn.example.com/ref.jpg"
