import math

import pytest

from conftest import make_photos
from photo_search.batching import plan_batches


@pytest.mark.parametrize("count", [0, 1, 14, 15, 16, 30, 31, 32, 100])
@pytest.mark.parametrize("batch_size", [1, 7, 15])
def test_partition_covers_every_photo_once(count, batch_size):
    photos = make_photos(count)

    batches = plan_batches(photos, batch_size)

    assert len(batches) == math.ceil(count / batch_size)
    assert sum(len(b) for b in batches) == count
    assert all(0 < len(b) <= batch_size for b in batches)

    seen = [p.id for b in batches for p in b]
    assert sorted(seen) == sorted(p.id for p in photos)
    assert len(seen) == len(set(seen))

def test_32_photos_default_size():
    batches = plan_batches(make_photos(32))

    assert [len(b) for b in batches] == [15, 15, 2]

def test_batches_keep_catalog_order():
    photos = make_photos(5)

    assert plan_batches(photos, 2) == [photos[0:2], photos[2:4], photos[4:5]]

def test_empty_input_gives_no_batches():
    assert plan_batches([], 15) == []

def test_invalid_batch_size():
    with pytest.raises(ValueError):
        plan_batches(make_photos(3), 0)
