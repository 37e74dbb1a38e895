import random

import pytest

from core.exceptions import InsufficientInputError
from models.domain.gemstone import GemstonePhoto
from models.domain.policy import SamplingPolicy
from services.analysis.sampler import ImageRef, ImageSampler, PositionMap


def make_photos(count, with_ids=True):
    return [
        GemstonePhoto(
            id=f"img-{i}" if with_ids else None,
            gemstone_id="gem-1",
            image_url=f"https://cdn.example.com/{i}.jpg",
            image_order=i,
        )
        for i in range(count)
    ]


@pytest.mark.parametrize("count", [1, 2, 7, 15])
def test_small_sets_are_fully_covered_in_display_order(count):
    photos = make_photos(count)

    sample = ImageSampler(rng=random.Random(1)).sample(photos)

    assert sample.photos == photos
    assert sample.is_full_coverage
    assert sample.mapping.is_identity
    assert sample.mapping.photo_ids == [p.id for p in photos]


@pytest.mark.parametrize("count", [16, 20, 100])
def test_large_sets_are_sampled_to_ten_without_repeats(count):
    photos = make_photos(count)

    sample = ImageSampler(rng=random.Random(count)).sample(photos)

    assert len(sample) == 10
    assert sample.total == count
    assert not sample.is_full_coverage
    ids = [p.id for p in sample.photos]
    assert len(set(ids)) == 10
    assert set(ids) <= {p.id for p in photos}


def test_mapping_resolves_every_position_to_its_original_photo():
    photos = make_photos(20)

    sample = ImageSampler(rng=random.Random(3)).sample(photos)

    for position, photo in enumerate(sample.photos):
        ref = sample.mapping.resolve(position)
        assert ref.photo_id == photo.id
        assert photos[ref.original_index] is photo
        assert sample.mapping.position_of(photo.id) == position


def test_sampling_is_random_not_positional():
    photos = make_photos(30)
    firsts = {
        tuple(p.id for p in ImageSampler(rng=random.Random(seed)).sample(photos).photos)
        for seed in range(5)
    }

    assert len(firsts) > 1
    assert ("img-0", "img-1", "img-2", "img-3", "img-4", "img-5", "img-6", "img-7", "img-8", "img-9") not in firsts


def test_empty_photo_list_is_rejected():
    with pytest.raises(InsufficientInputError) as exc_info:
        ImageSampler().sample([])

    assert exc_info.value.code == "INSUFFICIENT_INPUT"


def test_policy_overrides_limits():
    sampler = ImageSampler(SamplingPolicy(full_coverage_limit=3, sample_size=2), rng=random.Random(0))

    assert len(sampler.sample(make_photos(3))) == 3
    assert len(sampler.sample(make_photos(4))) == 2


def test_photos_without_ids_map_by_position():
    sample = ImageSampler(rng=random.Random(0)).sample(make_photos(4, with_ids=False))

    assert sample.mapping.photo_ids == [None] * 4
    assert sample.mapping.resolve(2) == ImageRef(None, 2)


def test_position_map_rejects_out_of_range_and_duplicates():
    mapping = PositionMap.positional(3)

    with pytest.raises(IndexError):
        mapping.resolve(3)
    with pytest.raises(IndexError):
        mapping.resolve(-1)
    with pytest.raises(ValueError):
        PositionMap([ImageRef("a", 0), ImageRef("b", 0)])
