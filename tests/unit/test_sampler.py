"""
Unit tests for video and case sampling.
"""
import random
from collections import Counter

from safety_advisor.schemas.entities import AccidentCase, AccidentType, AccidentVideoSet
from safety_advisor.services.sampler import sample_cases, sample_videos, shuffled


def _type(type_id, name=None):
    return AccidentType(id=type_id, name=name or f"유형 {type_id}")


def _videos(type_id, count):
    urls = [f"https://video/{type_id}/{i}" for i in range(count)]
    return AccidentVideoSet(id=type_id, name=f"유형 {type_id}", videos=urls, videoCount=count)


def _case(case_id, type_id):
    return AccidentCase(id=case_id, title=f"사례 {case_id}", accidentTypeId=type_id)


def test_shuffled_is_a_permutation():
    items = list(range(10))
    result = shuffled(items, random.Random(3))
    assert sorted(result) == items
    assert items == list(range(10))


def test_shuffled_covers_every_permutation():
    rng = random.Random(11)
    seen = Counter(tuple(shuffled("abc", rng)) for _ in range(600))
    assert len(seen) == 6


def test_video_sample_size_is_bounded_per_type():
    for pool_size in range(0, 6):
        result = sample_videos([_type(1)], [_videos(1, pool_size)], rng=random.Random(pool_size))
        assert len(result) == min(2, pool_size)


def test_video_sample_is_reproducible_with_seed():
    types = [_type(1), _type(2)]
    pools = [_videos(1, 5), _videos(2, 5)]
    first = sample_videos(types, pools, rng=random.Random(42))
    second = sample_videos(types, pools, rng=random.Random(42))
    assert first == second


def test_videos_follow_type_order_with_index():
    types = [_type(2, "감전"), _type(1, "떨어짐 (추락)")]
    pools = [_videos(1, 3), _videos(2, 1)]
    result = sample_videos(types, pools, rng=random.Random(0))

    assert [v.type_name for v in result] == ["감전", "떨어짐 (추락)", "떨어짐 (추락)"]
    assert [v.index for v in result] == [1, 1, 2]
    assert result[0].url == "https://video/2/0"
    assert {v.url for v in result[1:]} <= set(pools[0].videos)


def test_type_without_videos_yields_nothing():
    assert sample_videos([_type(9)], [_videos(1, 3)], rng=random.Random(0)) == []
    assert sample_videos([_type(1)], [_videos(1, 0)], rng=random.Random(0)) == []


def test_case_union_counts_each_case_once():
    cases = [_case(i, 1) for i in range(3)] + [_case(i, 2) for i in range(3, 7)] + [_case(7, 5)]
    types = [_type(1), _type(2), _type(2)]
    union = sample_cases(types, cases, limit=100, rng=random.Random(1))

    assert len(union) == 7
    assert {c.id for c in union} == set(range(7))


def test_case_sample_is_capped_at_six():
    cases = [_case(i, 1) for i in range(3)] + [_case(i, 2) for i in range(3, 7)]
    result = sample_cases([_type(1), _type(2)], cases, rng=random.Random(5))

    assert len(result) == 6
    assert len({c.id for c in result}) == 6


def test_case_sample_empty_pool():
    assert sample_cases([_type(1)], [], rng=random.Random(0)) == []
    assert sample_cases([], [_case(1, 1)], rng=random.Random(0)) == []


def test_shuffled_matches_random_shuffle():
    items = list(range(20))
    expected = list(items)
    random.Random(8).shuffle(expected)
    assert shuffled(items, random.Random(8)) == expected
