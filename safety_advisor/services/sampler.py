"""
Random selection of illustrative videos and accident cases.

Sampling is a one-shot function of the classified accident types and the
candidate pools. The random source can be injected for reproducible results.
"""
import random
from typing import List, Optional, Sequence, TypeVar

from safety_advisor.schemas.entities import AccidentCase, AccidentType, AccidentVideoSet
from safety_advisor.schemas.responses import SelectedVideo

T = TypeVar("T")

VIDEOS_PER_TYPE = 2
MAX_CASES = 6


def shuffled(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Return a uniformly random permutation of items, leaving items untouched."""
    result = list(items)
    (rng or random).shuffle(result)
    return result


def sample_videos(
    accident_types: Sequence[AccidentType],
    video_sets: Sequence[AccidentVideoSet],
    per_type: int = VIDEOS_PER_TYPE,
    rng: Optional[random.Random] = None
) -> List[SelectedVideo]:
    """
    Pick up to per_type random videos for each accident type, in type order.
    """
    videos_by_type = {}
    for video_set in video_sets:
        videos_by_type.setdefault(video_set.id, video_set.videos)

    selected = []
    for accident_type in accident_types:
        pool = videos_by_type.get(accident_type.id, [])
        picked = shuffled(pool, rng)[:min(per_type, len(pool))]
        for index, url in enumerate(picked, start=1):
            selected.append(SelectedVideo(url=url, type_name=accident_type.name, index=index))
    return selected


def sample_cases(
    accident_types: Sequence[AccidentType],
    cases: Sequence[AccidentCase],
    limit: int = MAX_CASES,
    rng: Optional[random.Random] = None
) -> List[AccidentCase]:
    """
    Pick up to limit random cases among those tagged with any of the accident types.

    Each case is considered once, even when several types are classified.
    """
    type_ids = {accident_type.id for accident_type in accident_types}
    matching = [case for case in cases if case.accident_type_id in type_ids]
    return shuffled(matching, rng)[:min(limit, len(matching))]
