import datetime
import random
from typing import Any, List, Sequence, TypeVar

from .structured import WordRecord

T = TypeVar("T")

# Records never studied sort before everything else.
_NEVER_STUDIED = datetime.datetime.min.replace(tzinfo=datetime.timezone.utc)


def fair_shuffle(items: Sequence[T], rng: Any = None) -> List[T]:
    """
    Return a uniformly shuffled copy of ``items`` (Fisher-Yates).

    ``rng`` is anything with a ``randrange`` method, e.g. ``random.Random(42)``;
    the module-level ``random`` generator is used when omitted.
    """
    rng = rng or random
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randrange(i + 1)
        result[i], result[j] = result[j], result[i]
    return result


def sample_without_replacement(items: Sequence[T], k: int, rng: Any = None) -> List[T]:
    """Draw up to ``k`` distinct positions from ``items`` uniformly at random."""
    if k <= 0:
        return []
    return fair_shuffle(items, rng)[:k]


def is_weak_record(record: WordRecord) -> bool:
    return bool(record.is_weak) or record.incorrect_count > record.correct_count


def prioritize_weak(records: Sequence[WordRecord]) -> List[WordRecord]:
    """Stable partition: weak records first, original order kept in each group."""
    return sorted(records, key=lambda r: 0 if is_weak_record(r) else 1)


def study_time_key(record: WordRecord) -> datetime.datetime:
    last = record.last_studied_at
    if not isinstance(last, datetime.datetime):
        return _NEVER_STUDIED
    if last.tzinfo is None:
        # SQLite hands back naive datetimes; they were written as UTC.
        return last.replace(tzinfo=datetime.timezone.utc)
    return last


def prioritize_oldest(records: Sequence[WordRecord]) -> List[WordRecord]:
    """Stable sort by last study time, never-studied records first."""
    return sorted(records, key=study_time_key)


def order_candidates(
    records: Sequence[WordRecord],
    prioritize_weak_first: bool = False,
    prioritize_oldest_first: bool = False,
) -> List[WordRecord]:
    """
    Apply the two ordering passes in sequence.

    The oldest-first pass runs after the weak-first pass and fully re-sorts the
    list, so with both flags set the study time decides the order and weak
    records only keep their lead among equal timestamps.
    """
    ordered = list(records)
    if prioritize_weak_first:
        ordered = prioritize_weak(ordered)
    if prioritize_oldest_first:
        ordered = prioritize_oldest(ordered)
    return ordered

