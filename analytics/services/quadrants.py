"""
Four-way classification of a scored population by rating and volume.

Both thresholds are inclusive on the high side: an entity sitting
exactly on a threshold is "high" on that axis.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Generic, Iterable, TypeVar

T = TypeVar('T')

HIGH_VOLUME_HIGH_RATING = 'highConsHighRating'
HIGH_VOLUME_LOW_RATING = 'highConsLowRating'
LOW_VOLUME_HIGH_RATING = 'lowConsHighRating'
LOW_VOLUME_LOW_RATING = 'lowConsLowRating'
QUADRANT_KEYS = (
    HIGH_VOLUME_HIGH_RATING,
    HIGH_VOLUME_LOW_RATING,
    LOW_VOLUME_HIGH_RATING,
    LOW_VOLUME_LOW_RATING,
)


@dataclass
class Quadrants(Generic[T]):
    items: dict[str, list[T]] = field(default_factory=lambda: {k: [] for k in QUADRANT_KEYS})

    def counts(self) -> dict[str, int]:
        return {k: len(self.items[k]) for k in QUADRANT_KEYS}


def quadrant_of(rating: float, volume: float, rating_threshold: float, volume_threshold: float) -> str:
    high_rating = rating >= rating_threshold
    high_volume = volume >= volume_threshold
    if high_volume and high_rating:
        return HIGH_VOLUME_HIGH_RATING
    if high_volume:
        return HIGH_VOLUME_LOW_RATING
    if high_rating:
        return LOW_VOLUME_HIGH_RATING
    return LOW_VOLUME_LOW_RATING


def classify(
    population: Iterable[T],
    rating_threshold: float,
    volume_threshold: float,
    *,
    rating: Callable[[T], float],
    volume: Callable[[T], float],
) -> Quadrants[T]:
    quadrants: Quadrants[T] = Quadrants()
    for entity in population:
        key = quadrant_of(rating(entity), volume(entity), rating_threshold, volume_threshold)
        quadrants.items[key].append(entity)
    return quadrants
