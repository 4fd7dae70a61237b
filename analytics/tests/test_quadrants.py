import pytest

from analytics.services.quadrants import (
    HIGH_VOLUME_HIGH_RATING,
    HIGH_VOLUME_LOW_RATING,
    LOW_VOLUME_HIGH_RATING,
    LOW_VOLUME_LOW_RATING,
    classify,
    quadrant_of,
)


@pytest.mark.parametrize('rating, volume, expected', [
    (4.0, 10, HIGH_VOLUME_HIGH_RATING),  # exactly on both thresholds
    (3.99, 10, HIGH_VOLUME_LOW_RATING),
    (4.0, 9, LOW_VOLUME_HIGH_RATING),
    (0.0, 0, LOW_VOLUME_LOW_RATING),
])
def test_quadrant_of(rating, volume, expected):
    assert quadrant_of(rating, volume, 4.0, 10) == expected


def test_classify_partitions_population():
    population = [('a', 4.5, 12), ('b', 2.0, 30), ('c', 4.1, 1), ('d', 1.0, 0), ('e', 5.0, 10)]
    quadrants = classify(population, 4.0, 10, rating=lambda e: e[1], volume=lambda e: e[2])

    assert [e[0] for e in quadrants.items[HIGH_VOLUME_HIGH_RATING]] == ['a', 'e']
    assert quadrants.counts() == {
        HIGH_VOLUME_HIGH_RATING: 2,
        HIGH_VOLUME_LOW_RATING: 1,
        LOW_VOLUME_HIGH_RATING: 1,
        LOW_VOLUME_LOW_RATING: 1,
    }
    assert sum(quadrants.counts().values()) == len(population)


def test_classify_empty_population():
    assert sum(classify([], 3, 3, rating=lambda e: e, volume=lambda e: e).counts().values()) == 0
