"""
Lead Classification

Maps a clamped total score to one of four named tiers:

    Hot:          70 .. 100
    Warm:         40 .. 69
    Cold:          0 .. 39
    Disqualified: -100 .. -1
"""

from typing import List, Tuple


HOT = 'Hot'
WARM = 'Warm'
COLD = 'Cold'
DISQUALIFIED = 'Disqualified'
UNKNOWN = 'Unknown'

SCORE_MIN = -100
SCORE_MAX = 100

# (label, min, max), inclusive on both ends
SCORE_BANDS: List[Tuple[str, int, int]] = [
    (HOT, 70, 100),
    (WARM, 40, 69),
    (COLD, 0, 39),
    (DISQUALIFIED, -100, -1),
]

CLASSIFICATIONS = tuple(label for label, _, _ in SCORE_BANDS)


def classify(total: int) -> str:
    """Return the band containing ``total``."""
    for label, low, high in SCORE_BANDS:
        if low <= total <= high:
            return label
    # Unreachable for clamped totals
    return UNKNOWN


def bands_partition_range(bands: List[Tuple[str, int, int]] = SCORE_BANDS) -> bool:
    """Check that ``bands`` cover [SCORE_MIN, SCORE_MAX] with no gaps or overlaps."""
    ordered = sorted(bands, key=lambda band: band[1])
    expected = SCORE_MIN
    for _, low, high in ordered:
        if low != expected or high < low:
            return False
        expected = high + 1
    return expected == SCORE_MAX + 1
