"""Surface-string similarity between an expected sentence and a learner's answer."""

import math
import re

_NON_WORD = re.compile(r"[^\w\s]", re.ASCII)


def normalize(text: str) -> str:
    """Lowercase, drop punctuation and trim surrounding whitespace."""
    return _NON_WORD.sub("", (text or "").lower()).strip()


def levenshtein_distance(a: str, b: str) -> int:
    """Minimum number of single-character edits turning ``a`` into ``b``."""
    table = [[0] * (len(b) + 1) for _ in range(len(a) + 1)]
    for i in range(len(a) + 1):
        table[i][0] = i
    for j in range(len(b) + 1):
        table[0][j] = j

    for i in range(1, len(a) + 1):
        for j in range(1, len(b) + 1):
            if a[i - 1] == b[j - 1]:
                table[i][j] = table[i - 1][j - 1]
            else:
                table[i][j] = 1 + min(
                    table[i - 1][j - 1],
                    table[i][j - 1],
                    table[i - 1][j],
                )
    return table[len(a)][len(b)]


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def score(expected: str, actual: str) -> int:
    """
    Similarity percentage (0-100) of two sentences after normalization.

    Identical normalized strings (including two empty ones) score 100.
    """
    a = normalize(expected)
    b = normalize(actual)
    if a == b:
        return 100

    distance = levenshtein_distance(a, b)
    longest = max(len(a), len(b))
    return round_half_up(((longest - distance) / longest) * 100)
