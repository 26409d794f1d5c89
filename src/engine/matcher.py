"""Candidate collection and filter chain.

Filter order:
  1. LocalRadiusFilter    - local mode only, drops listings beyond the radius
  2. ClarificationFilter  - only while resolving a pending clarification
"""

import logging
from collections.abc import Callable

from src.core.schemas import Candidate, CandidateBuckets

logger = logging.getLogger(__name__)

# A filter is a callable that takes candidates and returns a subset.
Filter = Callable[[list[Candidate]], list[Candidate]]


def collect_candidates(buckets: CandidateBuckets) -> list[Candidate]:
    """Concatenate provider, feed and public listings, in that order.

    Listings are not deduplicated: the same part in two buckets is scored twice.
    """
    return [*buckets.provider, *buckets.feed, *buckets.public]


class LocalRadiusFilter:
    """Remove candidates farther than ``max_miles``. Unknown distances are kept."""

    def __init__(self, max_miles: float) -> None:
        self._max_miles = max_miles

    def __call__(self, candidates: list[Candidate]) -> list[Candidate]:
        result = [
            c for c in candidates
            if c.distance_miles is None or c.distance_miles <= self._max_miles
        ]
        dropped = len(candidates) - len(result)
        if dropped:
            logger.debug("LocalRadiusFilter: removed %d candidates", dropped)
        return result


class ClarificationFilter:
    """Keep candidates the user's clarification answer points at.

    Comparison is on trimmed, case-folded text. A candidate matches when the
    answer equals its id or name, or when answer and name contain one another.
    """

    def __init__(self, answer: str) -> None:
        self._answer = _fold(answer)

    def __call__(self, candidates: list[Candidate]) -> list[Candidate]:
        result = [c for c in candidates if self._matches(c)]
        dropped = len(candidates) - len(result)
        if dropped:
            logger.debug("ClarificationFilter: removed %d candidates", dropped)
        return result

    def _matches(self, candidate: Candidate) -> bool:
        answer = self._answer
        name = _fold(candidate.name)
        return (
            answer == _fold(candidate.id)
            or answer == name
            or answer in name
            or name in answer
        )


def _fold(text: str) -> str:
    return text.strip().casefold()


def run_filter_chain(
    candidates: list[Candidate],
    filters: list[Filter],
) -> list[Candidate]:
    """Apply filters in order, returning the surviving candidates."""
    result = candidates
    for f in filters:
        result = f(result)
    return result
