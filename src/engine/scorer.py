"""Weighted relevance scoring for part-availability candidates.

Score range: 0-1. Each signal is bounded to [0, 1] before weighting, and
non-finite signals contribute nothing.
"""

import logging
import math

from src.core.config import ScoringConfig
from src.core.schemas import Candidate, ScoredCandidate

logger = logging.getLogger(__name__)

_DEFAULT_SCORING = ScoringConfig()


def clamp_signal(value: float) -> float:
    """Bound a relevance signal to [0, 1]. NaN and infinities become 0."""
    if not math.isfinite(value):
        return 0.0
    return max(0.0, min(1.0, value))


def score_candidate(
    candidate: Candidate,
    config: ScoringConfig | None = None,
) -> ScoredCandidate:
    """Score a single candidate from its authority, agreement and freshness.

    Args:
        candidate: The listing to score.
        config: Signal weights. Defaults to 0.5 / 0.3 / 0.2.

    Returns:
        ScoredCandidate wrapping the original candidate with a score 0-1.
    """
    config = config or _DEFAULT_SCORING
    score = (
        config.authority_weight * clamp_signal(candidate.authority)
        + config.agreement_weight * clamp_signal(candidate.agreement)
        + config.freshness_weight * clamp_signal(candidate.freshness)
    )
    # Float accumulation can land a hair outside the bounds.
    score = max(0.0, min(1.0, score))
    return ScoredCandidate(candidate=candidate, score=score)


def score_candidates(
    candidates: list[Candidate],
    config: ScoringConfig | None = None,
) -> list[ScoredCandidate]:
    """Score a batch of candidates, preserving input order."""
    scored = [score_candidate(c, config) for c in candidates]
    logger.debug("Scored %d candidates", len(scored))
    return scored
