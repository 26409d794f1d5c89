"""Ranking and tie resolution for scored candidates.

Candidates whose scores sit within ``tie_score_delta`` of the top score form
the tie set. A tie set of one is an unambiguous primary. A larger tie set is
broken by distance only when the members are spread far enough apart;
otherwise there is no primary and the caller must not guess.
"""

import logging
import math

from pydantic import BaseModel, ConfigDict

from src.core.config import EngineConfig
from src.core.schemas import ScoredCandidate

logger = logging.getLogger(__name__)

_DEFAULT_ENGINE = EngineConfig()


class TieResolution(BaseModel):
    """Outcome of ranking: the top score, the tie set, and the primary (if any)."""

    model_config = ConfigDict(frozen=True)

    top_score: float = 0.0
    tied: list[ScoredCandidate]
    primary: ScoredCandidate | None = None


def _distance_key(scored: ScoredCandidate) -> float:
    distance = scored.candidate.distance_miles
    return math.inf if distance is None else distance


def rank_candidates(scored: list[ScoredCandidate]) -> list[ScoredCandidate]:
    """Sort by score descending, then by distance ascending (missing last).

    The sort is stable, so equal keys keep their bucket order.
    """
    return sorted(scored, key=lambda s: (-s.score, _distance_key(s)))


def resolve_tie(
    ranked: list[ScoredCandidate],
    config: EngineConfig | None = None,
) -> TieResolution:
    """Find the primary candidate of an already ranked list."""
    config = config or _DEFAULT_ENGINE
    if not ranked:
        return TieResolution(tied=[])

    top_score = ranked[0].score
    tied = [s for s in ranked if abs(s.score - top_score) <= config.tie_score_delta]
    if len(tied) <= 1:
        return TieResolution(top_score=top_score, tied=tied, primary=ranked[0])

    by_distance = sorted(tied, key=_distance_key)
    closest, farthest = by_distance[0], by_distance[-1]
    # A missing distance carries no spread information.
    spread = (farthest.candidate.distance_miles or 0.0) - (closest.candidate.distance_miles or 0.0)

    if spread > config.distance_tie_break_miles:
        logger.debug(
            "Tie of %d broken by distance (spread %.1f mi): %s",
            len(tied), spread, closest.candidate.id,
        )
        return TieResolution(top_score=top_score, tied=tied, primary=closest)

    logger.debug("Tie of %d unresolved (spread %.1f mi)", len(tied), spread)
    return TieResolution(top_score=top_score, tied=tied)
