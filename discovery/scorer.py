"""
Scoring and ranking policy for retained candidates.

score = savings x (confidence / 100), or savings alone when confidence is
unknown. Ranking is a stable descending sort on score with lower price
breaking ties; presentation order then follows the user's sort preference.
"""

import logging
from typing import List

from discovery.models import AlternativeCandidate, SortPreference

logger = logging.getLogger(__name__)


def candidate_score(candidate: AlternativeCandidate) -> float:
    if candidate.confidence is None:
        return candidate.savings
    return candidate.savings * (candidate.confidence / 100)


def rank_candidates(candidates: List[AlternativeCandidate]) -> List[AlternativeCandidate]:
    """Return a new list sorted by descending score; provenance gains a 'score' key."""
    if not candidates:
        return []

    scored = []
    for candidate in candidates:
        score = candidate_score(candidate)
        provenance = {**candidate.provenance, "score": round(score, 4)}
        scored.append((score, candidate.model_copy(update={"provenance": provenance})))

    # sort() is stable, so equal (score, price) keeps input order
    scored.sort(key=lambda pair: (-pair[0], pair[1].price))

    logger.info(
        f"[Scorer] Ranked {len(scored)} candidates. "
        f"Top score: {scored[0][0]:.3f}, Bottom: {scored[-1][0]:.3f}"
    )
    return [candidate for _, candidate in scored]


def order_for_preference(
    ranked: List[AlternativeCandidate],
    sort_preference: SortPreference,
) -> List[AlternativeCandidate]:
    """Presentation order for an already ranked shortlist."""
    if sort_preference == "price":
        return sorted(ranked, key=lambda c: c.price)
    if sort_preference == "distance":
        return sorted(
            ranked,
            key=lambda c: (c.location is None, c.location.distance_km if c.location else 0.0),
        )
    return list(ranked)
