"""Candidate de-duplication and validity filtering.

Single place where retained candidates are checked against the expense:
savings, price ceiling, in-radius location for physical goods, and
specification agreement.
"""

import logging
import re
from typing import List, Mapping, Optional

from discovery.extractors import expense_specifications, matches_specifications
from discovery.models import AlternativeCandidate, Expense, UserPreferences
from discovery.utils.url import url_match_key

logger = logging.getLogger(__name__)

# A later duplicate replaces the first-seen one only with at least this much more confidence.
CONFIDENCE_MARGIN = 10

_NON_WORD = re.compile(r"[^a-z0-9]+")


def normalize_name(name: str) -> str:
    return _NON_WORD.sub(" ", (name or "").lower()).strip()


def _contains_either_way(a: str, b: str) -> bool:
    if not a or not b:
        return False
    return a in b or b in a


def are_duplicates(a: AlternativeCandidate, b: AlternativeCandidate) -> bool:
    if _contains_either_way(normalize_name(a.name), normalize_name(b.name)):
        return True
    return _contains_either_way(url_match_key(a.url), url_match_key(b.url))


def _confidence(candidate: AlternativeCandidate) -> int:
    return candidate.confidence if candidate.confidence is not None else 0


def dedupe_candidates(
    candidates: List[AlternativeCandidate],
    confidence_margin: int = CONFIDENCE_MARGIN,
) -> List[AlternativeCandidate]:
    """Collapse duplicates, keeping the first-seen candidate.

    A later duplicate takes the earlier one's slot only when its confidence is
    higher by ``confidence_margin`` and it duplicates nothing else already
    kept. The output never contains a duplicate pair, so a second pass is a
    no-op.
    """
    kept: List[AlternativeCandidate] = []
    for candidate in candidates:
        matches = [i for i, existing in enumerate(kept) if are_duplicates(existing, candidate)]
        if not matches:
            kept.append(candidate)
            continue

        first = matches[0]
        if (
            len(matches) == 1
            and _confidence(candidate) - _confidence(kept[first]) >= confidence_margin
        ):
            logger.debug(
                f"[Dedup] '{candidate.name}' replaces '{kept[first].name}' on confidence"
            )
            kept[first] = candidate
        else:
            logger.debug(f"[Dedup] Dropping '{candidate.name}' as duplicate of '{kept[first].name}'")

    if len(kept) != len(candidates):
        logger.info(f"[Dedup] {len(candidates)} candidates -> {len(kept)} unique")
    return kept


def rejection_reason(
    candidate: AlternativeCandidate,
    expense: Expense,
    preferences: UserPreferences,
    specs: Mapping[str, str],
) -> Optional[str]:
    """Why a candidate must be dropped, or None when it is valid."""
    if candidate.savings <= 0:
        return "no savings"
    if candidate.price >= expense.amount:
        return "price not below original"
    if candidate.type == "physical":
        if candidate.location is None:
            return "no store location"
        if candidate.location.distance_km > preferences.location_radius_km:
            return "store outside radius"
    if specs and not matches_specifications(candidate.name, specs):
        return "specification mismatch"
    return None


def apply_validity_filters(
    candidates: List[AlternativeCandidate],
    expense: Expense,
    preferences: UserPreferences,
    specs: Optional[Mapping[str, str]] = None,
) -> List[AlternativeCandidate]:
    if specs is None:
        specs = expense_specifications(expense.name, expense.description)

    retained: List[AlternativeCandidate] = []
    for candidate in candidates:
        reason = rejection_reason(candidate, expense, preferences, specs)
        if reason:
            logger.debug(f"[Filter] Dropping '{candidate.name}': {reason}")
            continue
        retained.append(candidate)
    return retained
