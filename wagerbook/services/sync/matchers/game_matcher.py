"""Game identity resolver for correlating internal games with provider candidates.

Matching bands (see ``confidence_scorer``):
1. Exact id (100) - Both records carry the same provider id
2. Team and time (>=95) - Teams match, kickoff within 2 hours, same week
3. Team and week (>=85) - Teams match, same week, kickoff further apart
4. Fuzzy team (<85) - Partial agreement, only accepted at low thresholds

Only matches at or above the configured minimum confidence are returned
(70 for production repair, 60 for exploratory fallback passes).
"""
import logging
from typing import Iterable, List, Optional, Sequence

from wagerbook.core.config import settings
from wagerbook.core.exceptions import NoMatchFound
from wagerbook.models.domain import GameIdentity, MatchCandidate, MatchResult
from wagerbook.services.sync.utils.confidence_scorer import (
    calculate_game_match_confidence,
    get_match_method_description,
    method_from_confidence,
)
from wagerbook.services.sync.utils.game_ids import generate_game_signature

logger = logging.getLogger(__name__)


def dedupe_candidates(candidates: Iterable[MatchCandidate]) -> List[MatchCandidate]:
    """
    Collapse candidates describing the same contest.

    Candidates are keyed by game signature; the first one seen wins. The
    input list is never modified.
    """
    seen = set()
    unique: List[MatchCandidate] = []
    for candidate in candidates:
        signature = generate_game_signature(candidate)
        if signature in seen:
            logger.debug(f"Dropping duplicate candidate {signature}")
            continue
        seen.add(signature)
        unique.append(candidate)
    return unique


class GameIdentityResolver:
    """
    Match internal games against one provider's candidate list.

    Pure: holds no state beyond its default threshold and performs no I/O.
    """

    def __init__(self, min_confidence: Optional[int] = None):
        """
        Initialize the resolver.

        Args:
            min_confidence: Default acceptance threshold (0-100)
        """
        self.min_confidence = (
            settings.MATCH_MIN_CONFIDENCE if min_confidence is None else min_confidence
        )

    def score(self, a: GameIdentity, b: GameIdentity) -> int:
        """Confidence (0-100) that ``a`` and ``b`` are the same contest."""
        return calculate_game_match_confidence(a, b)

    def find_best_match(
        self,
        target: GameIdentity,
        candidates: Sequence[MatchCandidate],
        min_confidence: Optional[int] = None
    ) -> Optional[MatchResult]:
        """
        Find the best-scoring candidate for a target game.

        Every candidate is scored. Ties keep the earliest candidate in the
        list, so repeated calls with the same inputs return the same result.

        Args:
            target: Internal game to resolve
            candidates: Candidates from a single provider
            min_confidence: Threshold override for this call

        Returns:
            MatchResult, or None if no candidate reaches the threshold
        """
        threshold = self.min_confidence if min_confidence is None else min_confidence

        best_candidate = None
        best_confidence = -1

        for candidate in dedupe_candidates(candidates):
            confidence = self.score(target, candidate)
            if confidence > best_confidence:
                best_confidence = confidence
                best_candidate = candidate

        if best_candidate is None or best_confidence < threshold:
            logger.debug(
                f"No match for {target.away_team} @ {target.home_team}: "
                f"best confidence {max(best_confidence, 0)} < {threshold}"
            )
            return None

        method = method_from_confidence(best_confidence)
        logger.debug(
            f"Matched {target.away_team} @ {target.home_team}: "
            f"{get_match_method_description(best_confidence, method)}"
        )
        return MatchResult(matched=best_candidate, confidence=best_confidence, method=method)

    def best_confidence(self, target: GameIdentity, candidates: Sequence[MatchCandidate]) -> int:
        """Highest score among candidates, regardless of threshold (0 for none)."""
        return max((self.score(target, c) for c in candidates), default=0)

    def require_match(
        self,
        target: GameIdentity,
        candidates: Sequence[MatchCandidate],
        source: str,
        min_confidence: Optional[int] = None
    ) -> MatchResult:
        """
        Like ``find_best_match``, but a miss is an error.

        Raises:
            NoMatchFound: No candidate reached the threshold
        """
        match = self.find_best_match(target, candidates, min_confidence)
        if match is None:
            raise NoMatchFound(source, target.internal_id or "", self.best_confidence(target, candidates))
        return match
