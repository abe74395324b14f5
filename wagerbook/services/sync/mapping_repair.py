"""Mapping repair: keep each internal game linked to both providers.

For every internal game the resolver is run independently against the scores
provider's and the odds provider's candidates. A provider id is written when
the stored mapping lacks one, or when the new match is strictly more
confident than the one recorded. Gaps are reported as human-readable issues.

Batch runs are partial-failure tolerant: a provider outage or a bad record
becomes an issue on the affected games, and the run carries on.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Protocol, Sequence

from wagerbook.core.config import settings
from wagerbook.core.exceptions import NoMatchFound, UpstreamFetchFailure
from wagerbook.core.logging import run_context
from wagerbook.models.domain import (
    GameIdentity,
    GameIdMapping,
    MatchCandidate,
    MatchResult,
    Provider,
    RepairResult,
    RepairSummary,
)
from wagerbook.services.sync.matchers.game_matcher import GameIdentityResolver

logger = logging.getLogger(__name__)

PROVIDER_LABELS = {
    Provider.SCORES: "scores-provider",
    Provider.ODDS: "odds-provider",
}


class MappingStore(Protocol):
    def get(self, internal_id: str) -> Optional[GameIdMapping]: ...

    def get_many(self, internal_ids: List[str]) -> Dict[str, GameIdMapping]: ...

    def put(self, internal_id: str, mapping: GameIdMapping, match_methods=None, details=None) -> None: ...


class CandidateSource(Protocol):
    async def fetch_week(self, week: int, season: Optional[int] = None) -> List[MatchCandidate]: ...


@dataclass
class _RepairPlan:
    mapping: GameIdMapping
    changed: bool
    issues: List[str] = field(default_factory=list)
    repairs: List[str] = field(default_factory=list)
    matches: Dict[str, Optional[MatchResult]] = field(default_factory=dict)
    methods: Dict[str, str] = field(default_factory=dict)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MappingRepairService:
    """
    Resolve, persist and audit cross-provider mappings.

    Args:
        mapping_store: Object with ``get``/``get_many``/``put`` (normally GameMappingRepository)
        resolver: Identity resolver (default uses settings.MATCH_MIN_CONFIDENCE)
        game_source: Callable (week, season) -> internal GameIdentity list, for batch runs
        scores_source: Scores-provider adapter with ``fetch_week``
        odds_source: Odds-provider adapter with ``fetch_week``
        fallback_confidence: Lower threshold used to suggest (never write) a match
        clock: Returns the current aware UTC time
    """

    def __init__(
        self,
        mapping_store: MappingStore,
        resolver: Optional[GameIdentityResolver] = None,
        game_source: Optional[Callable[[int, int], List[GameIdentity]]] = None,
        scores_source: Optional[CandidateSource] = None,
        odds_source: Optional[CandidateSource] = None,
        fallback_confidence: Optional[int] = None,
        clock: Callable[[], datetime] = _utcnow
    ):
        self.store = mapping_store
        self.resolver = resolver or GameIdentityResolver()
        self.game_source = game_source
        self.scores_source = scores_source
        self.odds_source = odds_source
        self.fallback_confidence = (
            settings.MATCH_FALLBACK_MIN_CONFIDENCE if fallback_confidence is None else fallback_confidence
        )
        self.clock = clock

    # ========================================================================
    # Single game
    # ========================================================================

    def _plan(
        self,
        game: GameIdentity,
        scores_candidates: Sequence[MatchCandidate],
        odds_candidates: Sequence[MatchCandidate]
    ) -> _RepairPlan:
        existing = self.store.get(game.internal_id)
        if existing is None:
            mapping = GameIdMapping(
                internal_id=game.internal_id,
                home_team=game.home_team,
                away_team=game.away_team,
                kickoff=game.kickoff,
            )
            plan = _RepairPlan(mapping=mapping, changed=True)
            plan.repairs.append("created mapping")
        else:
            mapping = existing.model_copy(deep=True)
            plan = _RepairPlan(mapping=mapping, changed=False)
            if (mapping.home_team, mapping.away_team, mapping.kickoff) != (game.home_team, game.away_team, game.kickoff):
                mapping.home_team = game.home_team
                mapping.away_team = game.away_team
                mapping.kickoff = game.kickoff
                plan.changed = True
                plan.repairs.append("refreshed teams and kickoff")

        for provider, candidates in ((Provider.SCORES, scores_candidates), (Provider.ODDS, odds_candidates)):
            self._apply_provider(plan, game, provider, candidates)

        if plan.changed:
            confidences = [
                mapping.source_confidence(p) or 0
                for p in Provider
                if mapping.source_id(p)
            ]
            mapping.last_verified_confidence = min(confidences) if confidences else 0
            mapping.last_repaired_at = self.clock()

        return plan

    def _apply_provider(
        self,
        plan: _RepairPlan,
        game: GameIdentity,
        provider: Provider,
        candidates: Sequence[MatchCandidate]
    ) -> None:
        label = PROVIDER_LABELS[provider]
        mapping = plan.mapping
        current_id = mapping.source_id(provider)
        current_confidence = mapping.source_confidence(provider) or 0

        try:
            match = self.resolver.require_match(game, candidates, label)
        except NoMatchFound as e:
            plan.matches[provider.value] = None
            logger.debug(str(e))
            if current_id is None:
                plan.issues.append(f"missing {label} mapping")
                suggestion = self.resolver.find_best_match(game, candidates, self.fallback_confidence)
                if suggestion is not None:
                    plan.issues.append(
                        f"possible {label} match {suggestion.matched.source_id(provider)} "
                        f"at {suggestion.confidence}% needs review"
                    )
            else:
                plan.issues.append(
                    f"{label} mapping {current_id} not re-verified "
                    f"(no candidate at or above {self.resolver.min_confidence}%)"
                )
            return

        plan.matches[provider.value] = match
        new_id = match.matched.source_id(provider)
        if current_id is None or match.confidence > current_confidence:
            if new_id == current_id:
                plan.repairs.append(f"{label} confidence {current_confidence}% -> {match.confidence}%")
            else:
                plan.repairs.append(
                    f"{label} id {current_id or 'none'} -> {new_id} ({match.confidence}%, {match.method.value})"
                )
            if provider is Provider.SCORES:
                mapping.scores_provider_id = new_id
                mapping.scores_confidence = match.confidence
            else:
                mapping.odds_provider_id = new_id
                mapping.odds_confidence = match.confidence
            plan.methods[provider.value] = match.method.value
            plan.changed = True
        elif new_id != current_id:
            plan.issues.append(
                f"{label} candidate {new_id} ({match.confidence}%) conflicts with "
                f"stored {current_id} ({current_confidence}%)"
            )

    def resolve_and_repair(
        self,
        game: GameIdentity,
        scores_candidates: Sequence[MatchCandidate],
        odds_candidates: Sequence[MatchCandidate]
    ) -> RepairResult:
        """
        Resolve one internal game against both providers and persist any change.

        Args:
            game: Internal game (``internal_id`` required)
            scores_candidates: Candidates from the scores provider
            odds_candidates: Candidates from the odds provider

        Returns:
            RepairResult with the mapping as stored, issues and applied repairs
        """
        if not game.internal_id:
            raise ValueError("resolve_and_repair requires an internal game id")

        plan = self._plan(game, scores_candidates, odds_candidates)

        if plan.changed:
            self.store.put(
                game.internal_id,
                plan.mapping,
                match_methods=plan.methods,
                details={"repairs": plan.repairs, "issues": plan.issues},
            )
            logger.info(f"Repaired mapping for {game.internal_id}: {'; '.join(plan.repairs)}")

        for issue in plan.issues:
            logger.warning(f"Mapping issue for {game.internal_id} ({game.away_team} @ {game.home_team}): {issue}")

        return RepairResult(
            internal_id=game.internal_id,
            mapping=plan.mapping,
            issues=plan.issues,
            repairs_applied=plan.repairs,
            matches=plan.matches,
        )

    def validate_mapping(
        self,
        game: GameIdentity,
        scores_candidates: Sequence[MatchCandidate],
        odds_candidates: Sequence[MatchCandidate]
    ) -> RepairResult:
        """Dry run of ``resolve_and_repair``: reports what would change, writes nothing."""
        plan = self._plan(game, scores_candidates, odds_candidates)
        return RepairResult(
            internal_id=game.internal_id,
            mapping=plan.mapping,
            issues=plan.issues,
            repairs_applied=plan.repairs if plan.changed else [],
            matches=plan.matches,
        )

    # ========================================================================
    # Batch
    # ========================================================================

    async def _fetch_candidates(
        self,
        source: Optional[CandidateSource],
        provider: Provider,
        week: int,
        season: int,
        summary: RepairSummary
    ) -> List[MatchCandidate]:
        label = PROVIDER_LABELS[provider]
        if source is None:
            summary.provider_errors.append(f"{label} not configured")
            return []
        try:
            return await source.fetch_week(week, season)
        except UpstreamFetchFailure as e:
            logger.error(f"Could not fetch {label} candidates for week {week}: {e}")
            summary.provider_errors.append(f"{label} unavailable: {e.detail}")
            return []
        except Exception as e:
            logger.error(f"Unexpected error reading {label} candidates for week {week}: {e}", exc_info=True)
            summary.provider_errors.append(f"{label} unreadable: {e}")
            return []

    async def repair_all(
        self,
        week: int,
        season: Optional[int] = None,
        games: Optional[List[GameIdentity]] = None
    ) -> RepairSummary:
        """
        Repair every game of a week.

        A game counts as failed when neither provider produced an accepted
        match; it is reported with its issues and not retried in this call.

        Args:
            week: League week
            season: Season year (defaults to settings.CURRENT_SEASON)
            games: Internal games to repair (defaults to ``game_source``)

        Returns:
            RepairSummary with repaired/unchanged/failed counts
        """
        season = season or settings.CURRENT_SEASON

        with run_context("repair") as run_id:
            summary = RepairSummary(week=week, season=season, run_id=run_id)

            if games is None:
                if self.game_source is None:
                    raise ValueError("repair_all needs games or a game_source")
                games = self.game_source(week, season)

            logger.info(f"Repairing mappings for {len(games)} games in {season} week {week}")

            scores_candidates = await self._fetch_candidates(self.scores_source, Provider.SCORES, week, season, summary)
            odds_candidates = await self._fetch_candidates(self.odds_source, Provider.ODDS, week, season, summary)

            for game in games:
                try:
                    result = self.resolve_and_repair(game, scores_candidates, odds_candidates)
                except Exception as e:
                    logger.error(f"Mapping repair failed for game {game.internal_id}: {e}", exc_info=True)
                    summary.failed += 1
                    summary.failures[game.internal_id] = [f"repair error: {e}"]
                    continue

                result.issues.extend(summary.provider_errors)
                summary.results.append(result)

                if not result.matched_any:
                    summary.failed += 1
                    summary.failures[game.internal_id] = list(result.issues)
                elif result.repairs_applied:
                    summary.repaired += 1
                else:
                    summary.unchanged += 1

            logger.info(
                f"Mapping repair complete: {summary.repaired} repaired, "
                f"{summary.unchanged} unchanged, {summary.failed} failed"
            )
            return summary

    # ========================================================================
    # Health
    # ========================================================================

    def check_health(self, games: Sequence[GameIdentity]) -> Dict:
        """
        Report mapping coverage for a set of internal games.

        Linked games whose last verified confidence is below the resolver
        threshold are listed under ``low_confidence``.

        Returns:
            Dict with total_games, per-status counts, health_score (0-100),
            low_confidence ids, per-game statuses and recommendations
        """
        counts = {"healthy": 0, "missing_scores": 0, "missing_odds": 0, "missing_both": 0}
        per_game = []
        low_confidence = []
        mappings = self.store.get_many([game.internal_id for game in games])

        for game in games:
            mapping = mappings.get(game.internal_id)
            has_scores = bool(mapping and mapping.scores_provider_id)
            has_odds = bool(mapping and mapping.odds_provider_id)

            if has_scores and has_odds:
                status = "healthy"
            elif has_odds:
                status = "missing_scores"
            elif has_scores:
                status = "missing_odds"
            else:
                status = "missing_both"

            confidence = mapping.last_verified_confidence if mapping else 0
            if (has_scores or has_odds) and confidence < self.resolver.min_confidence:
                low_confidence.append(game.internal_id)

            counts[status] += 1
            per_game.append({
                "internal_id": game.internal_id,
                "matchup": f"{game.away_team} @ {game.home_team}",
                "status": status,
                "confidence": confidence,
            })

        total = len(per_game)
        health_score = round(counts["healthy"] / total * 100) if total else 100

        recommendations = []
        if counts["missing_both"]:
            recommendations.append(f"{counts['missing_both']} games have no provider ids; run repair_all")
        if counts["missing_scores"]:
            recommendations.append(f"{counts['missing_scores']} games cannot be scored automatically")
        if counts["missing_odds"]:
            recommendations.append(f"{counts['missing_odds']} games have no odds linkage")
        if low_confidence:
            recommendations.append(
                f"{len(low_confidence)} games linked below {self.resolver.min_confidence}% confidence; review them"
            )
        if not recommendations:
            recommendations.append("All mappings healthy")

        return {
            "total_games": total,
            **counts,
            "health_score": health_score,
            "low_confidence": low_confidence,
            "games": per_game,
            "recommendations": recommendations,
        }
