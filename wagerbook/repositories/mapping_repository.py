"""
Mapping store: persisted cross-provider ids per internal game.
"""
import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from wagerbook.models import GameMapping
from wagerbook.models.domain import GameIdMapping
from wagerbook.repositories.base import AuditLogRepository, BaseRepository, from_storage, to_storage, utcnow

logger = logging.getLogger(__name__)


class GameMappingRepository(BaseRepository[GameMapping]):
    """
    Read and write ``GameIdMapping`` records.

    Every write is one mapping row plus one audit entry, committed together.
    """

    def __init__(self, db: Session):
        super().__init__(GameMapping, db)
        self.audit = AuditLogRepository(db)

    @staticmethod
    def _to_domain(row: GameMapping) -> GameIdMapping:
        return GameIdMapping(
            internal_id=row.id,
            scores_provider_id=row.scores_provider_id,
            odds_provider_id=row.odds_provider_id,
            scores_confidence=row.scores_confidence,
            odds_confidence=row.odds_confidence,
            home_team=row.home_team,
            away_team=row.away_team,
            kickoff=from_storage(row.kickoff),
            last_verified_confidence=row.last_verified_confidence or 0,
            last_repaired_at=from_storage(row.last_repaired_at),
        )

    def get(self, internal_id: str) -> Optional[GameIdMapping]:
        """Load the mapping for an internal game, or None on first sight."""
        row = self.find_by_id(internal_id)
        return self._to_domain(row) if row else None

    def get_many(self, internal_ids: List[str]) -> Dict[str, GameIdMapping]:
        """Load mappings for several games in one query, keyed by internal id."""
        if not internal_ids:
            return {}
        rows = self.where(GameMapping.id.in_(internal_ids))
        return {row.id: self._to_domain(row) for row in rows}

    def put(
        self,
        internal_id: str,
        mapping: GameIdMapping,
        match_methods: Optional[Dict[str, str]] = None,
        details: Optional[Dict] = None
    ) -> None:
        """
        Insert or replace the mapping for an internal game.

        Args:
            internal_id: Internal game id
            mapping: Mapping values to store
            match_methods: Optional {'scores': method, 'odds': method} labels
            details: Extra context for the audit entry
        """
        match_methods = match_methods or {}
        row = self.find_by_id(internal_id)
        previous = self._to_domain(row).model_dump(mode="json") if row else None

        if row is None:
            row = self.create(id=internal_id, created_at=utcnow())
            action = "create"
        else:
            action = "repair"

        row.scores_provider_id = mapping.scores_provider_id
        row.odds_provider_id = mapping.odds_provider_id
        row.scores_confidence = mapping.scores_confidence
        row.odds_confidence = mapping.odds_confidence
        if "scores" in match_methods:
            row.scores_match_method = match_methods["scores"]
        if "odds" in match_methods:
            row.odds_match_method = match_methods["odds"]
        row.home_team = mapping.home_team
        row.away_team = mapping.away_team
        row.kickoff = to_storage(mapping.kickoff)
        row.last_verified_confidence = mapping.last_verified_confidence
        row.last_repaired_at = to_storage(mapping.last_repaired_at)
        row.updated_at = utcnow()

        self.audit.log(
            entity_type="mapping",
            entity_id=internal_id,
            action=action,
            previous_state=previous,
            new_state=mapping.model_dump(mode="json"),
            match_details=details,
        )
        self.save()
        logger.debug(f"Stored mapping for {internal_id} ({action})")
