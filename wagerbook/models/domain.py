"""
Domain types shared by the resolver, the repair service and the settlement engine.

These are plain pydantic models. They carry no database state; repositories
convert between them and the SQLAlchemy tables in ``wagerbook.models.tables``.
"""
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from wagerbook.utils.timezone import get_nfl_season, get_nfl_week, parse_instant


# =============================================================================
# ENUMS
# =============================================================================

class TimeSlot(str, Enum):
    """Broadcast window a game is assigned to."""
    THURSDAY = "thursday"
    SUNDAY_EARLY = "sunday_early"
    SUNDAY_AFTERNOON = "sunday_afternoon"
    SUNDAY_NIGHT = "sunday_night"
    MONDAY = "monday"


class MatchMethod(str, Enum):
    """Score band a match fell into. Observability only."""
    EXACT_ID = "exact_id"
    TEAM_AND_TIME = "team_and_time"
    TEAM_AND_WEEK = "team_and_week"
    FUZZY_TEAM = "fuzzy_team"


class Provider(str, Enum):
    """External game-data providers."""
    SCORES = "scores"
    ODDS = "odds"


class GameStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    FINAL = "final"


class BetType(str, Enum):
    MONEYLINE = "moneyline"
    SPREAD = "spread"
    OVER_UNDER = "over_under"
    PLAYER_PROP = "player_prop"
    PARLAY = "parlay"


class BettingMode(str, Enum):
    GROUP = "group"
    HEAD_TO_HEAD = "head_to_head"


class BetStatus(str, Enum):
    """Bet lifecycle. ``push`` is only produced under ``PushPolicy.PUSH``."""
    ACTIVE = "active"
    WON = "won"
    LOST = "lost"
    UNKNOWN = "unknown"
    CANCELLED = "cancelled"
    PUSH = "push"

    @property
    def is_terminal(self) -> bool:
        return self is not BetStatus.ACTIVE


class PushPolicy(str, Enum):
    """How an exact landing on the line (or a moneyline tie) is graded."""
    LOSS = "loss"
    PUSH = "push"


class PropCategory(str, Enum):
    PASSING = "passing"
    RUSHING = "rushing"
    RECEIVING = "receiving"


# =============================================================================
# IDENTITY RESOLUTION
# =============================================================================

class GameIdentity(BaseModel):
    """
    Source-independent view of a contest used for comparison.

    Team names are kept exactly as provided. Week and season are derived
    from the kickoff when not supplied.
    """
    internal_id: Optional[str] = None
    scores_provider_id: Optional[str] = None
    odds_provider_id: Optional[str] = None
    home_team: str
    away_team: str
    kickoff: datetime
    week: Optional[int] = None
    season: Optional[int] = None

    @field_validator("kickoff", mode="before")
    @classmethod
    def _kickoff_to_utc(cls, value):
        return parse_instant(value)

    @model_validator(mode="after")
    def _fill_calendar(self):
        if self.season is None:
            self.season = get_nfl_season(self.kickoff)
        if self.week is None:
            self.week = get_nfl_week(self.kickoff, self.season)
        return self

    def source_id(self, provider: Provider) -> Optional[str]:
        if provider is Provider.SCORES:
            return self.scores_provider_id
        return self.odds_provider_id


class MatchCandidate(GameIdentity):
    """A game emitted by one provider. Only that provider's id is populated."""
    status: Optional[GameStatus] = None
    home_score: Optional[int] = None
    away_score: Optional[int] = None


class MatchResult(BaseModel):
    """Best match for one target against one candidate list."""
    model_config = ConfigDict(frozen=True)

    matched: MatchCandidate
    confidence: int = Field(..., ge=0, le=100)
    method: MatchMethod


class GameIdMapping(BaseModel):
    """Persisted cross-provider linkage for one internal game."""
    internal_id: str
    scores_provider_id: Optional[str] = None
    odds_provider_id: Optional[str] = None
    scores_confidence: Optional[int] = None
    odds_confidence: Optional[int] = None
    home_team: str
    away_team: str
    kickoff: datetime
    last_verified_confidence: int = 0
    last_repaired_at: Optional[datetime] = None

    def source_id(self, provider: Provider) -> Optional[str]:
        if provider is Provider.SCORES:
            return self.scores_provider_id
        return self.odds_provider_id

    def source_confidence(self, provider: Provider) -> Optional[int]:
        if provider is Provider.SCORES:
            return self.scores_confidence
        return self.odds_confidence


class RepairResult(BaseModel):
    """Outcome of resolving one internal game against both providers."""
    internal_id: str
    mapping: GameIdMapping
    issues: List[str] = Field(default_factory=list)
    repairs_applied: List[str] = Field(default_factory=list)
    matches: Dict[str, Optional[MatchResult]] = Field(default_factory=dict)

    @property
    def matched_any(self) -> bool:
        return any(match is not None for match in self.matches.values())


class RepairSummary(BaseModel):
    """Aggregate outcome of a weekly repair run."""
    week: int
    season: int
    run_id: Optional[str] = None
    repaired: int = 0
    unchanged: int = 0
    failed: int = 0
    results: List[RepairResult] = Field(default_factory=list)
    failures: Dict[str, List[str]] = Field(default_factory=dict)
    provider_errors: List[str] = Field(default_factory=list)


# =============================================================================
# SETTLEMENT
# =============================================================================

class PlayerStatLine(BaseModel):
    player_name: str
    team: Optional[str] = None
    passing_yards: Optional[float] = None
    rushing_yards: Optional[float] = None
    receiving_yards: Optional[float] = None

    def yards(self, category: PropCategory) -> Optional[float]:
        return getattr(self, f"{category.value}_yards")


class ResolvedGame(BaseModel):
    """A game's settlement-relevant state. Only ``final`` games with both scores settle."""
    game_id: str
    home_team: str
    away_team: str
    status: GameStatus = GameStatus.SCHEDULED
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    kickoff: Optional[datetime] = None
    player_stats: Optional[List[PlayerStatLine]] = None

    @property
    def is_resolvable(self) -> bool:
        return (
            self.status is GameStatus.FINAL
            and self.home_score is not None
            and self.away_score is not None
        )

    @property
    def total_points(self) -> int:
        return (self.home_score or 0) + (self.away_score or 0)

    def snapshot(self) -> dict:
        """Frozen copy of the game state stored on a settled bet."""
        return self.model_dump(mode="json")


class ParlayLeg(BaseModel):
    game_id: str
    bet_type: BetType
    selection: str
    line: Optional[float] = None
    odds: Optional[int] = None
    player_name: Optional[str] = None
    prop_type: Optional[str] = None
    status: Optional[BetStatus] = None
    result: Optional[str] = None


class BetSide(BaseModel):
    """One side of a head-to-head wager."""
    participants: List[str] = Field(default_factory=list)
    selection: str


class Bet(BaseModel):
    id: str
    game_id: Optional[str] = None
    week: Optional[int] = None
    season: Optional[int] = None
    placed_by: Optional[str] = None
    participants: List[str] = Field(default_factory=list)
    bet_type: BetType
    betting_mode: BettingMode = BettingMode.GROUP
    selection: str = ""
    line: Optional[float] = None
    odds: int = -110
    player_name: Optional[str] = None
    prop_type: Optional[str] = None
    parlay_legs: List[ParlayLeg] = Field(default_factory=list)
    side_a: Optional[BetSide] = None
    side_b: Optional[BetSide] = None
    total_amount: float = 0.0
    amount_per_person: float = 0.0
    status: BetStatus = BetStatus.ACTIVE
    result: Optional[str] = None
    winning_side: Optional[str] = None
    game_snapshot: Optional[dict] = None
    resolved_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _check_shape(self):
        if self.bet_type is BetType.PARLAY:
            if not self.parlay_legs:
                raise ValueError("parlay bets require at least one leg")
        elif not self.game_id:
            raise ValueError(f"{self.bet_type.value} bets require a game_id")
        if self.betting_mode is BettingMode.HEAD_TO_HEAD and (self.side_a is None or self.side_b is None):
            raise ValueError("head_to_head bets require side_a and side_b")
        return self

    @property
    def game_ids(self) -> List[str]:
        if self.bet_type is BetType.PARLAY:
            return [leg.game_id for leg in self.parlay_legs]
        return [self.game_id]


class LegResult(BaseModel):
    index: int
    game_id: str
    status: BetStatus
    description: str


class SettlementOutcome(BaseModel):
    """
    Result of one settlement attempt.

    ``ready`` is False when a referenced game is not final yet; in that case
    ``status`` stays ``active`` and callers must not persist anything.
    """
    ready: bool
    status: BetStatus
    description: str = ""
    winning_side: Optional[str] = None
    leg_results: List[LegResult] = Field(default_factory=list)

    @classmethod
    def not_ready(cls, reason: str, leg_results: Optional[List[LegResult]] = None) -> "SettlementOutcome":
        return cls(
            ready=False,
            status=BetStatus.ACTIVE,
            description=reason,
            leg_results=leg_results or [],
        )


class SettlementSummary(BaseModel):
    """Aggregate outcome of settling a week's active bets."""
    week: int
    run_id: Optional[str] = None
    examined: int = 0
    settled: int = 0
    pending: int = 0
    failed: int = 0
    by_status: Dict[str, int] = Field(default_factory=dict)
    errors: Dict[str, str] = Field(default_factory=dict)
