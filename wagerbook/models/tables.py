"""
Database tables for the wager book.

Four tables:
- games: canonical internal game records (one per real contest)
- game_mappings: cross-provider id linkage per internal game
- bets: wagers, including parlay legs, head-to-head sides and the
  settled game snapshot
- match_audit_log: audit trail for mapping changes and bet settlements

Datetimes are stored as naive UTC.
"""
from datetime import datetime

from sqlalchemy import Column, String, Float, Integer, DateTime, Text, Index, JSON
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Game(Base):
    """Canonical internal game."""
    __tablename__ = "games"

    id = Column(String(36), primary_key=True)  # md5 of readable_id
    readable_id = Column(String(64), nullable=False, unique=True)  # YYYYMMDD-away-home
    season = Column(Integer, nullable=False, index=True)
    week = Column(Integer, nullable=True, index=True)
    home_team = Column(String(64), nullable=False)
    away_team = Column(String(64), nullable=False)
    kickoff = Column(DateTime, nullable=False, index=True)
    time_slot = Column(String(20), nullable=True)
    status = Column(String(16), nullable=False, default="scheduled", index=True)
    home_score = Column(Integer, nullable=True)
    away_score = Column(Integer, nullable=True)
    player_stats = Column(JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_games_season_week", "season", "week"),
    )


class GameMapping(Base):
    """Maps one internal game to the scores and odds providers' ids."""
    __tablename__ = "game_mappings"

    id = Column(String(36), primary_key=True)  # internal game id
    scores_provider_id = Column(String(64), nullable=True, index=True)
    odds_provider_id = Column(String(64), nullable=True, index=True)
    scores_confidence = Column(Integer, nullable=True)
    odds_confidence = Column(Integer, nullable=True)
    scores_match_method = Column(String(32), nullable=True)
    odds_match_method = Column(String(32), nullable=True)
    home_team = Column(String(64), nullable=False)
    away_team = Column(String(64), nullable=False)
    kickoff = Column(DateTime, nullable=False)
    last_verified_confidence = Column(Integer, nullable=False, default=0)
    last_repaired_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_game_mappings_confidence", "last_verified_confidence"),
    )


class Bet(Base):
    """A wager among group members."""
    __tablename__ = "bets"

    id = Column(String(36), primary_key=True)
    game_id = Column(String(36), nullable=True, index=True)
    season = Column(Integer, nullable=True)
    week = Column(Integer, nullable=True, index=True)
    placed_by = Column(String(64), nullable=True)
    participants = Column(JSON, nullable=False, default=list)
    bet_type = Column(String(16), nullable=False)
    betting_mode = Column(String(16), nullable=False, default="group")
    selection = Column(Text, nullable=False, default="")
    line = Column(Float, nullable=True)
    odds = Column(Integer, nullable=False, default=-110)
    player_name = Column(String(128), nullable=True)
    prop_type = Column(String(32), nullable=True)
    parlay_legs = Column(JSON, nullable=True)
    side_a = Column(JSON, nullable=True)
    side_b = Column(JSON, nullable=True)
    total_amount = Column(Float, nullable=False, default=0.0)
    amount_per_person = Column(Float, nullable=False, default=0.0)
    status = Column(String(16), nullable=False, default="active", index=True)
    result = Column(Text, nullable=True)
    winning_side = Column(String(1), nullable=True)
    game_snapshot = Column(JSON, nullable=True)
    resolved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_bets_week_status", "week", "status"),
    )


class MatchAuditLog(Base):
    """Audit trail for mapping changes and settlements."""
    __tablename__ = "match_audit_log"

    id = Column(String(36), primary_key=True)
    entity_type = Column(String(16), nullable=False)  # 'mapping' | 'bet'
    entity_id = Column(String(64), nullable=False)
    action = Column(String(16), nullable=False, index=True)  # 'create' | 'repair' | 'settle'
    previous_state = Column(Text, nullable=True)
    new_state = Column(Text, nullable=True)
    match_details = Column(Text, nullable=True)
    performed_by = Column(String(64), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    __table_args__ = (
        Index("ix_audit_entity", "entity_type", "entity_id"),
    )
