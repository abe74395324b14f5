"""Shared pytest fixtures for wagerbook tests."""
from datetime import datetime, timezone
from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from wagerbook.models import Base
from wagerbook.models.domain import (
    GameIdentity,
    GameStatus,
    MatchCandidate,
    PlayerStatLine,
    ResolvedGame,
)


def utc(*args) -> datetime:
    """Aware UTC datetime shorthand."""
    return datetime(*args, tzinfo=timezone.utc)


# 2025 week 1, Sunday Sept 7, 4:25 PM ET
CHIEFS_AT_RAIDERS_KICKOFF = utc(2025, 9, 7, 20, 25)
# 2025 week 1, Sunday Sept 7, 1:00 PM ET
BILLS_AT_JETS_KICKOFF = utc(2025, 9, 7, 17, 0)


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create fresh test database session with isolated in-memory database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    TestSessionLocal = sessionmaker(bind=engine)
    session = TestSessionLocal()

    yield session

    session.close()
    engine.dispose()


@pytest.fixture
def internal_game() -> GameIdentity:
    """Internal record for Chiefs @ Raiders."""
    return GameIdentity(
        internal_id="game-chiefs-raiders",
        home_team="Las Vegas Raiders",
        away_team="Kansas City Chiefs",
        kickoff=CHIEFS_AT_RAIDERS_KICKOFF,
    )


@pytest.fixture
def second_internal_game() -> GameIdentity:
    """Internal record for Bills @ Jets."""
    return GameIdentity(
        internal_id="game-bills-jets",
        home_team="New York Jets",
        away_team="Buffalo Bills",
        kickoff=BILLS_AT_JETS_KICKOFF,
    )


@pytest.fixture
def scores_candidates():
    """Scores-provider (ESPN) view of week 1."""
    return [
        MatchCandidate(
            scores_provider_id="401772001",
            home_team="Las Vegas Raiders",
            away_team="Kansas City Chiefs",
            kickoff=CHIEFS_AT_RAIDERS_KICKOFF,
            status=GameStatus.FINAL,
            home_score=20,
            away_score=24,
        ),
        MatchCandidate(
            scores_provider_id="401772002",
            home_team="New York Jets",
            away_team="Buffalo Bills",
            kickoff=BILLS_AT_JETS_KICKOFF,
            status=GameStatus.FINAL,
            home_score=17,
            away_score=27,
        ),
    ]


@pytest.fixture
def odds_candidates():
    """Odds-provider view of week 1 (abbreviated names, kickoff 10 minutes off)."""
    return [
        MatchCandidate(
            odds_provider_id="evt-kc-lv",
            home_team="LV",
            away_team="KC",
            kickoff=utc(2025, 9, 7, 20, 35),
        ),
        MatchCandidate(
            odds_provider_id="evt-buf-nyj",
            home_team="NY Jets",
            away_team="Bills",
            kickoff=utc(2025, 9, 7, 17, 0),
        ),
    ]


@pytest.fixture
def chiefs_raiders_final() -> ResolvedGame:
    """Chiefs 24 - Raiders 20, Raiders at home, with a box score."""
    return ResolvedGame(
        game_id="game-chiefs-raiders",
        home_team="Las Vegas Raiders",
        away_team="Kansas City Chiefs",
        status=GameStatus.FINAL,
        home_score=20,
        away_score=24,
        kickoff=CHIEFS_AT_RAIDERS_KICKOFF,
        player_stats=[
            PlayerStatLine(player_name="Patrick Mahomes", team="Kansas City Chiefs", passing_yards=258, rushing_yards=22),
            PlayerStatLine(player_name="Travis Kelce", team="Kansas City Chiefs", receiving_yards=26),
            PlayerStatLine(player_name="Brock Bowers", team="Las Vegas Raiders", receiving_yards=103),
            PlayerStatLine(player_name="Ashton Jeanty", team="Las Vegas Raiders", rushing_yards=38, receiving_yards=65.5),
        ],
    )
