"""
Base repository class for data access layer.

Repositories keep query logic out of the services and give the services a
small interface that is easy to fake in tests.

Example:
    class BetRepository(BaseRepository[Bet]):
        def find_by_week(self, week: int) -> List[Bet]:
            return self.filter_by(week=week)
"""
import json
import logging
import uuid
from abc import ABC
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy import desc, func
from sqlalchemy.orm import Query, Session

from wagerbook.models import MatchAuditLog

logger = logging.getLogger(__name__)

T = TypeVar("T")


def utcnow() -> datetime:
    """Naive UTC timestamp, the storage convention for every table."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_storage(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive UTC for storage."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def from_storage(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to a stored naive datetime."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class BaseRepository(Generic[T], ABC):
    """
    Base repository class providing common data access methods.

    Attributes:
        model_type: The SQLAlchemy model class this repository manages
        db: The database session
    """

    def __init__(self, model_type: Type[T], db: Session):
        self.model_type = model_type
        self.db = db

    # ========================================================================
    # CRUD Operations
    # ========================================================================

    def find_by_id(self, id: str) -> Optional[T]:
        """Find a single record by ID."""
        return self.db.query(self.model_type).filter(self.model_type.id == id).first()

    def find_all(
        self,
        limit: Optional[int] = None,
        order_by: Optional[str] = None
    ) -> List[T]:
        """
        Find all records.

        Args:
            limit: Maximum number of records to return
            order_by: Column name to order by (prefix with '-' for descending)
        """
        query = self.db.query(self.model_type)

        if order_by:
            if order_by.startswith('-'):
                query = query.order_by(desc(getattr(self.model_type, order_by[1:])))
            else:
                query = query.order_by(getattr(self.model_type, order_by))

        if limit is not None:
            query = query.limit(limit)

        return query.all()

    def create(self, **kwargs) -> T:
        """
        Create a new record.

        Returns:
            The created record (not yet committed to database)
        """
        instance = self.model_type(**kwargs)
        self.db.add(instance)
        return instance

    # ========================================================================
    # Query Builders
    # ========================================================================

    def query(self) -> Query:
        """Get a new query object for this model."""
        return self.db.query(self.model_type)

    def filter_by(self, **kwargs) -> List[T]:
        """Filter records by keyword arguments."""
        return self.db.query(self.model_type).filter_by(**kwargs).all()

    def where(self, *criterion) -> List[T]:
        """Filter records using SQLAlchemy expressions."""
        return self.db.query(self.model_type).filter(*criterion).all()

    def count(self, *criterion) -> int:
        """Count records matching optional criterion."""
        query = self.db.query(func.count(self.model_type.id))
        if criterion:
            query = query.filter(*criterion)
        return query.scalar() or 0

    # ========================================================================
    # Save Operations
    # ========================================================================

    def save(self) -> None:
        """Commit pending changes to the database."""
        self.db.commit()

    def flush(self) -> None:
        """Flush pending changes without committing."""
        self.db.flush()

    def rollback(self) -> None:
        """Rollback pending changes."""
        self.db.rollback()


class AuditLogRepository(BaseRepository[MatchAuditLog]):
    """Append-only audit trail for mapping changes and settlements."""

    def __init__(self, db: Session):
        super().__init__(MatchAuditLog, db)

    def log(
        self,
        entity_type: str,
        entity_id: str,
        action: str,
        previous_state: Optional[Dict[str, Any]],
        new_state: Dict[str, Any],
        match_details: Optional[Dict[str, Any]] = None,
        performed_by: str = "system"
    ) -> MatchAuditLog:
        """Add an audit entry to the session. Committed with the caller's change."""
        return self.create(
            id=str(uuid.uuid4()),
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            previous_state=json.dumps(previous_state, default=str) if previous_state else None,
            new_state=json.dumps(new_state, default=str),
            match_details=json.dumps(match_details, default=str) if match_details else None,
            performed_by=performed_by,
            created_at=utcnow(),
        )

    def for_entity(self, entity_type: str, entity_id: str) -> List[MatchAuditLog]:
        return (
            self.query()
            .filter(
                MatchAuditLog.entity_type == entity_type,
                MatchAuditLog.entity_id == entity_id,
            )
            .order_by(MatchAuditLog.created_at)
            .all()
        )
