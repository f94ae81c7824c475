"""
Dashboard Draft Data Repository

Data access layer for draft entities - PostgreSQL (Async).
One table per entity kind; columns are derived from the kind descriptor.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set

import asyncpg

from core.postgres_client import AsyncPostgresClient

from .entity_kinds import ENTITY_KINDS, EntityKindDescriptor
from .models import ApprovalStatus, DraftEntity
from .protocols import DraftAlreadyExistsError

logger = logging.getLogger(__name__)

WORKFLOW_COLUMNS = (
    "status",
    "submitted_by",
    "submitted_at",
    "reviewed_by",
    "reviewed_at",
    "comment",
)


class DraftRepository:
    """Draft entity repository - PostgreSQL (Async)"""

    def __init__(self, db: AsyncPostgresClient, schema: str = "dashboard"):
        self.db = db
        self.schema = schema
        self._initialized_tables: Set[str] = set()

    async def initialize(self):
        """Ensure one draft table exists per entity kind"""
        await self.db.execute(f"CREATE SCHEMA IF NOT EXISTS {self.schema}")
        for kind in ENTITY_KINDS.values():
            await self._ensure_table(kind)
        logger.info("Draft repository initialized with PostgreSQL")

    async def close(self):
        logger.info("Draft repository closed")

    async def health_check(self) -> bool:
        return await self.db.health_check()

    async def _ensure_table(self, kind: EntityKindDescriptor) -> None:
        if kind.table in self._initialized_tables:
            return

        content_columns = ",\n".join(
            f"                {field} {kind.column_type(field)}" for field in kind.content_fields
        )
        create_sql = f"""
            CREATE TABLE IF NOT EXISTS {self.schema}.{kind.table} (
                id TEXT PRIMARY KEY,
                campaign_id TEXT NOT NULL UNIQUE,
{content_columns},
                status TEXT NOT NULL DEFAULT 'draft',
                submitted_by TEXT,
                submitted_at TIMESTAMPTZ,
                reviewed_by TEXT,
                reviewed_at TIMESTAMPTZ,
                comment TEXT,
                created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            )
        """
        index_sql = (
            f"CREATE INDEX IF NOT EXISTS idx_{kind.table}_status "
            f"ON {self.schema}.{kind.table}(status)"
        )

        await self.db.execute(create_sql)
        await self.db.execute(index_sql)
        self._initialized_tables.add(kind.table)

    # ====================
    # Draft CRUD
    # ====================

    async def create_draft(self, kind: EntityKindDescriptor, draft: DraftEntity) -> DraftEntity:
        """Insert a new draft row"""
        columns = ["id", "campaign_id", *kind.content_fields, *WORKFLOW_COLUMNS, "created_at", "updated_at"]
        now = datetime.now(timezone.utc)
        values: List[Any] = [
            draft.id,
            draft.campaign_id,
            *[draft.content.get(field) for field in kind.content_fields],
            draft.status.value,
            draft.submitted_by,
            draft.submitted_at,
            draft.reviewed_by,
            draft.reviewed_at,
            draft.comment,
            draft.created_at or now,
            draft.updated_at or now,
        ]
        placeholders = ", ".join(f"${i}" for i in range(1, len(columns) + 1))

        query = f'''
            INSERT INTO {self.schema}.{kind.table} ({", ".join(columns)})
            VALUES ({placeholders})
            RETURNING *
        '''

        try:
            row = await self.db.query_row(query, values)
            return self._row_to_draft(kind, row)
        except asyncpg.UniqueViolationError:
            raise DraftAlreadyExistsError(f"{kind.label} already exists for this campaign")
        except Exception as e:
            logger.error(f"Error creating {kind.entity_type.value} draft for campaign {draft.campaign_id}: {e}")
            raise

    async def get_draft(self, kind: EntityKindDescriptor, draft_id: str) -> Optional[DraftEntity]:
        """Get draft by ID"""
        try:
            row = await self.db.query_row(
                f"SELECT * FROM {self.schema}.{kind.table} WHERE id = $1",
                [draft_id],
            )
            return self._row_to_draft(kind, row) if row else None
        except Exception as e:
            logger.error(f"Error getting {kind.entity_type.value} draft {draft_id}: {e}")
            raise

    async def get_draft_by_campaign(
        self, kind: EntityKindDescriptor, campaign_id: str
    ) -> Optional[DraftEntity]:
        """Get the draft of a campaign"""
        try:
            row = await self.db.query_row(
                f"SELECT * FROM {self.schema}.{kind.table} WHERE campaign_id = $1",
                [campaign_id],
            )
            return self._row_to_draft(kind, row) if row else None
        except Exception as e:
            logger.error(f"Error getting {kind.entity_type.value} draft for campaign {campaign_id}: {e}")
            raise

    async def update_draft(
        self, kind: EntityKindDescriptor, draft_id: str, updates: Dict[str, Any]
    ) -> Optional[DraftEntity]:
        """Update content and workflow columns; updated_at is always refreshed"""
        allowed = set(kind.content_fields) | set(WORKFLOW_COLUMNS)
        unknown = set(updates) - allowed
        if unknown:
            raise ValueError(f"Unknown {kind.entity_type.value} columns: {sorted(unknown)}")

        set_clauses = []
        params: List[Any] = []
        for column, value in updates.items():
            if isinstance(value, ApprovalStatus):
                value = value.value
            params.append(value)
            set_clauses.append(f"{column} = ${len(params)}")

        params.append(datetime.now(timezone.utc))
        set_clauses.append(f"updated_at = ${len(params)}")
        params.append(draft_id)

        query = f'''
            UPDATE {self.schema}.{kind.table}
            SET {", ".join(set_clauses)}
            WHERE id = ${len(params)}
            RETURNING *
        '''

        try:
            row = await self.db.query_row(query, params)
            return self._row_to_draft(kind, row) if row else None
        except Exception as e:
            logger.error(f"Error updating {kind.entity_type.value} draft {draft_id}: {e}")
            raise

    async def delete_draft(self, kind: EntityKindDescriptor, draft_id: str) -> bool:
        """Hard delete a draft"""
        try:
            result = await self.db.execute(
                f"DELETE FROM {self.schema}.{kind.table} WHERE id = $1",
                [draft_id],
            )
            return result.endswith(" 1")
        except Exception as e:
            logger.error(f"Error deleting {kind.entity_type.value} draft {draft_id}: {e}")
            raise

    # ====================
    # Row mapping
    # ====================

    @staticmethod
    def _row_to_draft(kind: EntityKindDescriptor, row: Dict[str, Any]) -> DraftEntity:
        return DraftEntity(
            id=row["id"],
            campaign_id=row["campaign_id"],
            entity_type=kind.entity_type,
            content={field: row.get(field) for field in kind.content_fields},
            status=ApprovalStatus(row["status"]),
            submitted_by=row.get("submitted_by"),
            submitted_at=row.get("submitted_at"),
            reviewed_by=row.get("reviewed_by"),
            reviewed_at=row.get("reviewed_at"),
            comment=row.get("comment"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )


__all__ = ["DraftRepository", "WORKFLOW_COLUMNS"]
