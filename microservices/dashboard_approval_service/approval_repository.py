"""
Approval Record Repository

Data access layer for dashboard approval records - PostgreSQL (Async).
At most one record exists per (entity_type, entity_id).
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import asyncpg

from core.postgres_client import AsyncPostgresClient

from .models import ApprovalRecord, ApprovalStatistics, ApprovalStatus, EntityType
from .protocols import DuplicateApprovalError

logger = logging.getLogger(__name__)


class ApprovalRepository:
    """Approval record repository - PostgreSQL (Async)"""

    def __init__(self, db: AsyncPostgresClient, schema: str = "dashboard"):
        self.db = db
        self.schema = schema
        self.table = "dashboard_approvals"
        self._table_initialized = False

    async def initialize(self):
        await self._ensure_table()
        logger.info("Approval repository initialized with PostgreSQL")

    async def close(self):
        logger.info("Approval repository closed")

    async def _ensure_table(self):
        if self._table_initialized:
            return

        create_sql = f"""
            CREATE TABLE IF NOT EXISTS {self.schema}.{self.table} (
                approval_id TEXT PRIMARY KEY,
                entity_type TEXT NOT NULL,
                entity_id TEXT NOT NULL,
                campaign_id TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'pending',
                submitted_by TEXT,
                submitted_at TIMESTAMPTZ,
                reviewed_by TEXT,
                reviewed_at TIMESTAMPTZ,
                comment TEXT,
                created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                UNIQUE (entity_type, entity_id)
            )
        """
        index_sql = [
            f"CREATE INDEX IF NOT EXISTS idx_{self.table}_status ON {self.schema}.{self.table}(status, submitted_at)",
            f"CREATE INDEX IF NOT EXISTS idx_{self.table}_submitted_by ON {self.schema}.{self.table}(submitted_by)",
            f"CREATE INDEX IF NOT EXISTS idx_{self.table}_campaign ON {self.schema}.{self.table}(campaign_id)",
        ]

        await self.db.execute(f"CREATE SCHEMA IF NOT EXISTS {self.schema}")
        await self.db.execute(create_sql)
        for sql in index_sql:
            await self.db.execute(sql)
        self._table_initialized = True

    # ====================
    # Lookup
    # ====================

    async def find_by_entity(
        self, entity_type: EntityType, entity_id: str
    ) -> Optional[ApprovalRecord]:
        """Get the approval record of an entity"""
        try:
            row = await self.db.query_row(
                f"SELECT * FROM {self.schema}.{self.table} WHERE entity_type = $1 AND entity_id = $2",
                [entity_type.value, entity_id],
            )
            return self._row_to_record(row) if row else None
        except Exception as e:
            logger.error(f"Error finding approval for {entity_type.value}/{entity_id}: {e}")
            raise

    async def has_pending_approval(self, entity_type: EntityType, entity_id: str) -> bool:
        record = await self.find_by_entity(entity_type, entity_id)
        return record is not None and record.status == ApprovalStatus.PENDING

    async def find_by_status(
        self,
        status: ApprovalStatus,
        entity_type: Optional[EntityType] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[ApprovalRecord]:
        """Records in a status, oldest submission first"""
        conditions = ["status = $1"]
        params: List[Any] = [status.value]

        if entity_type:
            params.append(entity_type.value)
            conditions.append(f"entity_type = ${len(params)}")

        params.extend([limit, offset])
        query = f'''
            SELECT * FROM {self.schema}.{self.table}
            WHERE {" AND ".join(conditions)}
            ORDER BY submitted_at ASC, approval_id ASC
            LIMIT ${len(params) - 1} OFFSET ${len(params)}
        '''

        try:
            rows = await self.db.query(query, params)
            return [self._row_to_record(row) for row in rows]
        except Exception as e:
            logger.error(f"Error listing {status.value} approvals: {e}")
            raise

    async def find_by_submitted_by(
        self, user_id: str, entity_type: Optional[EntityType] = None
    ) -> List[ApprovalRecord]:
        """Records submitted by a user, newest submission first"""
        conditions = ["submitted_by = $1"]
        params: List[Any] = [user_id]

        if entity_type:
            params.append(entity_type.value)
            conditions.append(f"entity_type = ${len(params)}")

        query = f'''
            SELECT * FROM {self.schema}.{self.table}
            WHERE {" AND ".join(conditions)}
            ORDER BY submitted_at DESC
        '''

        try:
            rows = await self.db.query(query, params)
            return [self._row_to_record(row) for row in rows]
        except Exception as e:
            logger.error(f"Error listing approvals submitted by {user_id}: {e}")
            raise

    # ====================
    # Mutations
    # ====================

    async def upsert_pending(
        self,
        entity_type: EntityType,
        entity_id: str,
        campaign_id: str,
        submitted_by: str,
    ) -> ApprovalRecord:
        """
        Open the approval record of an entity as pending.

        An existing record is reset (review fields cleared); otherwise a new
        one is inserted. A concurrent insert for the same entity surfaces as
        DuplicateApprovalError.
        """
        now = datetime.now(timezone.utc)

        try:
            existing = await self.find_by_entity(entity_type, entity_id)
            if existing:
                row = await self.db.query_row(
                    f'''
                    UPDATE {self.schema}.{self.table}
                    SET status = $1, submitted_by = $2, submitted_at = $3,
                        reviewed_by = NULL, reviewed_at = NULL, comment = NULL,
                        updated_at = $3
                    WHERE approval_id = $4
                    RETURNING *
                    ''',
                    [ApprovalStatus.PENDING.value, submitted_by, now, existing.approval_id],
                )
            else:
                row = await self.db.query_row(
                    f'''
                    INSERT INTO {self.schema}.{self.table} (
                        approval_id, entity_type, entity_id, campaign_id,
                        status, submitted_by, submitted_at, created_at, updated_at
                    ) VALUES ($1, $2, $3, $4, $5, $6, $7, $7, $7)
                    RETURNING *
                    ''',
                    [
                        f"apr_{uuid.uuid4().hex[:16]}",
                        entity_type.value,
                        entity_id,
                        campaign_id,
                        ApprovalStatus.PENDING.value,
                        submitted_by,
                        now,
                    ],
                )
            return self._row_to_record(row)

        except asyncpg.UniqueViolationError:
            raise DuplicateApprovalError(
                f"A submission for {entity_type.value} {entity_id} is already in progress"
            )
        except Exception as e:
            logger.error(f"Error opening approval for {entity_type.value}/{entity_id}: {e}")
            raise

    async def review_approval(
        self,
        entity_type: EntityType,
        entity_id: str,
        status: ApprovalStatus,
        reviewed_by: str,
        comment: Optional[str] = None,
    ) -> Optional[ApprovalRecord]:
        """Record a decision; only a pending record is updated"""
        now = datetime.now(timezone.utc)
        query = f'''
            UPDATE {self.schema}.{self.table}
            SET status = $1, reviewed_by = $2, reviewed_at = $3, comment = $4, updated_at = $3
            WHERE entity_type = $5 AND entity_id = $6 AND status = 'pending'
            RETURNING *
        '''

        try:
            row = await self.db.query_row(
                query,
                [status.value, reviewed_by, now, comment, entity_type.value, entity_id],
            )
            return self._row_to_record(row) if row else None
        except Exception as e:
            logger.error(f"Error reviewing approval for {entity_type.value}/{entity_id}: {e}")
            raise

    async def delete_by_entity(self, entity_type: EntityType, entity_id: str) -> bool:
        try:
            result = await self.db.execute(
                f"DELETE FROM {self.schema}.{self.table} WHERE entity_type = $1 AND entity_id = $2",
                [entity_type.value, entity_id],
            )
            return result.endswith(" 1")
        except Exception as e:
            logger.error(f"Error deleting approval for {entity_type.value}/{entity_id}: {e}")
            raise

    # ====================
    # Statistics
    # ====================

    async def get_statistics(self, entity_type: Optional[EntityType] = None) -> ApprovalStatistics:
        """Count approval records per status"""
        query = f"SELECT status, COUNT(*) AS count FROM {self.schema}.{self.table}"
        params: List[Any] = []
        if entity_type:
            query += " WHERE entity_type = $1"
            params.append(entity_type.value)
        query += " GROUP BY status"

        try:
            rows = await self.db.query(query, params)
            counts = {row["status"]: int(row["count"]) for row in rows}
            return ApprovalStatistics(
                pending=counts.get(ApprovalStatus.PENDING.value, 0),
                approved=counts.get(ApprovalStatus.APPROVED.value, 0),
                rejected=counts.get(ApprovalStatus.REJECTED.value, 0),
            )
        except Exception as e:
            logger.error(f"Error getting approval statistics: {e}")
            raise

    @staticmethod
    def _row_to_record(row: Dict[str, Any]) -> ApprovalRecord:
        return ApprovalRecord(
            approval_id=row["approval_id"],
            entity_type=EntityType(row["entity_type"]),
            entity_id=row["entity_id"],
            campaign_id=row["campaign_id"],
            status=ApprovalStatus(row["status"]),
            submitted_by=row.get("submitted_by"),
            submitted_at=row.get("submitted_at"),
            reviewed_by=row.get("reviewed_by"),
            reviewed_at=row.get("reviewed_at"),
            comment=row.get("comment"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )


__all__ = ["ApprovalRepository"]
