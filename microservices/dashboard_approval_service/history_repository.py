"""
Approval History Repository

Append-only audit trail of submissions and reviews - PostgreSQL (Async).
"""

import logging
from typing import Any, Dict, List

from core.postgres_client import AsyncPostgresClient

from .models import ApprovalHistoryEntry, ApprovalStatus, EntityType

logger = logging.getLogger(__name__)


class ApprovalHistoryRepository:
    """Approval history repository - PostgreSQL (Async)"""

    def __init__(self, db: AsyncPostgresClient, schema: str = "dashboard"):
        self.db = db
        self.schema = schema
        self.table = "dashboard_approval_history"
        self._table_initialized = False

    async def initialize(self):
        await self._ensure_table()
        logger.info("Approval history repository initialized with PostgreSQL")

    async def _ensure_table(self):
        if self._table_initialized:
            return

        create_sql = f"""
            CREATE TABLE IF NOT EXISTS {self.schema}.{self.table} (
                history_id TEXT PRIMARY KEY,
                entity_type TEXT NOT NULL,
                entity_id TEXT NOT NULL,
                campaign_id TEXT NOT NULL,
                status TEXT NOT NULL,
                user_id TEXT NOT NULL,
                comment TEXT,
                created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            )
        """
        index_sql = (
            f"CREATE INDEX IF NOT EXISTS idx_{self.table}_entity "
            f"ON {self.schema}.{self.table}(entity_type, entity_id, created_at DESC)"
        )

        await self.db.execute(f"CREATE SCHEMA IF NOT EXISTS {self.schema}")
        await self.db.execute(create_sql)
        await self.db.execute(index_sql)
        self._table_initialized = True

    async def record_entry(self, entry: ApprovalHistoryEntry) -> ApprovalHistoryEntry:
        query = f'''
            INSERT INTO {self.schema}.{self.table} (
                history_id, entity_type, entity_id, campaign_id,
                status, user_id, comment, created_at
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
            RETURNING *
        '''
        try:
            row = await self.db.query_row(
                query,
                [
                    entry.history_id,
                    entry.entity_type.value,
                    entry.entity_id,
                    entry.campaign_id,
                    entry.status.value,
                    entry.user_id,
                    entry.comment,
                    entry.created_at,
                ],
            )
            return self._row_to_entry(row)
        except Exception as e:
            logger.error(f"Error recording history for {entry.entity_type.value}/{entry.entity_id}: {e}")
            raise

    async def list_for_entity(
        self, entity_type: EntityType, entity_id: str, limit: int = 50
    ) -> List[ApprovalHistoryEntry]:
        query = f'''
            SELECT * FROM {self.schema}.{self.table}
            WHERE entity_type = $1 AND entity_id = $2
            ORDER BY created_at DESC
            LIMIT $3
        '''
        try:
            rows = await self.db.query(query, [entity_type.value, entity_id, limit])
            return [self._row_to_entry(row) for row in rows]
        except Exception as e:
            logger.error(f"Error listing history for {entity_type.value}/{entity_id}: {e}")
            raise

    async def list_for_campaign(self, campaign_id: str, limit: int = 100) -> List[ApprovalHistoryEntry]:
        query = f'''
            SELECT * FROM {self.schema}.{self.table}
            WHERE campaign_id = $1
            ORDER BY created_at DESC
            LIMIT $2
        '''
        try:
            rows = await self.db.query(query, [campaign_id, limit])
            return [self._row_to_entry(row) for row in rows]
        except Exception as e:
            logger.error(f"Error listing history for campaign {campaign_id}: {e}")
            raise

    @staticmethod
    def _row_to_entry(row: Dict[str, Any]) -> ApprovalHistoryEntry:
        return ApprovalHistoryEntry(
            history_id=row["history_id"],
            entity_type=EntityType(row["entity_type"]),
            entity_id=row["entity_id"],
            campaign_id=row["campaign_id"],
            status=ApprovalStatus(row["status"]),
            user_id=row["user_id"],
            comment=row.get("comment"),
            created_at=row["created_at"],
        )


__all__ = ["ApprovalHistoryRepository"]
