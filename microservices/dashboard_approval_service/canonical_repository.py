"""
Canonical Campaign Repository

Reads and writes the public campaign tables that mirror approved dashboard
content - PostgreSQL (Async).

Tables (owned by the campaign back office, not created here):
    campaigns       (id, slug, summary, issuer_id, updated_at, ...)
    campaign_infos  (campaign_id UNIQUE, milestones, investor_pitch,
                     is_show_pitch, investor_pitch_title, updated_at)
    issuers         (id, linked_in, twitter, instagram, facebook, tiktok,
                     yelp, updated_at, ...)
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from core.postgres_client import AsyncPostgresClient, PostgresConnection

from .entity_kinds import EntityKindDescriptor
from .models import CanonicalRecord, EntityType
from .protocols import CanonicalPublicationError

logger = logging.getLogger(__name__)

SOCIAL_COLUMNS = ("linked_in", "twitter", "instagram", "facebook", "tiktok", "yelp")
INFO_COLUMNS = ("milestones", "investor_pitch", "is_show_pitch", "investor_pitch_title")


class CanonicalRepository:
    """Canonical campaign tables - PostgreSQL (Async)"""

    def __init__(self, db: AsyncPostgresClient, schema: str = "public"):
        self.db = db
        self.schema = schema

    # ====================
    # Publication
    # ====================

    async def publish(
        self, kind: EntityKindDescriptor, campaign_id: str, content: Dict[str, Any]
    ) -> CanonicalRecord:
        """Copy approved content into the canonical tables in one transaction"""
        values = kind.to_canonical(content)
        writers = {
            EntityType.CAMPAIGN_INFO: self._publish_info,
            EntityType.CAMPAIGN_SUMMARY: self._publish_summary,
            EntityType.SOCIALS: self._publish_socials,
        }

        try:
            async with self.db.transaction() as tx:
                row = await writers[kind.entity_type](tx, campaign_id, values)
        except CanonicalPublicationError:
            raise
        except Exception as e:
            logger.error(f"Error publishing {kind.entity_type.value} for campaign {campaign_id}: {e}")
            raise CanonicalPublicationError(str(e)) from e

        logger.info(f"Published {kind.entity_type.value} for campaign {campaign_id}")
        return CanonicalRecord(
            campaign_id=campaign_id,
            entity_type=kind.entity_type,
            content=kind.from_canonical(row),
            updated_at=row.get("updated_at"),
        )

    async def _publish_info(
        self, tx: PostgresConnection, campaign_id: str, values: Dict[str, Any]
    ) -> Dict[str, Any]:
        now = datetime.now(timezone.utc)
        query = f'''
            INSERT INTO {self.schema}.campaign_infos (
                campaign_id, milestones, investor_pitch, is_show_pitch,
                investor_pitch_title, created_at, updated_at
            ) VALUES ($1, $2, $3, $4, $5, $6, $6)
            ON CONFLICT (campaign_id) DO UPDATE SET
                milestones = EXCLUDED.milestones,
                investor_pitch = EXCLUDED.investor_pitch,
                is_show_pitch = EXCLUDED.is_show_pitch,
                investor_pitch_title = EXCLUDED.investor_pitch_title,
                updated_at = EXCLUDED.updated_at
            RETURNING *
        '''
        return await tx.query_row(
            query,
            [campaign_id, *[values.get(column) for column in INFO_COLUMNS], now],
        )

    async def _publish_summary(
        self, tx: PostgresConnection, campaign_id: str, values: Dict[str, Any]
    ) -> Dict[str, Any]:
        row = await tx.query_row(
            f'''
            UPDATE {self.schema}.campaigns
            SET summary = $1, updated_at = $2
            WHERE id = $3
            RETURNING id, summary, updated_at
            ''',
            [values.get("summary"), datetime.now(timezone.utc), campaign_id],
        )
        if not row:
            raise CanonicalPublicationError(f"Campaign {campaign_id} not found")
        return row

    async def _publish_socials(
        self, tx: PostgresConnection, campaign_id: str, values: Dict[str, Any]
    ) -> Dict[str, Any]:
        campaign = await tx.query_row(
            f"SELECT issuer_id FROM {self.schema}.campaigns WHERE id = $1",
            [campaign_id],
        )
        if not campaign or not campaign.get("issuer_id"):
            raise CanonicalPublicationError(f"No issuer linked to campaign {campaign_id}")

        set_clause = ", ".join(f"{column} = ${i}" for i, column in enumerate(SOCIAL_COLUMNS, start=1))
        row = await tx.query_row(
            f'''
            UPDATE {self.schema}.issuers
            SET {set_clause}, updated_at = ${len(SOCIAL_COLUMNS) + 1}
            WHERE id = ${len(SOCIAL_COLUMNS) + 2}
            RETURNING *
            ''',
            [
                *[values.get(column) for column in SOCIAL_COLUMNS],
                datetime.now(timezone.utc),
                campaign["issuer_id"],
            ],
        )
        if not row:
            raise CanonicalPublicationError(f"Issuer {campaign['issuer_id']} not found")
        return row

    # ====================
    # Reads
    # ====================

    async def get_canonical(
        self, kind: EntityKindDescriptor, campaign_id: str
    ) -> Optional[CanonicalRecord]:
        """
        Published content of a campaign.

        Returns None when the row is missing or every mapped field is empty.
        """
        if kind.entity_type == EntityType.CAMPAIGN_INFO:
            query = f"SELECT * FROM {self.schema}.campaign_infos WHERE campaign_id = $1"
        elif kind.entity_type == EntityType.CAMPAIGN_SUMMARY:
            query = f"SELECT id, summary, updated_at FROM {self.schema}.campaigns WHERE id = $1"
        else:
            query = f'''
                SELECT i.* FROM {self.schema}.issuers i
                JOIN {self.schema}.campaigns c ON c.issuer_id = i.id
                WHERE c.id = $1
            '''

        try:
            row = await self.db.query_row(query, [campaign_id])
        except Exception as e:
            logger.error(f"Error reading canonical {kind.entity_type.value} for campaign {campaign_id}: {e}")
            raise

        if not row:
            return None

        content = kind.from_canonical(row)
        if all(row.get(column) is None for column in kind.to_canonical(content)):
            return None

        return CanonicalRecord(
            campaign_id=campaign_id,
            entity_type=kind.entity_type,
            content=content,
            updated_at=row.get("updated_at"),
        )

    async def get_campaign_id_by_slug(self, slug: str) -> Optional[str]:
        try:
            row = await self.db.query_row(
                f"SELECT id FROM {self.schema}.campaigns WHERE slug = $1",
                [slug],
            )
            return str(row["id"]) if row else None
        except Exception as e:
            logger.error(f"Error resolving campaign slug {slug}: {e}")
            raise


__all__ = ["CanonicalRepository"]
