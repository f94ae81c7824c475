"""
Integration Test Fixtures for Dashboard Approval Service

Runs the repositories and workflow against a real PostgreSQL database.
Each test gets its own throwaway schemas; the canonical campaign tables
normally owned by the back office are created there as well.

Requires: PostgreSQL reachable through POSTGRES_* environment variables.
Tests are skipped when the database cannot be reached.
"""

import os
import sys
import uuid

import pytest
import pytest_asyncio

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from core.config import InfraConfig
from core.postgres_client import AsyncPostgresClient
from microservices.dashboard_approval_service.approval_repository import ApprovalRepository
from microservices.dashboard_approval_service.canonical_repository import CanonicalRepository
from microservices.dashboard_approval_service.draft_repository import DraftRepository
from microservices.dashboard_approval_service.factory import create_dashboard_services
from microservices.dashboard_approval_service.history_repository import ApprovalHistoryRepository


CANONICAL_TABLES = [
    '''
    CREATE TABLE {schema}.issuers (
        id TEXT PRIMARY KEY,
        name TEXT,
        linked_in TEXT,
        twitter TEXT,
        instagram TEXT,
        facebook TEXT,
        tiktok TEXT,
        yelp TEXT,
        updated_at TIMESTAMPTZ
    )
    ''',
    '''
    CREATE TABLE {schema}.campaigns (
        id TEXT PRIMARY KEY,
        slug TEXT UNIQUE,
        summary TEXT,
        issuer_id TEXT REFERENCES {schema}.issuers(id),
        updated_at TIMESTAMPTZ
    )
    ''',
    '''
    CREATE TABLE {schema}.campaign_infos (
        id SERIAL PRIMARY KEY,
        campaign_id TEXT UNIQUE NOT NULL REFERENCES {schema}.campaigns(id),
        milestones TEXT,
        investor_pitch TEXT,
        is_show_pitch BOOLEAN DEFAULT FALSE,
        investor_pitch_title TEXT,
        created_at TIMESTAMPTZ,
        updated_at TIMESTAMPTZ
    )
    ''',
]


@pytest_asyncio.fixture
async def db():
    """Connected client; skips the test when PostgreSQL is unreachable"""
    client = AsyncPostgresClient(
        service_name="dashboard_approval_service_tests",
        config=InfraConfig.from_env(),
    )
    try:
        await client.initialize()
    except Exception as e:
        pytest.skip(f"PostgreSQL not available: {e}")

    yield client
    await client.close()


@pytest_asyncio.fixture
async def schemas(db):
    """Fresh dashboard and canonical schemas, dropped after the test"""
    suffix = uuid.uuid4().hex[:8]
    dashboard_schema = f"dashboard_it_{suffix}"
    canonical_schema = f"canonical_it_{suffix}"

    await db.execute(f"CREATE SCHEMA {canonical_schema}")
    for statement in CANONICAL_TABLES:
        await db.execute(statement.format(schema=canonical_schema))

    yield dashboard_schema, canonical_schema

    await db.execute(f"DROP SCHEMA IF EXISTS {dashboard_schema} CASCADE")
    await db.execute(f"DROP SCHEMA IF EXISTS {canonical_schema} CASCADE")


@pytest_asyncio.fixture
async def repositories(db, schemas):
    dashboard_schema, canonical_schema = schemas
    drafts = DraftRepository(db, schema=dashboard_schema)
    approvals = ApprovalRepository(db, schema=dashboard_schema)
    history = ApprovalHistoryRepository(db, schema=dashboard_schema)
    canonical = CanonicalRepository(db, schema=canonical_schema)

    await drafts.initialize()
    await approvals.initialize()
    await history.initialize()

    return {
        "drafts": drafts,
        "approvals": approvals,
        "history": history,
        "canonical": canonical,
    }


@pytest.fixture
def draft_repository(repositories):
    return repositories["drafts"]


@pytest.fixture
def approval_repository(repositories):
    return repositories["approvals"]


@pytest.fixture
def history_repository(repositories):
    return repositories["history"]


@pytest.fixture
def canonical_repository(repositories):
    return repositories["canonical"]


@pytest.fixture
def workflows(repositories):
    workflows, _ = create_dashboard_services(
        draft_repository=repositories["drafts"],
        approval_repository=repositories["approvals"],
        canonical_repository=repositories["canonical"],
        history_repository=repositories["history"],
    )
    return workflows


@pytest.fixture
def seed_campaign(db, schemas):
    """Insert a canonical campaign (with issuer) and return its id"""
    _, canonical_schema = schemas

    async def _seed(slug=None):
        campaign_id = f"cmp_{uuid.uuid4().hex[:12]}"
        issuer_id = f"iss_{uuid.uuid4().hex[:12]}"
        await db.execute(
            f"INSERT INTO {canonical_schema}.issuers (id, name) VALUES ($1, $2)",
            [issuer_id, "Sunblock Energy"],
        )
        await db.execute(
            f"INSERT INTO {canonical_schema}.campaigns (id, slug, issuer_id) VALUES ($1, $2, $3)",
            [campaign_id, slug or f"campaign-{uuid.uuid4().hex[:8]}", issuer_id],
        )
        return campaign_id

    return _seed
