"""Fixtures for service tests against the in-memory database."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from spindle.application.dtos.site import SiteResult
from spindle.application.services.collection_registry import CollectionRegistry
from spindle.application.services.content_service import ContentService
from spindle.core.config import Settings
from spindle.infrastructure.persistence.repositories.collection_repo import (
    CollectionRepository,
)

BLOG_FIELDS = [
    {"name": "body", "type": "markdown"},
    {"name": "rating", "type": "number", "validation": {"min": 0}},
    {"name": "tags", "type": "multiselect"},
    {"name": "featured", "type": "boolean", "default": False},
]


def registry_for(
    session: AsyncSession, site: SiteResult, settings: Settings
) -> CollectionRegistry:
    return CollectionRegistry(CollectionRepository(session), site.id, settings=settings)


@pytest.fixture
async def registry_a(
    db_session: AsyncSession, site_a: SiteResult, settings: Settings
) -> CollectionRegistry:
    registry = registry_for(db_session, site_a, settings)
    await registry.create_collection("Blog", fields=BLOG_FIELDS)
    return registry


@pytest.fixture
async def registry_b(
    db_session: AsyncSession, site_b: SiteResult, settings: Settings
) -> CollectionRegistry:
    registry = registry_for(db_session, site_b, settings)
    await registry.create_collection("Blog", fields=BLOG_FIELDS)
    return registry


@pytest.fixture
def content_a(
    db_session: AsyncSession,
    site_a: SiteResult,
    registry_a: CollectionRegistry,
    settings: Settings,
) -> ContentService:
    return ContentService(db_session, site_a.id, registry=registry_a, settings=settings)


@pytest.fixture
def content_b(
    db_session: AsyncSession,
    site_b: SiteResult,
    registry_b: CollectionRegistry,
    settings: Settings,
) -> ContentService:
    return ContentService(db_session, site_b.id, registry=registry_b, settings=settings)
