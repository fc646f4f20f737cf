"""ContentService against the in-memory database: lifecycle, slugs, tenancy."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from spindle.application.dtos.site import SiteResult
from spindle.application.services.collection_registry import CollectionRegistry
from spindle.application.services.content_service import ContentService
from spindle.core.config import Settings
from spindle.domain.entities.content import LiveWithPendingDraft
from spindle.domain.enums import ContentStatus
from spindle.domain.exceptions import (
    CollectionNotFoundException,
    ContentNotFoundException,
    DuplicateSlugException,
    SchemaValidationException,
    ValidationException,
)
from spindle.infrastructure.persistence.repositories.collection_repo import (
    CollectionRepository,
)

pytestmark = pytest.mark.requires_db


async def test_create_then_publish_twice_keeps_first_timestamp(
    content_a: ContentService,
) -> None:
    item = await content_a.create_content("blog", {"title": "Hello", "body": "# Hi"})
    assert item.slug == "hello"
    assert item.status == ContentStatus.DRAFT
    assert item.published_at is None
    assert item.data["body"] == "# Hi"
    assert item.data["featured"] is False
    assert "title" not in item.data

    first = await content_a.publish_draft_by_id("blog", item.id)
    assert first.status == ContentStatus.PUBLISHED
    assert first.published_at is not None
    assert first.draft_data is None

    second = await content_a.publish_draft_by_id("blog", item.id)
    assert second.published_at == first.published_at


async def test_create_defaults(content_a: ContentService) -> None:
    item = await content_a.create_content("blog", {})
    assert item.title == "Untitled"
    assert item.slug == "untitled"
    assert item.data["body"] == ""

    nested = await content_a.create_content(
        "blog", {"title": "Nested", "data": {"body": "x", "rating": "4"}}
    )
    assert nested.data["rating"] == 4


async def test_create_validation(content_a: ContentService) -> None:
    with pytest.raises(ValidationException):
        await content_a.create_content("blog", None)
    with pytest.raises(SchemaValidationException):
        await content_a.create_content("blog", {"title": "Bad", "rating": "abc"})
    with pytest.raises(SchemaValidationException):
        await content_a.create_content("blog", {"title": "Long", "seoDescription": "x" * 161})
    with pytest.raises(ValidationException):
        await content_a.create_content("blog", {"title": "Bad slug", "slug": "Not Valid"})


async def test_duplicate_slug_rejected(content_a: ContentService) -> None:
    await content_a.create_content("blog", {"title": "Hello"})
    with pytest.raises(DuplicateSlugException):
        await content_a.create_content("blog", {"title": "Other", "slug": "hello"})

    other = await content_a.create_content("blog", {"title": "Other"})
    with pytest.raises(DuplicateSlugException):
        await content_a.update_content_by_id("blog", other.id, {"slug": "hello"})


async def test_draft_overlay_round_trip(content_a: ContentService) -> None:
    item = await content_a.create_content("blog", {"title": "Post", "body": "live"})
    await content_a.publish_draft_by_id("blog", item.id)

    drafted = await content_a.update_draft_by_id(
        "blog", item.id, {"body": "edited", "status": "draft"}
    )
    assert drafted is not None
    assert drafted.data["body"] == "live"
    assert drafted.draft_data == {"body": "edited"}
    assert drafted.status == ContentStatus.PUBLISHED
    assert isinstance(drafted.state, LiveWithPendingDraft)

    cleared = await content_a.clear_draft_by_id("blog", item.id)
    assert cleared.draft_data is None
    assert cleared.data == drafted.data

    await content_a.update_draft_by_id("blog", item.id, {"body": "second", "title": "Renamed"})
    published = await content_a.publish_draft_by_id("blog", item.id)
    assert published.data["body"] == "second"
    assert published.title == "Renamed"
    assert published.draft_data is None


async def test_draft_on_unpublished_item_writes_live(content_a: ContentService) -> None:
    item = await content_a.create_content("blog", {"title": "Draft"})
    updated = await content_a.update_draft_by_id("blog", item.id, {"body": "now"})
    assert updated is not None
    assert updated.data["body"] == "now"
    assert updated.draft_data is None


async def test_publish_with_payload_replaces_data(content_a: ContentService) -> None:
    item = await content_a.create_content(
        "blog", {"title": "Post", "body": "old", "rating": 3}
    )
    published = await content_a.publish_draft_by_id(
        "blog", item.id, {"draft": {"body": "new", "title": "Fresh"}}
    )
    assert published.title == "Fresh"
    assert published.data["body"] == "new"
    assert "rating" not in published.data


async def test_update_live_values(content_a: ContentService) -> None:
    item = await content_a.create_content("blog", {"title": "Post", "body": "a"})
    await content_a.publish_draft_by_id("blog", item.id)
    await content_a.update_draft_by_id("blog", item.id, {"body": "pending"})

    updated = await content_a.update_content_by_id(
        "blog", item.id, {"rating": "5", "title": "Post v2"}
    )
    assert updated is not None
    assert updated.data == {**item.data, "rating": 5}
    assert updated.title == "Post v2"
    assert updated.draft_data is None

    unpublished = await content_a.update_content_by_id("blog", item.id, {"status": "draft"})
    assert unpublished.status == ContentStatus.DRAFT

    explicit = await content_a.create_content("blog", {"title": "Dated"})
    dated = await content_a.update_content_by_id(
        "blog", explicit.id, {"status": "published", "publishedAt": "2024-05-01T10:00:00Z"}
    )
    assert dated.published_at.isoformat() == "2024-05-01T10:00:00+00:00"

    assert await content_a.update_content_by_id("blog", "missing", {"title": "x"}) is None
    with pytest.raises(ValidationException):
        await content_a.update_content_by_id("blog", item.id, {"status": "archived"})
    with pytest.raises(ValidationException):
        await content_a.update_content_by_id("blog", item.id, {"title": "  "})


async def test_missing_items(content_a: ContentService) -> None:
    with pytest.raises(ContentNotFoundException):
        await content_a.clear_draft_by_id("blog", "missing")
    with pytest.raises(ContentNotFoundException):
        await content_a.publish_draft_by_id("blog", "missing")
    await content_a.delete_content_by_id("blog", "missing")


async def test_list_filters_sorting_and_rendering(content_a: ContentService) -> None:
    for title, rating in (("Charlie", 1), ("Alpha", 2), ("Bravo", 2)):
        await content_a.create_content("blog", {"title": title, "rating": rating, "body": "## Top"})
    bravo = await content_a.get_content_by_slug("blog", "bravo")
    await content_a.publish_draft_by_id("blog", bravo.id)

    page = await content_a.list_content("blog", sort="title", order="asc", limit=2)
    assert [i.title for i in page.items] == ["Alpha", "Bravo"]
    assert page.total == 3
    assert page.has_more

    rated = await content_a.list_content("blog", filters={"rating": 2}, sort="title", order="asc")
    assert [i.slug for i in rated.items] == ["alpha", "bravo"]

    live = await content_a.list_content("blog", published_only=True, render_html=True)
    assert [i.slug for i in live.items] == ["bravo"]
    assert live.items[0].rendered is not None
    assert '<h2 id="top">' in live.items[0].rendered.html

    assert await content_a.get_content_by_slug("blog", "alpha", published_only=True) is None
    with pytest.raises(ValidationException):
        await content_a.list_content("blog", limit=0)


async def test_list_filter_on_none_matches_missing_values(content_a: ContentService) -> None:
    rated = await content_a.create_content("blog", {"title": "Rated", "rating": 4})
    await content_a.create_content("blog", {"title": "Unrated"})
    await content_a.create_content("blog", {"title": "None"})
    await content_a.publish_draft_by_id("blog", rated.id)

    unrated = await content_a.list_content(
        "blog", filters={"rating": None}, sort="title", order="asc"
    )
    assert [i.slug for i in unrated.items] == ["none", "unrated"]
    assert unrated.total == 2

    never_published = await content_a.list_content(
        "blog", filters={"publishedAt": None}, sort="title", order="asc"
    )
    assert [i.slug for i in never_published.items] == ["none", "unrated"]


async def test_delete(content_a: ContentService) -> None:
    item = await content_a.create_content("blog", {"title": "Gone"})
    await content_a.delete_content_by_id("blog", item.id)
    assert await content_a.get_content_by_id("blog", item.id) is None


async def test_same_slug_in_two_sites_is_isolated(
    content_a: ContentService, content_b: ContentService
) -> None:
    a = await content_a.create_content("blog", {"title": "Hello", "body": "from a"})
    b = await content_b.create_content("blog", {"title": "Hello", "body": "from b"})
    assert a.id != b.id
    assert a.collection_id != b.collection_id

    found = await content_a.get_content_by_slug("blog", "hello")
    assert found.id == a.id
    page = await content_a.list_content("blog")
    assert [i.id for i in page.items] == [a.id]

    assert await content_a.get_content_by_id("blog", b.id) is None
    assert await content_a.update_content_by_id("blog", b.id, {"body": "hijack"}) is None
    assert await content_a.update_draft_by_id("blog", b.id, {"body": "hijack"}) is None
    with pytest.raises(ContentNotFoundException):
        await content_a.clear_draft_by_id("blog", b.id)
    with pytest.raises(ContentNotFoundException):
        await content_a.publish_draft_by_id("blog", b.id)
    with pytest.raises(ContentNotFoundException):
        await content_a.publish_draft_by_id("blog", b.id, {"draft": {"body": "hijack"}})
    await content_a.delete_content_by_id("blog", b.id)
    still = await content_b.get_content_by_id("blog", b.id)
    assert still.data["body"] == "from b"
    assert still.status == ContentStatus.DRAFT
    assert still.published_at is None
    assert still.draft_data is None

    live_b = await content_b.publish_draft_by_id("blog", b.id)
    assert await content_a.update_draft_by_id("blog", b.id, {"body": "hijack"}) is None
    with pytest.raises(ContentNotFoundException):
        await content_a.clear_draft_by_id("blog", b.id)
    after = await content_b.get_content_by_id("blog", b.id)
    assert after.draft_data is None
    assert after.data == live_b.data

    result = await content_a.create_content_batch("blog", [{"title": "Hello"}, {"title": "New"}])
    assert (result.success, result.skipped) == (1, 1)
    assert (await content_b.list_content("blog")).total == 1


async def test_collection_of_another_site_is_not_found(
    db_session: AsyncSession,
    site_a: SiteResult,
    site_b: SiteResult,
    settings: Settings,
) -> None:
    await CollectionRegistry(
        CollectionRepository(db_session), site_a.id, settings=settings
    ).create_collection("Docs")
    content_b = ContentService(db_session, site_b.id, settings=settings)
    with pytest.raises(CollectionNotFoundException):
        await content_b.create_content("docs", {"title": "Nope"})


async def test_batch_is_idempotent(content_a: ContentService) -> None:
    rows = [
        {"title": "One"},
        {"title": "Two", "rating": "abc"},
        {"title": "Three"},
        {"title": "One"},
    ]
    first = await content_a.create_content_batch("blog", rows, start_row=10)
    assert (first.success, first.failed, first.skipped) == (2, 1, 1)
    assert first.errors[0].row == 11
    assert "rating" in first.errors[0].message

    again = await content_a.create_content_batch("blog", rows, start_row=10)
    assert (again.success, again.failed, again.skipped) == (0, 1, 3)
    assert (await content_a.list_content("blog")).total == 2


async def test_search_stays_in_site(
    content_a: ContentService, content_b: ContentService
) -> None:
    await content_a.create_content("blog", {"title": "Python tips", "body": "use 100% effort"})
    await content_a.create_content("blog", {"title": "Other", "body": "about PYTHON"})
    await content_b.create_content("blog", {"title": "Python in b"})

    hits = await content_a.search_content("python")
    assert sorted(i.slug for i in hits) == ["other", "python-tips"]
    assert all(i.site_id == content_a.site_id for i in hits)
    assert [i.slug for i in await content_a.search_content("100%")] == ["python-tips"]
    assert await content_a.search_content("  ") == []
    assert await content_a.search_content("python", published_only=True) == []


async def test_stored_invalid_pattern_fails_rows_not_the_batch(
    db_session: AsyncSession, site_a: SiteResult, settings: Settings
) -> None:
    await CollectionRepository(db_session).create_collection(
        site_a.id,
        name="Codes",
        slug="codes",
        url_pattern="/codes/{slug}",
        schema={"fields": [{"name": "code", "type": "text", "validation": {"pattern": "["}}]},
    )
    content = ContentService(db_session, site_a.id, settings=settings)

    with pytest.raises(SchemaValidationException):
        await content.create_content("codes", {"title": "One", "code": "abc"})

    result = await content.create_content_batch(
        "codes", [{"title": "One", "code": "abc"}, {"title": "Two"}, {"title": "Three", "code": "x"}]
    )
    assert (result.success, result.failed, result.skipped) == (1, 2, 0)
    assert [e.row for e in result.errors] == [1, 3]
    assert all("invalid validation pattern" in e.message for e in result.errors)
    assert [i.slug for i in (await content.list_content("codes")).items] == ["two"]
